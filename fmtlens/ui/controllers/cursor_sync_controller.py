"""Focus-gated cursor synchronization between the source and output panes.

Only the pane that currently holds focus drives a sync. Revealing or
highlighting in the other pane never moves focus there, so a sync cannot
bounce back as a user-driven movement.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Literal, Protocol, Sequence

from fmtlens.mapping.anchors import AnchorTable, query_forward, query_reverse
from fmtlens.mapping.intervals import (
    Interval,
    IntervalList,
    find_containing,
    find_containing_reverse,
    query_forward_interval,
    query_reverse_interval,
    same_source_intervals,
)

log = logging.getLogger(__name__)

MappingKind = Literal["anchor", "interval"]
SyncDirection = Literal["source_to_output", "output_to_source"]


class SyncFocus(enum.Enum):
    UNFOCUSED = "unfocused"
    SOURCE = "source"
    OUTPUT = "output"


class SyncPane(Protocol):
    """What the controller needs from an editor widget. Offsets are str indices."""

    def text(self) -> str:
        ...

    def cursor_offset(self) -> int:
        ...

    def reveal_offset(self, offset: int) -> None:
        ...

    def set_sync_highlights(self, ranges: Sequence[tuple[int, int]]) -> None:
        ...

    def clear_sync_highlights(self) -> None:
        ...


@dataclass(frozen=True, slots=True)
class CursorSyncMapping:
    kind: MappingKind
    data: AnchorTable | IntervalList

    @classmethod
    def from_anchors(cls, table: AnchorTable) -> "CursorSyncMapping":
        return cls(kind="anchor", data=tuple(table))

    @classmethod
    def from_intervals(cls, intervals: IntervalList) -> "CursorSyncMapping":
        if not isinstance(intervals, IntervalList):
            intervals = IntervalList(intervals)
        return cls(kind="interval", data=intervals)

    def is_empty(self) -> bool:
        return len(self.data) == 0

    def forward(self, offset: int) -> int:
        if self.kind == "anchor":
            return query_forward(self.data, offset)
        return query_forward_interval(self.data, offset)

    def reverse(self, offset: int) -> int:
        if self.kind == "anchor":
            return query_reverse(self.data, offset)
        return query_reverse_interval(self.data, offset)


@dataclass(slots=True)
class SyncOutcome:
    direction: SyncDirection
    from_offset: int
    to_offset: int
    source_ranges: list[tuple[int, int]] = field(default_factory=list)
    output_ranges: list[tuple[int, int]] = field(default_factory=list)


def _clamp(offset: int, text: str) -> int:
    return max(0, min(int(offset), len(text)))


class CursorSyncController:
    def __init__(self, source: SyncPane, output: SyncPane, *, enabled: bool = True) -> None:
        self.source = source
        self.output = output
        self._enabled = bool(enabled)
        self._mapping: CursorSyncMapping | None = None
        self._focus = SyncFocus.UNFOCUSED
        self._has_highlights = False

    @property
    def focus(self) -> SyncFocus:
        return self._focus

    @property
    def mapping(self) -> CursorSyncMapping | None:
        return self._mapping

    def is_enabled(self) -> bool:
        return self._enabled

    def is_active(self) -> bool:
        return self._enabled and self._mapping is not None and not self._mapping.is_empty()

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        if not self._enabled:
            self.clear_highlights()

    def set_mapping(self, mapping: CursorSyncMapping | None) -> None:
        if mapping is self._mapping:
            return
        # Highlights belong to the previous mapping's offsets.
        self.clear_highlights()
        self._mapping = mapping
        log.debug(
            "cursor sync mapping: %s",
            "none" if mapping is None else f"{mapping.kind} ({len(mapping.data)} entries)",
        )

    def on_focus(self, pane: SyncFocus) -> None:
        if pane is SyncFocus.UNFOCUSED:
            return
        self._focus = pane

    def on_blur(self, pane: SyncFocus) -> None:
        if self._focus is pane:
            self._focus = SyncFocus.UNFOCUSED

    def on_cursor_moved(self, pane: SyncFocus) -> SyncOutcome | None:
        if pane is SyncFocus.UNFOCUSED or pane is not self._focus:
            return None
        if not self.is_active():
            return None
        if pane is SyncFocus.SOURCE:
            return self.sync_source_to_output()
        return self.sync_output_to_source()

    def sync_source_to_output(self) -> SyncOutcome | None:
        mapping = self._mapping
        if mapping is None or mapping.is_empty():
            return None
        src_offset = _clamp(self.source.cursor_offset(), self.source.text())
        out_offset = _clamp(mapping.forward(src_offset), self.output.text())
        outcome = SyncOutcome("source_to_output", src_offset, out_offset)
        if mapping.kind == "interval":
            self._highlight(outcome, find_containing(mapping.data, src_offset))
        self.output.reveal_offset(out_offset)
        log.debug("sync %s %d -> %d", outcome.direction, src_offset, out_offset)
        return outcome

    def sync_output_to_source(self) -> SyncOutcome | None:
        mapping = self._mapping
        if mapping is None or mapping.is_empty():
            return None
        out_offset = _clamp(self.output.cursor_offset(), self.output.text())
        src_offset = _clamp(mapping.reverse(out_offset), self.source.text())
        outcome = SyncOutcome("output_to_source", out_offset, src_offset)
        if mapping.kind == "interval":
            self._highlight(outcome, find_containing_reverse(mapping.data, out_offset))
        self.source.reveal_offset(src_offset)
        log.debug("sync %s %d -> %d", outcome.direction, out_offset, src_offset)
        return outcome

    def _highlight(self, outcome: SyncOutcome, matched: Interval | None) -> None:
        if matched is None or self._mapping is None:
            return
        siblings = same_source_intervals(self._mapping.data, matched) or [matched]
        outcome.source_ranges = [matched.source_range]
        outcome.output_ranges = [item.output_range for item in siblings]
        self.source.set_sync_highlights(outcome.source_ranges)
        self.output.set_sync_highlights(outcome.output_ranges)
        self._has_highlights = True

    def clear_highlights(self) -> None:
        if not self._has_highlights:
            return
        self.source.clear_sync_highlights()
        self.output.clear_sync_highlights()
        self._has_highlights = False

    def close(self) -> None:
        self.clear_highlights()
        self._mapping = None
        self._focus = SyncFocus.UNFOCUSED
