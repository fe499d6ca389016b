"""Render the active derived view and build the mapping that correlates it with the source."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from fmtlens.formatting.code_formatting import (
    FormatOptions,
    FormatRequest,
    ViewKind,
    ViewProviderRegistry,
    normalize_view_kind,
)
from fmtlens.mapping.anchors import build_anchor_table
from fmtlens.ui.controllers.cursor_sync_controller import CursorSyncMapping

log = logging.getLogger(__name__)


@dataclass(slots=True)
class PreviewResult:
    view_kind: ViewKind
    ok: bool
    output_text: str = ""
    mapping: CursorSyncMapping | None = None
    message: str = ""
    warnings: list[str] = field(default_factory=list)
    debug_lines: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0


class PreviewPipeline:
    """Runs one provider per request; keeps the last good result per view."""

    def __init__(self, registry: ViewProviderRegistry, *, interpreter: str = "") -> None:
        self.registry = registry
        self.interpreter = str(interpreter or "")
        self._last_good: dict[str, PreviewResult] = {}

    def last_good(self, view_kind: str) -> PreviewResult | None:
        return self._last_good.get(normalize_view_kind(view_kind))

    def run(self, source_text: str, view_kind: str, options: FormatOptions | None = None) -> PreviewResult:
        kind = normalize_view_kind(view_kind)
        started = time.perf_counter()
        request = FormatRequest(
            source_text=str(source_text or ""),
            options=options or FormatOptions(),
            interpreter=self.interpreter,
        )
        if not self.registry.can_render(kind):
            return PreviewResult(view_kind=kind, ok=False, message=f"No provider for the {kind} view.")

        result = self.registry.render(kind, request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if not result.ok:
            log.info("%s view failed: %s", kind, result.message)
            previous = self._last_good.get(kind)
            # Stale output stays visible but is never correlated.
            return PreviewResult(
                view_kind=kind,
                ok=False,
                output_text=previous.output_text if previous is not None else "",
                mapping=None,
                message=result.message,
                debug_lines=list(result.debug_lines),
                elapsed_ms=elapsed_ms,
            )

        if kind == "formatted":
            mapping = CursorSyncMapping.from_anchors(build_anchor_table(request.source_text, result.output_text))
        elif result.intervals is not None:
            mapping = CursorSyncMapping.from_intervals(result.intervals)
        else:
            mapping = None

        preview = PreviewResult(
            view_kind=kind,
            ok=True,
            output_text=result.output_text,
            mapping=mapping,
            message=result.message,
            warnings=list(result.warnings),
            debug_lines=list(result.debug_lines),
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
        )
        self._last_good[kind] = preview
        log.debug("%s view rendered in %.1f ms", kind, preview.elapsed_ms)
        return preview
