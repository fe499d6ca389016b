from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QObject, QTimer, Signal

from fmtlens.formatting.code_formatting import FormatOptions, ViewKind, normalize_view_kind
from fmtlens.services.preview_pipeline import PreviewPipeline, PreviewResult

log = logging.getLogger(__name__)


class PreviewManager(QObject):
    """Coalesces source edits and re-renders the active derived view."""

    previewUpdated = Signal(object)  # PreviewResult
    statusMessage = Signal(str)

    DEFAULT_DEBOUNCE_MS = 150

    def __init__(
        self,
        pipeline: PreviewPipeline,
        source_text_provider: Callable[[], str],
        parent=None,
    ):
        super().__init__(parent)
        self._pipeline = pipeline
        self._source_text_provider = source_text_provider
        self._view_kind: ViewKind = "formatted"
        self._options = FormatOptions()
        self._debounce_ms = self.DEFAULT_DEBOUNCE_MS
        self._last_result: PreviewResult | None = None

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.timeout.connect(self.refresh_now)

    # ---------- Public API ----------

    def update_settings(self, *, options: FormatOptions | None = None, debounce_ms: int | None = None) -> None:
        if debounce_ms is not None:
            self._debounce_ms = max(0, int(debounce_ms))
        if options is not None and options != self._options:
            self._options = options
            self.request_refresh()

    def active_view(self) -> ViewKind:
        return self._view_kind

    def options(self) -> FormatOptions:
        return self._options

    def last_result(self) -> PreviewResult | None:
        return self._last_result

    def set_active_view(self, view_kind: str) -> PreviewResult:
        self._view_kind = normalize_view_kind(view_kind)
        return self.refresh_now()

    def request_refresh(self) -> None:
        self._debounce_timer.start(self._debounce_ms)

    def is_refresh_pending(self) -> bool:
        return self._debounce_timer.isActive()

    def refresh_now(self) -> PreviewResult:
        self._debounce_timer.stop()
        source_text = str(self._source_text_provider() or "")
        result = self._pipeline.run(source_text, self._view_kind, self._options)
        self._last_result = result
        self.previewUpdated.emit(result)
        if not result.ok:
            self.statusMessage.emit(result.message or "Rendering failed.")
        elif result.warnings:
            self.statusMessage.emit(result.warnings[0])
        else:
            self.statusMessage.emit(f"{self._view_kind} view updated in {result.elapsed_ms:.0f} ms")
        return result

    def shutdown(self) -> None:
        self._debounce_timer.stop()
