from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QSpinBox,
    QSplitter,
    QTabBar,
    QVBoxLayout,
    QWidget,
)

from LensPyside.widgets import SyncCodeEditor
from fmtlens.formatting.code_formatting import QUOTE_STYLES, VIEW_KINDS, VIEW_TITLES, FormatOptions
from fmtlens.services.preview_pipeline import PreviewPipeline, PreviewResult
from fmtlens.settings_manager import SettingsManager
from fmtlens.settings_store import SettingsStoreError
from fmtlens.ui.controllers import CursorSyncController, SyncFocus
from fmtlens.ui.preview_manager import PreviewManager

log = logging.getLogger(__name__)


class FormatOptionsPanel(QWidget):
    def __init__(self, options: FormatOptions, parent=None):
        super().__init__(parent)
        form = QFormLayout(self)
        form.setContentsMargins(8, 4, 8, 4)

        self.line_length = QSpinBox(self)
        self.line_length.setRange(1, 320)
        self.line_length.setValue(options.line_length)
        form.addRow("Line length", self.line_length)

        self.indent_width = QSpinBox(self)
        self.indent_width.setRange(1, 16)
        self.indent_width.setValue(options.indent_width)
        form.addRow("Indent width", self.indent_width)

        self.quote_style = QComboBox(self)
        self.quote_style.addItems(list(QUOTE_STYLES))
        self.quote_style.setCurrentText(options.quote_style)
        form.addRow("Quote style", self.quote_style)

        self.skip_magic_trailing_comma = QCheckBox("Skip magic trailing comma", self)
        self.skip_magic_trailing_comma.setChecked(options.skip_magic_trailing_comma)
        form.addRow("", self.skip_magic_trailing_comma)

    def options(self) -> FormatOptions:
        return FormatOptions(
            line_length=int(self.line_length.value()),
            indent_width=int(self.indent_width.value()),
            quote_style=str(self.quote_style.currentText()),
            skip_magic_trailing_comma=bool(self.skip_magic_trailing_comma.isChecked()),
        )


class LensWindow(QMainWindow):
    APP_NAME = "PyFmtLens"

    def __init__(self, settings_manager: SettingsManager, pipeline: PreviewPipeline, parent=None):
        super().__init__(parent)
        self.settings_manager = settings_manager
        self.setWindowTitle(self.APP_NAME)
        self.resize(
            int(settings_manager.get("window.width", 1280)),
            int(settings_manager.get("window.height", 800)),
        )

        font_size = int(settings_manager.get("editor.font_size", 11))
        font_family = str(settings_manager.get("editor.font_family", "") or "")
        self.source_editor = SyncCodeEditor(self, highlight_role="source")
        self.output_editor = SyncCodeEditor(self, highlight_role="output")
        self.output_editor.setReadOnly(True)
        for editor in (self.source_editor, self.output_editor):
            editor.set_editor_font_preferences(family=font_family or None, point_size=font_size)

        self.view_tabs = QTabBar(self)
        for kind in VIEW_KINDS:
            self.view_tabs.addTab(VIEW_TITLES[kind])
        self.sync_toggle = QCheckBox("Cursor sync", self)
        self.sync_toggle.setChecked(bool(settings_manager.get("sync.enabled", True)))
        self.options_panel = FormatOptionsPanel(settings_manager.format_options(), self)
        self.status_label = QLabel(self)
        self.status_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        self._build_layout()

        self.sync_controller = CursorSyncController(
            self.source_editor,
            self.output_editor,
            enabled=self.sync_toggle.isChecked(),
        )
        self.preview_manager = PreviewManager(pipeline, self.source_editor.text, parent=self)
        self.preview_manager.update_settings(
            options=settings_manager.format_options(),
            debounce_ms=int(settings_manager.get("sync.debounce_ms", PreviewManager.DEFAULT_DEBOUNCE_MS)),
        )
        self._connect_signals()

        self.source_editor.setPlainText(str(settings_manager.get("session.last_source", "") or ""))
        active = str(settings_manager.get("view.active", "formatted"))
        self.view_tabs.setCurrentIndex(VIEW_KINDS.index(active) if active in VIEW_KINDS else 0)
        self.preview_manager.set_active_view(active)

    def _build_layout(self) -> None:
        splitter = QSplitter(Qt.Horizontal, self)
        splitter.addWidget(self.source_editor)

        output_host = QWidget(splitter)
        output_layout = QVBoxLayout(output_host)
        output_layout.setContentsMargins(0, 0, 0, 0)
        output_layout.setSpacing(2)
        header = QHBoxLayout()
        header.addWidget(self.view_tabs)
        header.addStretch(1)
        header.addWidget(self.sync_toggle)
        output_layout.addLayout(header)
        output_layout.addWidget(self.output_editor, 1)
        splitter.addWidget(output_host)

        sizes = self.settings_manager.get("window.splitter_sizes", [])
        if isinstance(sizes, list) and len(sizes) == 2 and all(sizes):
            splitter.setSizes([int(item) for item in sizes])
        self._splitter = splitter

        central = QWidget(self)
        root = QVBoxLayout(central)
        root.setContentsMargins(4, 4, 4, 4)
        root.addWidget(self.options_panel)
        root.addWidget(splitter, 1)
        root.addWidget(self.status_label)
        self.setCentralWidget(central)

    def _connect_signals(self) -> None:
        sync = self.sync_controller
        self.source_editor.focusEntered.connect(lambda: sync.on_focus(SyncFocus.SOURCE))
        self.source_editor.focusLeft.connect(lambda: sync.on_blur(SyncFocus.SOURCE))
        self.output_editor.focusEntered.connect(lambda: sync.on_focus(SyncFocus.OUTPUT))
        self.output_editor.focusLeft.connect(lambda: sync.on_blur(SyncFocus.OUTPUT))
        self.source_editor.cursorOffsetChanged.connect(lambda _offset: sync.on_cursor_moved(SyncFocus.SOURCE))
        self.output_editor.cursorOffsetChanged.connect(lambda _offset: sync.on_cursor_moved(SyncFocus.OUTPUT))

        self.source_editor.textChanged.connect(self._on_source_changed)
        self.view_tabs.currentChanged.connect(self._on_view_tab_changed)
        self.sync_toggle.toggled.connect(self._on_sync_toggled)
        self.options_panel.line_length.valueChanged.connect(self._on_options_changed)
        self.options_panel.indent_width.valueChanged.connect(self._on_options_changed)
        self.options_panel.quote_style.currentTextChanged.connect(self._on_options_changed)
        self.options_panel.skip_magic_trailing_comma.toggled.connect(self._on_options_changed)

        self.preview_manager.previewUpdated.connect(self._on_preview_updated)
        self.preview_manager.statusMessage.connect(self.status_label.setText)

    # ---------- slots ----------

    def _on_source_changed(self) -> None:
        # Offsets of the current mapping refer to the previous source text.
        self.sync_controller.set_mapping(None)
        self.preview_manager.request_refresh()

    def _on_view_tab_changed(self, index: int) -> None:
        if not 0 <= index < len(VIEW_KINDS):
            return
        kind = VIEW_KINDS[index]
        self.settings_manager.set("view.active", kind)
        self.preview_manager.set_active_view(kind)

    def _on_sync_toggled(self, checked: bool) -> None:
        self.settings_manager.set("sync.enabled", bool(checked))
        self.sync_controller.set_enabled(bool(checked))

    def _on_options_changed(self, *_args) -> None:
        options = self.options_panel.options()
        self.settings_manager.set_format_options(options)
        self.preview_manager.update_settings(options=options)

    def _on_preview_updated(self, result: PreviewResult) -> None:
        self.sync_controller.set_mapping(None)
        self.output_editor.set_text(result.output_text)
        self.sync_controller.set_mapping(result.mapping)
        for line in result.debug_lines:
            log.debug("%s", line)

    # ---------- file / session ----------

    def load_file(self, path: str | Path) -> bool:
        file_path = Path(path).expanduser()
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.status_label.setText(f"Could not open {file_path}: {exc}")
            log.warning("could not open %s: %s", file_path, exc)
            return False
        self.source_editor.setPlainText(text)
        self.settings_manager.set("session.last_file", str(file_path))
        self.setWindowTitle(f"{self.APP_NAME} [{file_path.name}]")
        self.preview_manager.refresh_now()
        return True

    def closeEvent(self, event: QCloseEvent):
        self.preview_manager.shutdown()
        self.sync_controller.close()
        manager = self.settings_manager
        manager.set("session.last_source", self.source_editor.text())
        manager.set("window.width", int(self.width()))
        manager.set("window.height", int(self.height()))
        manager.set("window.splitter_sizes", [int(item) for item in self._splitter.sizes()])
        if manager.load_error:
            log.warning("settings not saved; %s could not be read: %s", manager.settings_path, manager.load_error)
            super().closeEvent(event)
            return
        try:
            manager.save_all(only_dirty=True)
        except SettingsStoreError as exc:
            log.error("%s", exc)
        super().closeEvent(event)
