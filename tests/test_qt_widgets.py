import pytest

pytest.importorskip("PySide6.QtWidgets")
pytest.importorskip("pytestqt")

from LensPyside.widgets import SyncCodeEditor  # noqa: E402
from fmtlens.formatting import FormatOptions, FormatResult, ViewProviderRegistry  # noqa: E402
from fmtlens.formatting.providers import (  # noqa: E402
    AST_VIEW_KINDS,
    TOKEN_VIEW_KINDS,
    AstDumpProvider,
    TokenDumpProvider,
)
from fmtlens.services.preview_pipeline import PreviewPipeline  # noqa: E402
from fmtlens.settings_manager import SettingsManager  # noqa: E402
from fmtlens.ui.controllers import SyncFocus  # noqa: E402
from fmtlens.ui.lens_window import LensWindow  # noqa: E402
from fmtlens.ui.preview_manager import PreviewManager  # noqa: E402


class SpacingFormatter:
    def can_render(self, view_kind):
        return view_kind == "formatted"

    def render(self, request):
        return FormatResult(status="ok", output_text=request.source_text.replace(",", ", "))


def _pipeline():
    registry = ViewProviderRegistry()
    registry.register_provider(SpacingFormatter(), view_kinds={"formatted"})
    registry.register_provider(AstDumpProvider(), view_kinds=AST_VIEW_KINDS)
    registry.register_provider(TokenDumpProvider(), view_kinds=TOKEN_VIEW_KINDS)
    return PreviewPipeline(registry)


def test_editor_offsets_are_str_indices(qtbot):
    editor = SyncCodeEditor()
    qtbot.addWidget(editor)
    editor.setPlainText("a\U0001F600b")
    editor.set_cursor_offset(2)
    assert editor.textCursor().position() == 3
    assert editor.cursor_offset() == 2


def test_editor_sync_highlights(qtbot):
    editor = SyncCodeEditor(highlight_role="output")
    qtbot.addWidget(editor)
    editor.setPlainText("\U0001F600 = value\n")
    editor.set_sync_highlights([(4, 9)])
    assert editor.sync_highlight_ranges() == [(4, 9)]
    editor.clear_sync_highlights()
    assert editor.sync_highlight_ranges() == []


def test_set_text_is_silent(qtbot):
    editor = SyncCodeEditor()
    qtbot.addWidget(editor)
    changes = []
    editor.textChanged.connect(lambda: changes.append(True))
    editor.set_text("x = 1\n")
    assert editor.text() == "x = 1\n"
    assert changes == []


def test_preview_manager_debounces(qtbot):
    source = {"text": "f(a,b)"}
    manager = PreviewManager(_pipeline(), lambda: source["text"])
    manager.update_settings(debounce_ms=20)
    manager.request_refresh()
    assert manager.is_refresh_pending()
    with qtbot.waitSignal(manager.previewUpdated, timeout=2000) as blocker:
        pass
    result = blocker.args[0]
    assert result.output_text == "f(a, b)"
    assert not manager.is_refresh_pending()


def test_preview_manager_switches_views(qtbot):
    manager = PreviewManager(_pipeline(), lambda: "x = 1\n")
    with qtbot.waitSignal(manager.previewUpdated, timeout=1000):
        result = manager.set_active_view("tokens")
    assert manager.active_view() == "tokens"
    assert result.mapping.kind == "interval"
    assert manager.last_result() is result


def test_window_wires_preview_and_sync(qtbot, tmp_path):
    settings = SettingsManager(tmp_path, persistent=False)
    settings.load_all()
    settings.set("session.last_source", "f(a,b)")
    window = LensWindow(settings, _pipeline())
    qtbot.addWidget(window)

    assert window.output_editor.text() == "f(a, b)"
    assert window.sync_controller.mapping.kind == "anchor"

    window.sync_controller.on_focus(SyncFocus.SOURCE)
    window.source_editor.set_cursor_offset(4)
    assert window.output_editor.text()[4:6] == " b"

    window.view_tabs.setCurrentIndex(1)
    assert window.preview_manager.active_view() == "ast"
    assert window.sync_controller.mapping.kind == "interval"
    assert settings.get("view.active") == "ast"

    window.sync_toggle.setChecked(False)
    assert not window.sync_controller.is_enabled()
    assert settings.get("sync.enabled") is False


def test_window_option_changes_are_stored(qtbot, tmp_path):
    settings = SettingsManager(tmp_path, persistent=False)
    settings.load_all()
    window = LensWindow(settings, _pipeline())
    qtbot.addWidget(window)
    window.options_panel.line_length.setValue(100)
    assert settings.format_options().line_length == 100
    assert window.preview_manager.options() == FormatOptions(line_length=100)
