import json

import pytest

from fmtlens.formatting import FormatOptions
from fmtlens.settings_manager import APP_DIR_ENV, SettingsManager, default_app_dir
from fmtlens.settings_models import SAMPLE_SOURCE
from fmtlens.settings_store import JsonSettingsStore, SettingsStoreError, deep_merge_defaults, dot_get, dot_set


def test_dot_helpers():
    data = {"a": {"b": 1}}
    assert dot_get(data, "a.b") == 1
    assert dot_get(data, "a.c", "x") == "x"
    dot_set(data, "a.c.d", 2)
    assert data == {"a": {"b": 1, "c": {"d": 2}}}
    with pytest.raises(ValueError):
        dot_set(data, "", 3)


def test_deep_merge_keeps_explicit_values():
    merged = deep_merge_defaults({"a": {"b": 5}}, {"a": {"b": 1, "c": 2}, "d": 3})
    assert merged == {"a": {"b": 5, "c": 2}, "d": 3}


def test_first_load_writes_defaults(tmp_path):
    manager = SettingsManager(tmp_path)
    manager.load_all()
    assert manager.settings_path.is_file()
    saved = json.loads(manager.settings_path.read_text(encoding="utf-8"))
    assert saved["format"]["line_length"] == 88
    assert saved["session"]["last_source"] == SAMPLE_SOURCE
    assert manager.get("view.active") == "formatted"


def test_out_of_range_values_are_normalized(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "format": {"line_length": 9000, "quote_style": "fancy", "indent_width": "x"},
                "view": {"active": "bytecode"},
                "sync": {"debounce_ms": -10},
            }
        ),
        encoding="utf-8",
    )
    manager = SettingsManager(tmp_path)
    manager.load_all()
    assert manager.format_options() == FormatOptions(line_length=320, indent_width=4, quote_style="double")
    assert manager.get("view.active") == "formatted"
    assert manager.get("sync.debounce_ms") == 0
    assert json.loads(path.read_text(encoding="utf-8"))["format"]["line_length"] == 320


def test_unreadable_file_is_left_untouched(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    manager = SettingsManager(tmp_path)
    manager.load_all()
    assert manager.load_error
    assert manager.get("format.line_length") == 88
    assert path.read_text(encoding="utf-8") == "{not json"


def test_format_options_round_trip(tmp_path):
    manager = SettingsManager(tmp_path)
    manager.load_all()
    options = FormatOptions(line_length=100, indent_width=2, quote_style="single", skip_magic_trailing_comma=True)
    assert manager.set_format_options(options)
    assert not manager.set_format_options(options)
    assert manager.save_all(only_dirty=True)

    reloaded = SettingsManager(tmp_path)
    reloaded.load_all()
    assert reloaded.format_options() == options


def test_non_persistent_store_never_touches_disk(tmp_path):
    manager = SettingsManager(tmp_path, persistent=False)
    manager.load_all()
    manager.set("sync.enabled", False)
    manager.save_all()
    assert not manager.settings_path.exists()
    assert manager.get("sync.enabled") is False


def test_save_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonSettingsStore(blocker / "settings.json", {"a": 1})
    store.load()
    with pytest.raises(SettingsStoreError):
        store.save()


def test_app_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv(APP_DIR_ENV, str(tmp_path / "lens"))
    assert default_app_dir() == str(tmp_path / "lens")


def test_non_object_root_is_reported(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    manager = SettingsManager(tmp_path)
    manager.load_all()
    assert "JSON object" in manager.load_error
    assert manager.get("sync.enabled") is True
    assert path.read_text(encoding="utf-8") == "[1, 2]"
