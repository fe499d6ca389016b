from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any

from fmtlens.formatting.code_formatting import QUOTE_STYLES, FormatOptions, normalize_view_kind
from fmtlens.settings_models import SettingsPaths, default_settings
from fmtlens.settings_store import JsonSettingsStore, deep_merge_defaults

log = logging.getLogger(__name__)

APP_DIR_ENV = "PYFMTLENS_APP_DIR"
APP_DIRNAME = ".pyfmtlens"


def default_app_dir() -> str:
    override = os.environ.get(APP_DIR_ENV, "").strip()
    if override:
        return str(Path(override).expanduser())
    return str(Path.home() / APP_DIRNAME)


def _clamped_int(value: Any, default: int, low: int, high: int) -> int:
    try:
        return max(low, min(high, int(value)))
    except (TypeError, ValueError):
        return default


class SettingsManager:
    def __init__(
        self,
        app_dir: str | Path | None = None,
        *,
        filename: str = "settings.json",
        persistent: bool = True,
    ) -> None:
        self.paths = SettingsPaths(app_dir=Path(app_dir or default_app_dir()), filename=filename)
        self.store = JsonSettingsStore(self.paths.settings_file, default_settings(), persistent=persistent)

    @property
    def settings_path(self) -> Path:
        return self.paths.settings_file

    @property
    def load_error(self) -> str:
        return str(self.store.last_error or "").strip()

    def load_all(self) -> None:
        self.store.load()
        normalized = self._normalize_settings()
        # Never overwrite an unreadable settings file with regenerated defaults.
        if (normalized or self.store.dirty) and not self.store.last_error:
            self.save_all(only_dirty=True)

    def save_all(self, *, only_dirty: bool = False) -> bool:
        if only_dirty and not self.store.dirty:
            return False
        self.store.save()
        log.debug("settings saved to %s", self.store.path)
        return True

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        return self.store.set(key, value)

    def format_options(self) -> FormatOptions:
        return FormatOptions.from_mapping(self.get("format", {}))

    def set_format_options(self, options: FormatOptions) -> bool:
        changed = False
        for key, value in options.to_mapping().items():
            changed = self.set(f"format.{key}", value) or changed
        return changed

    def _normalize_settings(self) -> bool:
        data = self.store.data
        before = deepcopy(data)
        defaults = default_settings()

        fmt = data.get("format")
        fmt = deep_merge_defaults(fmt if isinstance(fmt, dict) else {}, defaults["format"])
        fmt["line_length"] = _clamped_int(fmt.get("line_length"), 88, 1, 320)
        fmt["indent_width"] = _clamped_int(fmt.get("indent_width"), 4, 1, 16)
        quote_style = str(fmt.get("quote_style") or "").strip().lower()
        fmt["quote_style"] = quote_style if quote_style in QUOTE_STYLES else "double"
        fmt["skip_magic_trailing_comma"] = bool(fmt.get("skip_magic_trailing_comma", False))
        fmt["interpreter"] = str(fmt.get("interpreter") or "").strip()
        data["format"] = fmt

        view = data.get("view")
        view = deep_merge_defaults(view if isinstance(view, dict) else {}, defaults["view"])
        view["active"] = normalize_view_kind(view.get("active"))
        data["view"] = view

        sync = data.get("sync")
        sync = deep_merge_defaults(sync if isinstance(sync, dict) else {}, defaults["sync"])
        sync["enabled"] = bool(sync.get("enabled", True))
        sync["debounce_ms"] = _clamped_int(sync.get("debounce_ms"), 150, 0, 5000)
        data["sync"] = sync

        editor = data.get("editor")
        editor = deep_merge_defaults(editor if isinstance(editor, dict) else {}, defaults["editor"])
        editor["font_size"] = _clamped_int(editor.get("font_size"), 11, 6, 48)
        editor["font_family"] = str(editor.get("font_family") or "").strip()
        data["editor"] = editor

        window = data.get("window")
        window = deep_merge_defaults(window if isinstance(window, dict) else {}, defaults["window"])
        window["width"] = _clamped_int(window.get("width"), 1280, 320, 10000)
        window["height"] = _clamped_int(window.get("height"), 800, 240, 10000)
        sizes = window.get("splitter_sizes")
        window["splitter_sizes"] = (
            [_clamped_int(item, 0, 0, 100000) for item in sizes] if isinstance(sizes, list) else []
        )
        data["window"] = window

        session = data.get("session")
        session = deep_merge_defaults(session if isinstance(session, dict) else {}, defaults["session"])
        session["last_source"] = str(session.get("last_source") or "")
        session["last_file"] = str(session.get("last_file") or "")
        data["session"] = session

        changed = data != before
        if changed:
            self.store.dirty = True
        return changed
