from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypedDict


class FormatSettings(TypedDict, total=False):
    line_length: int
    indent_width: int
    quote_style: str  # double | single | preserve
    skip_magic_trailing_comma: bool
    interpreter: str


class ViewSettings(TypedDict, total=False):
    active: str  # formatted | ast | tokens


class SyncSettings(TypedDict, total=False):
    enabled: bool
    debounce_ms: int


class EditorSettings(TypedDict, total=False):
    font_size: int
    font_family: str


class WindowSettings(TypedDict, total=False):
    width: int
    height: int
    splitter_sizes: list[int]


class SessionSettings(TypedDict, total=False):
    last_source: str
    last_file: str


class LensSettings(TypedDict, total=False):
    format: FormatSettings
    view: ViewSettings
    sync: SyncSettings
    editor: EditorSettings
    window: WindowSettings
    session: SessionSettings


@dataclass(slots=True, frozen=True)
class SettingsPaths:
    app_dir: Path
    filename: str = "settings.json"
    settings_file: Path = field(init=False)

    def __post_init__(self) -> None:
        app_dir = Path(self.app_dir).expanduser().resolve()
        object.__setattr__(self, "app_dir", app_dir)
        object.__setattr__(self, "settings_file", app_dir / self.filename)


SAMPLE_SOURCE = (
    "import os,sys\n"
    "def greet(name,greeting='Hello'):\n"
    "    message=greeting+', '+name\n"
    "    return {'text':message,'length':len(message)}\n"
    "\n"
    "print(greet( 'world' ))\n"
)


def default_settings() -> LensSettings:
    defaults: LensSettings = {
        "format": {
            "line_length": 88,
            "indent_width": 4,
            "quote_style": "double",
            "skip_magic_trailing_comma": False,
            "interpreter": "",
        },
        "view": {
            "active": "formatted",
        },
        "sync": {
            "enabled": True,
            "debounce_ms": 150,
        },
        "editor": {
            "font_size": 11,
            "font_family": "",
        },
        "window": {
            "width": 1280,
            "height": 800,
            "splitter_sizes": [],
        },
        "session": {
            "last_source": SAMPLE_SOURCE,
            "last_file": "",
        },
    }
    return deepcopy(defaults)
