"""Single JSON settings file with defaults filled in and dotted-key access."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger(__name__)


class SettingsStoreError(RuntimeError):
    """Raised when the settings file cannot be written."""


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``data`` with every key missing from it copied in from ``defaults``.

    Nested dictionaries are merged key by key; values already present in
    ``data`` win, including values of a different type than the default.
    """
    merged = deepcopy(dict(data))
    for key, fallback in defaults.items():
        present = merged.get(key)
        if key not in merged:
            merged[key] = deepcopy(fallback)
        elif isinstance(present, dict) and isinstance(fallback, dict):
            merged[key] = deep_merge_defaults(present, fallback)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    node: Any = data
    for part in key.split(".") if key else ():
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Settings key cannot be empty.")
    *parents, leaf = key.split(".")
    node = data
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value


class JsonSettingsStore:
    def __init__(self, path: Path, defaults: Mapping[str, Any], *, persistent: bool = True) -> None:
        self.path = Path(path)
        self.defaults: dict[str, Any] = deepcopy(dict(defaults))
        self.persistent = bool(persistent)
        self.data: dict[str, Any] = {}
        self.dirty = False
        self.last_error: str | None = None

    def _read(self) -> dict[str, Any]:
        """Parsed file contents; raises ``ValueError`` for anything but a JSON object."""
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"Settings root in '{self.path}' must be a JSON object, found {type(raw).__name__}.")
        return raw

    def load(self) -> dict[str, Any]:
        self.last_error = None
        on_disk: dict[str, Any] = {}
        first_run = self.persistent and not self.path.exists()
        if self.persistent and not first_run:
            try:
                on_disk = self._read()
            except (OSError, ValueError) as exc:
                # The broken file stays as it is; defaults are used until it is fixed.
                self.last_error = str(exc)
                log.warning("could not read settings from %s: %s", self.path, exc)
        self.data = deep_merge_defaults(on_disk, self.defaults)
        self.dirty = first_run
        return self.data

    def save(self) -> None:
        if self.persistent:
            payload = json.dumps(self.data, indent=2, sort_keys=True)
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(payload, encoding="utf-8")
            except OSError as exc:
                raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
            self.last_error = None
        self.dirty = False

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        if self.get(key) == value:
            return False
        dot_set(self.data, key, value)
        self.dirty = True
        return True
