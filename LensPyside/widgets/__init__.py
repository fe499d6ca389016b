"""Reusable PySide widgets shared across projects."""

from .sync_code_editor import SyncCodeEditor

__all__ = ["SyncCodeEditor"]
