"""Controllers used by the main lens window."""

from .cursor_sync_controller import (
    CursorSyncController,
    CursorSyncMapping,
    SyncFocus,
    SyncOutcome,
    SyncPane,
)

__all__ = [
    "CursorSyncController",
    "CursorSyncMapping",
    "SyncFocus",
    "SyncOutcome",
    "SyncPane",
]
