"""Service layer for cliphistory."""

from .history_service import ClipboardHistory
from .watcher import ClipboardWatcher

__all__ = ["ClipboardHistory", "ClipboardWatcher"]
