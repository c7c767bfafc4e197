"""Clipboard history engine: ordered, deduplicated, capped and starrable."""

from cliphistory.config import HistoryConfig, RedisConfig
from cliphistory.errors import ClipHistoryError, EntryNotFoundError, PersistenceError
from cliphistory.models import ClipKind, Entry, EventKind, HistoryEvent, HistoryResult, Outcome
from cliphistory.services import ClipboardHistory, ClipboardWatcher

__version__ = "0.1.0"

__all__ = [
    'ClipHistoryError',
    'ClipKind',
    'ClipboardHistory',
    'ClipboardWatcher',
    'Entry',
    'EntryNotFoundError',
    'EventKind',
    'HistoryConfig',
    'HistoryEvent',
    'HistoryResult',
    'Outcome',
    'PersistenceError',
    'RedisConfig',
]
