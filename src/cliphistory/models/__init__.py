from cliphistory.models.entry import ClipKind, Entry, new_entry_id
from cliphistory.models.results import EventKind, HistoryEvent, HistoryResult, Outcome

__all__ = [
    'ClipKind',
    'Entry',
    'EventKind',
    'HistoryEvent',
    'HistoryResult',
    'Outcome',
    'new_entry_id',
]
