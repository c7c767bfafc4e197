from typing import Dict, List

from cliphistory.database.base import HistoryStorage, sort_for_display
from cliphistory.models import Entry


class MemoryHistoryStorage(HistoryStorage):
    """Process-local storage used when Redis is disabled and in tests."""

    def __init__(self) -> None:
        self.records: Dict[str, Entry] = {}

    def upsert(self, entry: Entry) -> None:
        self.records[entry.entry_id] = entry

    def delete(self, entry_id: str) -> bool:
        return self.records.pop(entry_id, None) is not None

    def delete_all(self) -> None:
        self.records.clear()

    def load_all(self) -> List[Entry]:
        return sort_for_display(self.records.values())
