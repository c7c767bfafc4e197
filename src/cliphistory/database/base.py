from abc import ABC, abstractmethod
from typing import Iterable, List

from cliphistory.models import Entry


def sort_for_display(entries: Iterable[Entry]) -> List[Entry]:
    """Order entries starred first, then by capture time, newest first."""
    ordered = sorted(entries, key=lambda e: e.captured_at, reverse=True)
    ordered.sort(key=lambda e: not e.starred)
    return ordered


class HistoryStorage(ABC):
    """Durable record store for history entries, keyed by entry id.

    Implementations raise :class:`cliphistory.errors.PersistenceError` for any
    backend failure.
    """

    @abstractmethod
    def upsert(self, entry: Entry) -> None:
        pass

    @abstractmethod
    def delete(self, entry_id: str) -> bool:
        pass

    def delete_many(self, entry_ids: Iterable[str]) -> int:
        return sum(1 for entry_id in entry_ids if self.delete(entry_id))

    @abstractmethod
    def delete_all(self) -> None:
        pass

    @abstractmethod
    def load_all(self) -> List[Entry]:
        """Return every stored entry, starred first, newest first."""

    def close(self) -> None:
        pass

    def __enter__(self) -> "HistoryStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
