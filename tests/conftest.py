from datetime import datetime, timedelta, timezone

import pytest

from cliphistory.clipboard import MemoryClipboard
from cliphistory.database import MemoryHistoryStorage
from cliphistory.errors import PersistenceError
from cliphistory.services import ClipboardHistory


class FakeClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


class FlakyStorage(MemoryHistoryStorage):
    """Memory storage whose writes and reads can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False

    def _check(self, operation: str) -> None:
        if self.failing:
            raise PersistenceError(operation, "storage offline")

    def upsert(self, entry):
        self._check("upsert")
        super().upsert(entry)

    def delete(self, entry_id):
        self._check("delete")
        return super().delete(entry_id)

    def delete_all(self):
        self._check("delete_all")
        super().delete_all()

    def load_all(self):
        self._check("load")
        return super().load_all()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def clipboard():
    return MemoryClipboard()


@pytest.fixture
def history(storage, clipboard, clock):
    return ClipboardHistory(storage, sink=clipboard, clock=clock)

