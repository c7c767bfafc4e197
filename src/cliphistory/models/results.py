from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from cliphistory.models.entry import Entry

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from cliphistory.errors import PersistenceError


class Outcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    CLEARED = "cleared"
    UPDATED = "updated"
    RESTORED = "restored"
    REJECTED = "rejected"
    LOADED = "loaded"
    CONFIGURED = "configured"


_UNCHANGED = {Outcome.DUPLICATE, Outcome.NOT_FOUND, Outcome.RESTORED, Outcome.REJECTED}


@dataclass(frozen=True)
class HistoryResult:
    """Outcome of a store operation.

    ``error`` holds a persistence failure that was reported but not rolled
    back: the in-memory state already reflects the operation.
    """
    outcome: Outcome
    entry: Optional[Entry] = None
    evicted: Tuple[Entry, ...] = ()
    error: Optional["PersistenceError"] = None

    @property
    def changed(self) -> bool:
        if self.outcome == Outcome.CONFIGURED:
            return bool(self.evicted)
        return self.outcome not in _UNCHANGED

    @property
    def persisted(self) -> bool:
        return self.error is None


class EventKind(str, Enum):
    CAPTURED = "captured"
    DELETED = "deleted"
    EVICTED = "evicted"
    CLEARED = "cleared"
    STARRED = "starred"
    UNSTARRED = "unstarred"
    LOADED = "loaded"
    RESTORED = "restored"


@dataclass(frozen=True)
class HistoryEvent:
    """Change notification delivered to store subscribers."""
    kind: EventKind
    entry: Optional[Entry] = None
