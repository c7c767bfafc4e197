"""Clipboard history store.

Owns the ordered, deduplicated and size-capped sequence of captured clipboard
entries. Callers (the clipboard watcher, a CLI, a UI) share one explicitly
constructed instance; presentation layers follow changes through
:meth:`ClipboardHistory.subscribe` instead of reading shared state.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from cliphistory.clipboard.base import ClipboardSink
from cliphistory.config import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_POLL_INTERVAL,
    HistoryConfig,
    validate_max_entries,
    validate_poll_interval,
)
from cliphistory.database.base import HistoryStorage, sort_for_display
from cliphistory.errors import EntryNotFoundError, PersistenceError
from cliphistory.models import (
    ClipKind,
    Entry,
    EventKind,
    HistoryEvent,
    HistoryResult,
    Outcome,
    new_entry_id,
)

logger = logging.getLogger(__name__)

Listener = Callable[[HistoryEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClipboardHistory:
    """Thread-safe clipboard history.

    Invariants held after every operation:

    * starred entries precede unstarred ones, and each group is ordered by
      capture time, newest first;
    * no two entries share the same ``(content, kind)``;
    * there are never more than ``max_entries`` entries. Overflow is cut from
      the tail of the ordered sequence, whatever the starred state.

    Storage failures never undo an in-memory change. They are logged and
    returned in :attr:`HistoryResult.error`.
    """

    def __init__(
        self,
        storage: HistoryStorage,
        sink: Optional[ClipboardSink] = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._storage = storage
        self._sink = sink
        self._max_entries = validate_max_entries(max_entries)
        self._poll_interval = validate_poll_interval(poll_interval)
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._entries: List[Entry] = []
        self._listeners: List[Listener] = []
        self._last_captured_at: Optional[datetime] = None

    @classmethod
    def from_config(
        cls,
        config: HistoryConfig,
        storage: HistoryStorage,
        sink: Optional[ClipboardSink] = None,
    ) -> "ClipboardHistory":
        return cls(
            storage,
            sink=sink,
            max_entries=config.max_entries,
            poll_interval=config.poll_interval,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    def set_max_entries(self, max_entries: int) -> HistoryResult:
        """Change the capacity; lowering it evicts from the tail right away."""
        max_entries = validate_max_entries(max_entries)
        with self._lock:
            self._max_entries = max_entries
            evicted = self._trim()
            error = self._persist(deleted=evicted)
        if evicted:
            logger.info("Capacity lowered to %d, evicted %d entries", max_entries, len(evicted))
        self._notify([HistoryEvent(EventKind.EVICTED, entry) for entry in evicted])
        return HistoryResult(Outcome.CONFIGURED, evicted=evicted, error=error)

    def set_poll_interval(self, seconds: float) -> HistoryResult:
        seconds = validate_poll_interval(seconds)
        with self._lock:
            self._poll_interval = seconds
        logger.debug("Poll interval set to %.3fs", seconds)
        return HistoryResult(Outcome.CONFIGURED)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> HistoryResult:
        """Rebuild the in-memory sequence from storage.

        Records that would break an invariant (duplicates, overflow) are
        dropped and removed from storage as well.
        """
        with self._lock:
            try:
                records = self._storage.load_all()
            except PersistenceError as exc:
                logger.warning("Could not load clipboard history: %s", exc)
                self._entries = []
                self._last_captured_at = None
                return HistoryResult(Outcome.LOADED, error=exc)

            kept: List[Entry] = []
            dropped: List[Entry] = []
            seen_ids = set()
            seen_keys = set()
            for entry in sort_for_display(records):
                if entry.entry_id in seen_ids or entry.dedup_key in seen_keys:
                    dropped.append(entry)
                    continue
                seen_ids.add(entry.entry_id)
                seen_keys.add(entry.dedup_key)
                kept.append(entry)

            self._entries = kept
            evicted = self._trim()
            self._last_captured_at = max((e.captured_at for e in kept), default=None)
            error = self._persist(deleted=[*dropped, *evicted])
            count = len(self._entries)

        logger.info("Loaded %d clipboard entries", count)
        self._notify([HistoryEvent(EventKind.LOADED)])
        return HistoryResult(Outcome.LOADED, evicted=evicted, error=error)

    def close(self) -> None:
        self._storage.close()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def capture(
        self,
        content: str,
        kind: ClipKind = ClipKind.TEXT,
        payload: Optional[bytes] = None,
    ) -> HistoryResult:
        """Record a clipboard snapshot unless an equal one is already held."""
        kind = ClipKind(kind)
        with self._lock:
            if any(e.content == content and e.kind == kind for e in self._entries):
                logger.debug("Skipping duplicate %s clip", kind.value)
                return HistoryResult(Outcome.DUPLICATE)

            entry = Entry(
                entry_id=self._new_id(),
                content=content,
                kind=kind,
                captured_at=self._next_timestamp(),
                payload=payload,
            )
            self._insert(entry)
            evicted = self._trim()
            survived = entry not in evicted
            error = self._persist(
                upserted=[entry] if survived else [],
                deleted=[e for e in evicted if e is not entry],
            )

        logger.info("Captured %s clip %s", kind.value, entry.entry_id)
        if evicted:
            logger.debug("Evicted %d entries over capacity %d", len(evicted), self._max_entries)
        events = [HistoryEvent(EventKind.CAPTURED, entry)]
        events.extend(HistoryEvent(EventKind.EVICTED, e) for e in evicted)
        self._notify(events)
        return HistoryResult(Outcome.CREATED, entry=entry, evicted=evicted, error=error)

    def delete(self, entry_id: str) -> HistoryResult:
        with self._lock:
            index = self._index_of(entry_id)
            if index is None:
                logger.debug("Delete ignored, no entry %s", entry_id)
                return HistoryResult(Outcome.NOT_FOUND)
            entry = self._entries.pop(index)
            error = self._persist(deleted=[entry])

        self._notify([HistoryEvent(EventKind.DELETED, entry)])
        return HistoryResult(Outcome.DELETED, entry=entry, error=error)

    def clear_all(self) -> HistoryResult:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            try:
                self._storage.delete_all()
                error = None
            except PersistenceError as exc:
                logger.warning("Clipboard history cleared in memory only: %s", exc)
                error = exc

        logger.info("Cleared %d clipboard entries", count)
        self._notify([HistoryEvent(EventKind.CLEARED)])
        return HistoryResult(Outcome.CLEARED, error=error)

    def toggle_starred(self, entry_id: str) -> HistoryResult:
        with self._lock:
            index = self._index_of(entry_id)
            if index is None:
                raise EntryNotFoundError(entry_id)
            current = self._entries.pop(index)
            entry = current.with_starred(not current.starred)
            self._insert(entry)
            error = self._persist(upserted=[entry])

        kind = EventKind.STARRED if entry.starred else EventKind.UNSTARRED
        logger.debug("Entry %s %s", entry_id, kind.value)
        self._notify([HistoryEvent(kind, entry)])
        return HistoryResult(Outcome.UPDATED, entry=entry, error=error)

    def restore(self, entry_id: str) -> HistoryResult:
        """Put an entry back on the clipboard sink; the history is unchanged."""
        with self._lock:
            entry = self.get(entry_id)
            if self._sink is None:
                logger.warning("No clipboard sink configured, cannot restore %s", entry_id)
                return HistoryResult(Outcome.REJECTED, entry=entry)
            placed = self._sink.set_clipboard(entry.content, entry.kind, entry.payload)

        if not placed:
            logger.warning("Clipboard rejected %s entry %s", entry.kind.value, entry_id)
            return HistoryResult(Outcome.REJECTED, entry=entry)
        self._notify([HistoryEvent(EventKind.RESTORED, entry)])
        return HistoryResult(Outcome.RESTORED, entry=entry)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query(self, filter_text: str = "") -> List[Entry]:
        """Entries in display order, optionally filtered case-insensitively."""
        with self._lock:
            return [e for e in self._entries if e.matches(filter_text)]

    def get(self, entry_id: str) -> Entry:
        with self._lock:
            index = self._index_of(entry_id)
            if index is None:
                raise EntryNotFoundError(entry_id)
            return self._entries[index]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return any(e.entry_id == entry_id for e in self._entries)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change events; returns an unsubscribe hook."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, events: Iterable[HistoryEvent]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for event in events:
            for listener in listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("History listener failed on %s event", event.kind.value)

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------
    def _index_of(self, entry_id: str) -> Optional[int]:
        for index, entry in enumerate(self._entries):
            if entry.entry_id == entry_id:
                return index
        return None

    def _new_id(self) -> str:
        entry_id = new_entry_id()
        while self._index_of(entry_id) is not None:
            entry_id = new_entry_id()
        return entry_id

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if self._last_captured_at is not None and now <= self._last_captured_at:
            now = self._last_captured_at + timedelta(microseconds=1)
        self._last_captured_at = now
        return now

    def _insert(self, entry: Entry) -> None:
        for index, other in enumerate(self._entries):
            if entry.precedes(other):
                self._entries.insert(index, entry)
                return
        self._entries.append(entry)

    def _trim(self) -> Tuple[Entry, ...]:
        if len(self._entries) <= self._max_entries:
            return ()
        evicted = tuple(self._entries[self._max_entries:])
        del self._entries[self._max_entries:]
        return evicted

    def _persist(
        self,
        upserted: Sequence[Entry] = (),
        deleted: Sequence[Entry] = (),
    ) -> Optional[PersistenceError]:
        try:
            for entry in upserted:
                self._storage.upsert(entry)
            if deleted:
                self._storage.delete_many(e.entry_id for e in deleted)
        except PersistenceError as exc:
            logger.warning("Clipboard history not persisted: %s", exc)
            return exc
        return None
