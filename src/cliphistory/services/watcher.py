import hashlib
import logging
import threading
from typing import List, Optional, Sequence

from cliphistory.clipboard.base import ClipboardSnapshot, ClipboardSource
from cliphistory.models import HistoryResult, Outcome
from cliphistory.services.history_service import ClipboardHistory

logger = logging.getLogger(__name__)


def fingerprint(snapshots: Sequence[ClipboardSnapshot]) -> Optional[str]:
    if not snapshots:
        return None
    digest = hashlib.md5()
    for snapshot in snapshots:
        digest.update(snapshot.kind.value.encode("utf-8"))
        digest.update(b"\0")
        digest.update(snapshot.content.encode("utf-8"))
        digest.update(b"\0")
        digest.update(snapshot.payload or b"")
        digest.update(b"\0")
    return digest.hexdigest()


class ClipboardWatcher:
    """Polls a clipboard source and feeds changes into a history.

    The interval is re-read from ``history.poll_interval`` on every cycle, so
    :meth:`ClipboardHistory.set_poll_interval` takes effect while running.
    """

    def __init__(
        self,
        history: ClipboardHistory,
        source: ClipboardSource,
        auto_start: bool = False,
    ) -> None:
        self._history = history
        self._source = source
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._is_running = False
        self._last_fingerprint: Optional[str] = None

        if auto_start:
            self.start()

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ---------------------------------------------------------------------
    # Lifecycle management
    # ---------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._is_running:
                logger.debug("ClipboardWatcher already running")
                return

            logger.info("Starting clipboard polling (interval=%ss)", self._history.poll_interval)
            self._stop_event.clear()
            self._is_running = True
            self._poll_thread = threading.Thread(
                target=self._poll_loop, name="clipboard-watcher", daemon=True)
            self._poll_thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._is_running:
                return

            logger.info("Stopping clipboard polling")
            self._is_running = False
            self._stop_event.set()

        # join outside the lock
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=1.0)
            self._poll_thread = None

    def run_forever(self) -> None:
        """Poll in the background and block until :meth:`stop` or Ctrl+C."""
        try:
            if not self._is_running:
                self.start()

            while not self._stop_event.wait(timeout=self._history.poll_interval):
                continue
        except KeyboardInterrupt:
            logger.info("Clipboard polling interrupted by user")
        finally:
            self.stop()

    # ---------------------------------------------------------------------
    # Polling
    # ---------------------------------------------------------------------
    def poll_once(self) -> List[HistoryResult]:
        """Read the source once and capture its snapshots if they changed."""
        try:
            snapshots = self._source.read()
        except Exception:
            logger.exception("Failed to read clipboard")
            return []

        current = fingerprint(snapshots)
        if current == self._last_fingerprint:
            return []
        self._last_fingerprint = current

        results = []
        for snapshot in snapshots:
            result = self._history.capture(snapshot.content, snapshot.kind, snapshot.payload)
            if result.outcome == Outcome.CREATED:
                logger.info("Clipboard copied: %s", snapshot.kind.value)
            results.append(result)
        return results

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Error while capturing clipboard")
            self._stop_event.wait(self._history.poll_interval)

    def __enter__(self) -> "ClipboardWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
