from typing import Optional


class ClipHistoryError(Exception):
    """Base class for clipboard history errors."""


class EntryNotFoundError(ClipHistoryError, KeyError):
    def __init__(self, entry_id: str) -> None:
        super().__init__(entry_id)
        self.entry_id = entry_id

    def __str__(self) -> str:
        return f"No clipboard entry with id {self.entry_id!r}"


class PersistenceError(ClipHistoryError):
    """Durable storage failed to read or write history records."""

    def __init__(self, operation: str, message: str, entry_id: Optional[str] = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.entry_id = entry_id
