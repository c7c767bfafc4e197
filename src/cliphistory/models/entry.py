from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ulid import ULID


class ClipKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


def new_entry_id() -> str:
    return f"i_{ULID()}"


@dataclass(frozen=True)
class Entry:
    """Immutable clipboard history snapshot.

    Starring never mutates an entry in place; the store swaps in a copy made
    with :meth:`with_starred`.
    """
    entry_id: str
    content: str
    kind: ClipKind
    captured_at: datetime
    payload: Optional[bytes] = None
    starred: bool = False

    @property
    def dedup_key(self) -> Tuple[str, ClipKind]:
        return (self.content, self.kind)

    def precedes(self, other: "Entry") -> bool:
        """Starred entries come first, newest first within each group."""
        if self.starred != other.starred:
            return self.starred
        return self.captured_at > other.captured_at

    def with_starred(self, starred: bool) -> "Entry":
        return replace(self, starred=starred)

    def matches(self, filter_text: str) -> bool:
        if not filter_text:
            return True
        return filter_text.casefold() in self.content.casefold()

    def preview(self, width: int = 60) -> str:
        text = self.content.replace("\n", "\\n")
        if len(text) > width:
            return f"{text[:width - 3]}..."
        return text
