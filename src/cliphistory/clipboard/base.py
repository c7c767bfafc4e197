import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from cliphistory.models import ClipKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardSnapshot:
    """One representation currently held by a clipboard."""
    content: str
    kind: ClipKind = ClipKind.TEXT
    payload: Optional[bytes] = None


def describe_image(width: int, height: int) -> str:
    return f"Image ({width}x{height})"


class ClipboardSource(ABC):

    @abstractmethod
    def read(self) -> List[ClipboardSnapshot]:
        """Return what the clipboard currently holds; empty when nothing usable."""


class ClipboardSink(ABC):

    @abstractmethod
    def _set_clipboard(self, content: str, kind: ClipKind, payload: Optional[bytes]) -> bool:
        pass

    def set_clipboard(self, content: str, kind: ClipKind, payload: Optional[bytes] = None) -> bool:
        try:
            return self._set_clipboard(content, kind, payload)
        except Exception:
            logger.exception("Failed to set clipboard")
            return False
