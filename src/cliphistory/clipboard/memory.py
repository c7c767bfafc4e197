from typing import List, Optional

from cliphistory.clipboard.base import ClipboardSink, ClipboardSnapshot, ClipboardSource
from cliphistory.models import ClipKind


class MemoryClipboard(ClipboardSource, ClipboardSink):
    """In-process clipboard holding at most one text and one image."""

    def __init__(self) -> None:
        self.text: Optional[str] = None
        self.image: Optional[ClipboardSnapshot] = None

    def copy_text(self, text: str) -> None:
        self.text = text
        self.image = None

    def copy_image(self, data: bytes, description: str) -> None:
        self.text = None
        self.image = ClipboardSnapshot(content=description, kind=ClipKind.IMAGE, payload=data)

    def read(self) -> List[ClipboardSnapshot]:
        snapshots = []
        if self.text:
            snapshots.append(ClipboardSnapshot(content=self.text))
        if self.image is not None:
            snapshots.append(self.image)
        return snapshots

    def _set_clipboard(self, content: str, kind: ClipKind, payload: Optional[bytes]) -> bool:
        if kind == ClipKind.TEXT:
            self.copy_text(content)
            return True
        if payload is None:
            return False
        self.copy_image(payload, content)
        return True
