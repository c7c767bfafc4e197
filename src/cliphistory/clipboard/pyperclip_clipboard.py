import logging
from typing import List, Optional

import pyperclip

from cliphistory.clipboard.base import ClipboardSink, ClipboardSnapshot, ClipboardSource
from cliphistory.models import ClipKind

logger = logging.getLogger(__name__)


class PyperclipClipboard(ClipboardSource, ClipboardSink):
    """Text-only system clipboard access through pyperclip."""

    def read(self) -> List[ClipboardSnapshot]:
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            logger.debug("Clipboard read failed: %s", exc)
            return []
        if not text:
            return []
        return [ClipboardSnapshot(content=text)]

    def _set_clipboard(self, content: str, kind: ClipKind, payload: Optional[bytes]) -> bool:
        if kind != ClipKind.TEXT:
            logger.warning("pyperclip cannot place %s data on the clipboard", kind.value)
            return False
        try:
            pyperclip.copy(content)
        except pyperclip.PyperclipException as exc:
            logger.error("Clipboard write failed: %s", exc)
            return False
        return True
