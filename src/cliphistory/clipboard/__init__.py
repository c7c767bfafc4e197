from cliphistory.clipboard.base import (
    ClipboardSink,
    ClipboardSnapshot,
    ClipboardSource,
    describe_image,
)
from cliphistory.clipboard.memory import MemoryClipboard

__all__ = [
    'ClipboardSink',
    'ClipboardSnapshot',
    'ClipboardSource',
    'MemoryClipboard',
    'describe_image',
]
