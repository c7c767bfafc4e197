"""Persisted record layout for clipboard history entries.

Each entry is stored as a Redis hash::

    <namespace>:clip:<entryId> = {
        "entryId": "i_01HF...",
        "content": "hello",
        "kind": "text" | "image",
        "payload": "<base64>" | "",
        "capturedAt": "2026-10-06T12:45:00.000001+00:00",
        "starred": "1" | "0"
    }

and the ids of all live entries are kept in the set ``<namespace>:clips``.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, field_validator

from cliphistory.models import ClipKind, Entry


class EntryRecord(BaseModel):
    entryId: str
    content: str
    kind: ClipKind
    payload: Optional[bytes] = None
    capturedAt: datetime
    starred: bool = False

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_payload(cls, value):
        if value is None or value == "":
            return None
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"payload is not valid base64: {exc}") from exc

    @field_validator("capturedAt")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryRecord":
        return cls(
            entryId=entry.entry_id,
            content=entry.content,
            kind=entry.kind,
            payload=entry.payload,
            capturedAt=entry.captured_at,
            starred=entry.starred,
        )

    def to_entry(self) -> Entry:
        return Entry(
            entry_id=self.entryId,
            content=self.content,
            kind=self.kind,
            captured_at=self.capturedAt,
            payload=self.payload,
            starred=self.starred,
        )

    def to_mapping(self) -> Dict[str, str]:
        return {
            "entryId": self.entryId,
            "content": self.content,
            "kind": self.kind.value,
            "payload": base64.b64encode(self.payload).decode("utf-8") if self.payload else "",
            "capturedAt": self.capturedAt.isoformat(),
            "starred": "1" if self.starred else "0",
        }
