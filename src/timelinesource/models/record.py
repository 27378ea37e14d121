"""Record models — Normalized timeline records and the snapshot that holds them.

A backing-store item (``RawItem``) is an opaque dict.  At fetch time each item
becomes a ``NormalizedRecord``: a stable id, a sort key, and a JSON payload
carrying the typed ``RecordFields`` the pipeline and presentation mapper read.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

RawItem = dict[str, Any]

RECORD_FIELD_NAMES: tuple[str, ...] = ("title", "status", "recipient", "tracking", "created_on")


class MalformedRecordError(ValueError):
    """Raised when a cached record's payload cannot be parsed."""


class RecordFields(BaseModel):
    """Typed view of the fields consumed from a backing-store item.

    Every field is optional; ``None`` is the explicit "unknown/missing" state.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, description="Record title / subject")
    status: str | None = Field(default=None, description="Status label or code")
    recipient: str | None = Field(default=None, description="Recipient")
    tracking: str | None = Field(default=None, description="Tracking code")
    created_on: str | None = Field(default=None, description="Creation timestamp as sent by the source")

    def value(self, name: str) -> str | None:
        """Return the named field, or ``None`` when unknown or missing."""
        if name not in RECORD_FIELD_NAMES:
            return None
        return getattr(self, name)

    def searchable_text(self, names: list[str] | tuple[str, ...]) -> str:
        """Concatenate the present values of ``names`` for keyword matching."""
        return " ".join(v for v in (self.value(n) for n in names) if v)


class NormalizedRecord(BaseModel):
    """One timeline record, created once per raw item and immutable thereafter."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Stable identifier derived from the item's primary key")
    sort_key: str = Field(description="Timestamp the timeline sorts on (ISO 8601 when well-formed)")
    payload: str = Field(description="Serialized RecordFields")

    def fields(self) -> RecordFields:
        """Deserialize the payload.

        Raises:
            MalformedRecordError: If the payload is not a valid RecordFields document.
        """
        try:
            return RecordFields.model_validate_json(self.payload)
        except ValidationError as e:
            raise MalformedRecordError(f"Record '{self.id}' has an unreadable payload") from e

    def sort_timestamp(self) -> float | None:
        """Sort key as a POSIX timestamp, or ``None`` if it cannot be parsed.

        Naive timestamps are interpreted as UTC so that mixed inputs compare.
        """
        return parse_timestamp(self.sort_key)


class Snapshot(BaseModel):
    """All records fetched for one record source, in source order."""

    model_config = ConfigDict(frozen=True)

    records: tuple[NormalizedRecord, ...] = Field(default=(), description="Records in source order")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Time of the fetch")

    def __len__(self) -> int:
        return len(self.records)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.records]


def parse_timestamp(value: str | None) -> float | None:
    """Parse an ISO 8601 timestamp into epoch seconds; ``None`` when unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()
