"""Presentation Mapper — NormalizedRecord to the host's display shape."""

from __future__ import annotations

from timelinesource.models.record import MalformedRecordError, NormalizedRecord
from timelinesource.models.response import HostDisplayRecord

PLACEHOLDER = "(unavailable)"
NO_TITLE = "(no subject)"


def to_display(record: NormalizedRecord, *, icon_url: str | None = None) -> HostDisplayRecord:
    """Render one record as a timeline card.

    Never raises: a record whose payload cannot be read is rendered with
    placeholder text so a single bad record does not blank the page.
    """
    try:
        fields = record.fields()
    except MalformedRecordError:
        return HostDisplayRecord(
            id=record.id,
            sort_date_value=record.sort_key,
            header=PLACEHOLDER,
            body=PLACEHOLDER,
            icon_url=icon_url,
            data=record.payload,
        )

    body_lines = []
    if fields.recipient:
        body_lines.append(f"To: {fields.recipient}")
    if fields.tracking:
        body_lines.append(f"Tracking: {fields.tracking}")

    return HostDisplayRecord(
        id=record.id,
        sort_date_value=record.sort_key,
        header=fields.title or NO_TITLE,
        body="\n".join(body_lines),
        footer=fields.status or "",
        icon_url=icon_url,
        data=record.payload,
    )
