"""Query Pipeline — Search, facet filter, sort and cursor-paginate a snapshot.

Every call works on a copy of the snapshot's record sequence, in this fixed
order:

  1. search       keyword substring match over the searchable fields
  2. facet filter flattened union of selected values, matched on facet fields
  3. sort         stable, by sort key, ascending or descending
  4. paginate     window after the cursor record, ``page_size`` long

Search and facet filtering run before sorting and paging so that the cursor is
always looked up in the sequence the host is actually paging through.

Records with unreadable payloads never match a search or facet filter, and
records with unparseable sort keys keep their position; no stage raises on a
bad record.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from timelinesource.models.record import MalformedRecordError, NormalizedRecord, RecordFields, Snapshot
from timelinesource.models.request import FilterSpec, PageRequest

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_FIELDS: tuple[str, ...] = ("title", "status", "recipient", "tracking")
DEFAULT_FACET_FIELDS: tuple[str, ...] = ("status",)


class PageWindow(BaseModel):
    """Outcome of the pipeline before presentation mapping."""

    records: list[NormalizedRecord] = Field(default_factory=list, description="Records of the page")
    more_available: bool = Field(default=False, description="Records remain after this page")
    start: int = Field(default=0, description="Index of the first record in the filtered, sorted sequence")
    total: int = Field(default=0, description="Length of the filtered, sorted sequence")


def _read_fields(record: NormalizedRecord) -> RecordFields | None:
    try:
        return record.fields()
    except MalformedRecordError:
        logger.debug("Skipping unreadable payload of record %s", record.id)
        return None


# ── Stages ────────────────────────────────────────────────────────────────


def search_records(
    records: Sequence[NormalizedRecord],
    keyword: str | None,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> list[NormalizedRecord]:
    """Keep records whose searchable text contains ``keyword``, ignoring case.

    The keyword is matched as given, surrounding whitespace included.  Only
    ``None`` or an empty string returns all records.  The result preserves
    input order.
    """
    if not keyword:
        return list(records)
    needle = keyword.casefold()

    matched: list[NormalizedRecord] = []
    for record in records:
        parsed = _read_fields(record)
        if parsed is not None and needle in parsed.searchable_text(tuple(fields)).casefold():
            matched.append(record)
    return matched


def filter_by_facets(
    records: Sequence[NormalizedRecord],
    filter_spec: FilterSpec | None,
    fields: Sequence[str] = DEFAULT_FACET_FIELDS,
) -> list[NormalizedRecord]:
    """Keep records whose facet field value is among the selected values.

    Selections are flattened across all groups before matching (see
    ``FilterSpec``).  With nothing selected every record is kept.
    """
    selected = filter_spec.selected_values() if filter_spec else set()
    if not selected:
        return list(records)

    matched: list[NormalizedRecord] = []
    for record in records:
        parsed = _read_fields(record)
        if parsed is not None and any(parsed.value(f) in selected for f in fields):
            matched.append(record)
    return matched


def sort_records(records: Sequence[NormalizedRecord], ascending: bool) -> list[NormalizedRecord]:
    """Stable sort by sort key.

    Records whose sort key does not parse stay in their original slots and
    keep their order relative to each other; only the parseable records are
    reordered, into the slots the parseable records occupied.
    """
    result = list(records)
    keyed = [(i, r.sort_timestamp()) for i, r in enumerate(result)]
    slots = [i for i, ts in keyed if ts is not None]
    ordered = sorted(
        ((ts, result[i]) for i, ts in keyed if ts is not None),
        key=lambda pair: pair[0],
        reverse=not ascending,
    )
    for slot, (_, record) in zip(slots, ordered, strict=True):
        result[slot] = record
    return result


def cursor_start(records: Sequence[NormalizedRecord], cursor: str | None) -> int:
    """Index at which the page after ``cursor`` begins.

    A missing cursor, or one no longer present in ``records`` (for example
    because a filter removed it), restarts at 0.
    """
    if not cursor:
        return 0
    for index, record in enumerate(records):
        if record.id == cursor:
            return index + 1
    logger.debug("Cursor %s not in current result set, restarting at the top", cursor)
    return 0


def paginate(records: Sequence[NormalizedRecord], page_size: int, cursor: str | None = None) -> PageWindow:
    """Slice ``page_size`` records after ``cursor``."""
    start = cursor_start(records, cursor)
    page = list(records[start : start + page_size])
    return PageWindow(
        records=page,
        more_available=len(records) > start + len(page),
        start=start,
        total=len(records),
    )


# ── Entry point ───────────────────────────────────────────────────────────


def query(
    snapshot: Snapshot,
    page_request: PageRequest,
    filter_spec: FilterSpec | None = None,
    *,
    search_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
    facet_fields: Sequence[str] = DEFAULT_FACET_FIELDS,
) -> PageWindow:
    """Run search, facet filter, sort and pagination over ``snapshot``.

    The snapshot itself is never modified.

    Args:
        snapshot: Cached records.
        page_request: Page size, direction and cursor.
        filter_spec: Keyword and facet selection; None means unfiltered.
        search_fields: Record fields the keyword is matched against.
        facet_fields: Record fields the selected facet values are matched against.

    Returns:
        The page window over the filtered, sorted sequence.
    """
    working = list(snapshot.records)
    working = search_records(working, filter_spec.keyword if filter_spec else None, search_fields)
    working = filter_by_facets(working, filter_spec, facet_fields)
    working = sort_records(working, page_request.ascending)
    window = paginate(working, page_request.page_size, page_request.cursor)

    logger.debug(
        "Pipeline: %d cached -> %d filtered, page [%d:%d], more=%s",
        len(snapshot),
        window.total,
        window.start,
        window.start + len(window.records),
        window.more_available,
    )
    return window
