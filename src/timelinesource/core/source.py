"""Timeline Record Source — The host-facing adapter.

One ``TimelineRecordSource`` exists per UI attach.  It fetches the backing
items for the host record once, caches the normalized snapshot, and answers
every later page request from that snapshot:

  host request → SnapshotCache (miss → gateway fetch → normalize)
               → pipeline.query → presentation mapper → PageResult

The boundary methods never raise into the host.  Transport failures degrade to
an empty snapshot, a missing record id yields empty pages, and any other
failure yields an empty ``PageResult``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from timelinesource.cache.snapshot import SnapshotCache
from timelinesource.config.settings import SourceSettings
from timelinesource.core import pipeline
from timelinesource.core.presentation import to_display
from timelinesource.gateways.base.exceptions import TransportError
from timelinesource.gateways.base.gateway import RecordGateway
from timelinesource.models.record import NormalizedRecord, RawItem, RecordFields, Snapshot
from timelinesource.models.request import FacetOption, FilterSpec, PageRequest, SourceContext
from timelinesource.models.response import FacetGroupDescriptor, HostDisplayRecord, PageResult, SourceInfo

logger = logging.getLogger(__name__)

FORMATTED_VALUE_SUFFIX = "@OData.Community.Display.V1.FormattedValue"


class NotFoundContext(LookupError):
    """Raised when the record source has no host record id to query for."""


def normalize_record_id(value: Any) -> str | None:
    """Strip braces and whitespace from a GUID-like id and lowercase it."""
    if value is None:
        return None
    text = str(value).strip().strip("{}").strip().lower()
    return text or None


def _column_text(item: RawItem, column: str) -> str | None:
    """Formatted value of ``column`` when the source sent one, else its raw value."""
    value = item.get(f"{column}{FORMATTED_VALUE_SUFFIX}")
    if value is None:
        value = item.get(column)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class TimelineRecordSource:
    """Record source for a timeline widget.

    Attributes:
        settings: Entity, field mapping, search and facet configuration.
        cache: The session's snapshot cache.
        record_id: Normalized host record id, set by ``init``.
    """

    def __init__(self, settings: SourceSettings | None = None) -> None:
        self.settings = settings or SourceSettings()
        self.cache = SnapshotCache()
        self.record_id: str | None = None
        self._gateway: RecordGateway | None = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def init(self, context: SourceContext) -> None:
        """Bind the source to the host record and the gateway.

        Must complete before the first ``get_records_data`` call.
        """
        self.record_id = normalize_record_id(context.record_id) or normalize_record_id(context.fallback_record_id)
        self._gateway = context.gateway
        if self.record_id is None:
            logger.warning("No record id in host context; timeline will stay empty")
        else:
            logger.info("Record source %s bound to record %s", self.settings.name, self.record_id)

    async def close(self) -> None:
        """Release the snapshot when the UI detaches."""
        self.cache.clear()

    def get_record_source_info(self) -> SourceInfo:
        return SourceInfo(name=self.settings.name)

    # ── Records ──────────────────────────────────────────────────────────

    async def get_records_data(self, request: PageRequest, filter_spec: FilterSpec | None = None) -> PageResult:
        """Return one page of records for the host.

        Never raises; on any failure the host receives an empty page.

        Args:
            request: Page size, direction, cursor and echo token.
            filter_spec: Keyword and facet selection.

        Returns:
            The page, with ``more_available`` set when records remain.
        """
        try:
            if self.record_id is None:
                raise NotFoundContext("Record id not found in host context")

            snapshot = await self.cache.get_or_load(self.fetch_all_records)
            window = pipeline.query(
                snapshot,
                request,
                filter_spec,
                search_fields=self.settings.search_fields,
                facet_fields=self.settings.facet_fields,
            )
            return PageResult(
                request_id=request.request_id,
                records=[self.get_record_ux(r) for r in window.records],
                more_available=window.more_available,
            )
        except NotFoundContext:
            logger.error("Record id not found in host context; returning no records")
            return PageResult.empty(request.request_id)
        except Exception:
            logger.error("Failed to build records page %s", request.request_id, exc_info=True)
            return PageResult.empty(request.request_id)

    async def fetch_all_records(self) -> Snapshot:
        """Fetch and normalize every backing item for the bound record.

        Any gateway failure, and a missing gateway, degrade to an empty
        snapshot, which still counts as the session's one fetch.
        """
        if self._gateway is None:
            logger.error("No gateway available for record source %s", self.settings.name)
            return Snapshot()

        predicate = self.build_predicate()
        start = time.monotonic()
        try:
            items = await self._gateway.fetch(self.settings.entity_set, self.settings.fields.select(), predicate)
        except TransportError:
            logger.error("Fetching %s for record %s failed", self.settings.entity_set, self.record_id, exc_info=True)
            return Snapshot()
        except Exception:
            logger.error(
                "Unexpected gateway failure fetching %s for record %s",
                self.settings.entity_set,
                self.record_id,
                exc_info=True,
            )
            return Snapshot()

        snapshot = self.process_records(items)
        logger.info(
            "Fetched %d %s for record %s in %d ms",
            len(snapshot),
            self.settings.entity_set,
            self.record_id,
            int((time.monotonic() - start) * 1000),
        )
        return snapshot

    def build_predicate(self) -> str:
        """OData filter selecting the items that belong to the bound record."""
        predicate = f"{self.settings.regarding_field} eq {self.record_id}"
        if self.settings.extra_filter:
            predicate = f"{predicate} and {self.settings.extra_filter}"
        return predicate

    def process_records(self, items: Iterable[RawItem]) -> Snapshot:
        """Normalize raw items into a snapshot.

        Items without a primary key are dropped, as are later duplicates of an
        id already seen.  A missing creation timestamp falls back to now.
        """
        mapping = self.settings.fields
        now = datetime.now(UTC)
        seen: set[str] = set()
        records: list[NormalizedRecord] = []

        for item in items:
            record_id = _column_text(item, mapping.primary_key) if isinstance(item, dict) else None
            if record_id is None:
                logger.debug("Dropping item without %s", mapping.primary_key)
                continue
            if record_id in seen:
                logger.debug("Dropping duplicate item %s", record_id)
                continue
            seen.add(record_id)

            created_on = item.get(mapping.timestamp)
            fields = RecordFields(
                title=_column_text(item, mapping.title),
                status=_column_text(item, mapping.status),
                recipient=_column_text(item, mapping.recipient),
                tracking=_column_text(item, mapping.tracking),
                created_on=str(created_on) if created_on else None,
            )
            records.append(
                NormalizedRecord(
                    id=record_id,
                    sort_key=str(created_on) if created_on else now.isoformat(),
                    payload=fields.model_dump_json(),
                )
            )

        return Snapshot(records=tuple(records), fetched_at=now)

    # ── Host helpers ─────────────────────────────────────────────────────

    def get_filter_details(self) -> list[FacetGroupDescriptor]:
        """Facet groups available in the host's filter pane.

        Selection made in any group applies globally: the record source
        flattens all selected values before matching.
        """
        return [
            FacetGroupDescriptor(
                name=group.name,
                field=group.field,
                label=group.label or group.name,
                options=[FacetOption(value=o.value, label=o.label or o.value) for o in group.options],
            )
            for group in self.settings.facet_groups
        ]

    def get_record_ux(self, record: NormalizedRecord) -> HostDisplayRecord:
        return to_display(record, icon_url=self.settings.icon_url)
