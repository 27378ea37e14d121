"""Records endpoints — Paged timeline records, filter details and record UX."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from timelinesource.api.deps import get_sessions
from timelinesource.core.sessions import SessionNotFoundError, SessionRegistry
from timelinesource.core.source import TimelineRecordSource
from timelinesource.models.record import NormalizedRecord
from timelinesource.models.request import FilterSpec, PageRequest
from timelinesource.models.response import FacetGroupDescriptor, HostDisplayRecord, PageResult

logger = logging.getLogger(__name__)

router = APIRouter()


class RecordsRequest(BaseModel):
    """Body of a records call."""

    request: PageRequest = Field(default_factory=PageRequest, description="Paging and ordering")
    filter: FilterSpec = Field(default_factory=FilterSpec, description="Keyword and facet selection")


async def _source(session_id: str, sessions: SessionRegistry) -> TimelineRecordSource:
    try:
        return await sessions.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'") from e


@router.post(
    "/sessions/{session_id}/records",
    response_model=PageResult,
    summary="Get a page of timeline records",
    description=(
        "Search, facet-filter, sort and page the session's cached records. "
        "Pass the id of the last record already shown as `request.cursor` to get "
        "the next page; if that record is no longer in the filtered set, paging "
        "restarts at the top.\n\n"
        "Facet selection is global: selected values of all groups are combined "
        "into one set before matching."
    ),
)
async def get_records(
    session_id: str,
    body: RecordsRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> PageResult:
    source = await _source(session_id, sessions)
    return await source.get_records_data(body.request, body.filter)


@router.get(
    "/sessions/{session_id}/filters",
    response_model=list[FacetGroupDescriptor],
    summary="Available facet groups",
)
async def get_filter_details(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> list[FacetGroupDescriptor]:
    return (await _source(session_id, sessions)).get_filter_details()


@router.post(
    "/sessions/{session_id}/records/ux",
    response_model=HostDisplayRecord,
    summary="Render one record",
)
async def get_record_ux(
    session_id: str,
    record: NormalizedRecord,
    sessions: SessionRegistry = Depends(get_sessions),
) -> HostDisplayRecord:
    return (await _source(session_id, sessions)).get_record_ux(record)
