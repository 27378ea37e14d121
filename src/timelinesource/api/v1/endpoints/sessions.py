"""Session endpoints — UI attach and detach.

A timeline host opens a session when the widget attaches to a record and
closes it when the widget goes away.  The session owns the cached snapshot;
closing it discards the cache.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from timelinesource.api.deps import get_sessions
from timelinesource.core.sessions import SessionNotFoundError, SessionRegistry
from timelinesource.models.response import SourceInfo

logger = logging.getLogger(__name__)

router = APIRouter()


class OpenSessionRequest(BaseModel):
    """Host context for a new session."""

    record_id: str | None = Field(default=None, description="Host record identifier (table context id)")
    fallback_record_id: str | None = Field(default=None, description="Legacy page-level record identifier")


class OpenSessionResponse(BaseModel):
    """A newly attached session."""

    session_id: str = Field(description="Identifier used by all later calls")
    source: SourceInfo = Field(description="Record source identification")


@router.post(
    "/sessions",
    response_model=OpenSessionResponse,
    status_code=201,
    summary="Attach a timeline",
    description=(
        "Create a record source bound to the host record. The backing items are "
        "fetched lazily on the first records call and cached for the session."
    ),
)
async def open_session(
    body: OpenSessionRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> OpenSessionResponse:
    session_id, source = await sessions.open(body.record_id, body.fallback_record_id)
    return OpenSessionResponse(session_id=session_id, source=source.get_record_source_info())


@router.delete(
    "/sessions/{session_id}",
    status_code=204,
    summary="Detach a timeline",
)
async def close_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> Response:
    try:
        await sessions.close(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'") from e
    return Response(status_code=204)
