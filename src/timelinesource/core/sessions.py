"""Session Registry — One record source per UI attach.

Each attach creates a ``TimelineRecordSource`` with its own snapshot cache;
detaching tears it down.  Nothing is shared between sessions except the
gateway, which holds no per-session state.

Hosts do not always detach (a page reload simply drops the instance), so the
registry also closes sessions that have been idle longer than
``SourceSettings.session_idle_ttl`` and, when ``max_sessions`` is reached,
the least recently used one.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable

from timelinesource.config.settings import SourceSettings
from timelinesource.core.source import TimelineRecordSource
from timelinesource.gateways.base.gateway import RecordGateway
from timelinesource.models.request import SourceContext

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown, closed or expired."""


class SessionRegistry:
    """Owns the record sources of all attached UI sessions.

    Args:
        settings: Record source settings, including the session bounds.
        gateway: Gateway handed to every new record source.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        settings: SourceSettings,
        gateway: RecordGateway | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.gateway = gateway
        self._clock = clock
        # least recently used first
        self._sessions: OrderedDict[str, TimelineRecordSource] = OrderedDict()
        self._last_used: dict[str, float] = {}

    async def open(
        self, record_id: str | None, fallback_record_id: str | None = None
    ) -> tuple[str, TimelineRecordSource]:
        """Create and initialize a record source for a new attach."""
        await self.evict_expired()
        while len(self._sessions) >= self.settings.max_sessions:
            oldest = next(iter(self._sessions))
            await self._discard(oldest, "evicted at capacity")

        source = TimelineRecordSource(self.settings)
        await source.init(
            SourceContext(record_id=record_id, fallback_record_id=fallback_record_id, gateway=self.gateway)
        )
        session_id = f"ses_{uuid.uuid4().hex[:16]}"
        self._sessions[session_id] = source
        self._last_used[session_id] = self._clock()
        logger.info("Opened session %s for record %s", session_id, source.record_id)
        return session_id, source

    async def get(self, session_id: str) -> TimelineRecordSource:
        """Return the session's record source and mark it as used.

        Raises:
            SessionNotFoundError: If the session is unknown or has expired.
        """
        await self.evict_expired()
        try:
            source = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._sessions.move_to_end(session_id)
        self._last_used[session_id] = self._clock()
        return source

    async def close(self, session_id: str) -> None:
        """Tear down the session's record source."""
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        await self._discard(session_id, "closed")

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    async def evict_expired(self) -> int:
        """Close sessions idle for longer than the configured TTL.

        Returns:
            Number of sessions closed.
        """
        deadline = self._clock() - self.settings.session_idle_ttl
        expired: list[str] = []
        for session_id in self._sessions:
            if self._last_used[session_id] >= deadline:
                break
            expired.append(session_id)
        for session_id in expired:
            await self._discard(session_id, "expired")
        return len(expired)

    async def _discard(self, session_id: str, reason: str) -> None:
        source = self._sessions.pop(session_id)
        self._last_used.pop(session_id, None)
        await source.close()
        logger.info("Session %s %s", session_id, reason)

    def __len__(self) -> int:
        return len(self._sessions)
