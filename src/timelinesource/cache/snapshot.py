"""Snapshot Cache — Holds the one fetched snapshot of a record source.

The cache is owned by a single record source (one UI attach).  It is loaded at
most once: concurrent callers that find it empty wait on the same in-flight
load instead of starting their own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from timelinesource.models.record import Snapshot

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Awaitable[Snapshot]]


class SnapshotCache:
    """Session-scoped holder of a ``Snapshot``.

    Once set, the cache never reverts to empty except through ``clear()``,
    which is reserved for teardown of the owning record source.
    """

    def __init__(self) -> None:
        self._snapshot: Snapshot | None = None
        self._lock = asyncio.Lock()
        self.loads = 0

    def get(self) -> Snapshot | None:
        """Return the current snapshot, or None before the first load."""
        return self._snapshot

    def set(self, snapshot: Snapshot) -> None:
        """Install ``snapshot``, replacing any prior one wholesale."""
        self._snapshot = snapshot

    def clear(self) -> None:
        """Drop the snapshot (owner teardown only)."""
        self._snapshot = None

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    async def get_or_load(self, loader: SnapshotLoader) -> Snapshot:
        """Return the cached snapshot, running ``loader`` only on the first miss.

        Callers that arrive while a load is in flight block on the lock and
        then find the snapshot installed by the first caller.

        Args:
            loader: Coroutine function producing the snapshot. It is expected
                to degrade failures to an empty snapshot rather than raise.

        Returns:
            The cached snapshot.
        """
        if self._snapshot is not None:
            return self._snapshot

        async with self._lock:
            if self._snapshot is None:
                self.loads += 1
                snapshot = await loader()
                self.set(snapshot)
                logger.debug("Snapshot cached with %d records", len(snapshot))
            return self._snapshot
