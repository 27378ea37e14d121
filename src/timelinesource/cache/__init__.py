"""Session-scoped snapshot caching."""

from timelinesource.cache.snapshot import SnapshotCache

__all__ = ["SnapshotCache"]
