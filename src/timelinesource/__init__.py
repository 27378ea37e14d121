"""timelinesource — Cached record source for timeline UI widgets."""

__version__ = "0.1.0"
