"""Configuration layer."""

from timelinesource.config.settings import Settings

__all__ = ["Settings"]
