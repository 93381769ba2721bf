"""Error types shared across the hierarchy engine."""

from __future__ import annotations


class UsageError(Exception):
    """A caller bug: the engine was asked to do something it never supports."""
