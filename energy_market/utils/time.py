"""
Time utility functions.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC datetime as a naive value (the form SQLite round-trips)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
