"""Helpers for timezone-naive timestamps."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    All instants in the ledgers are naive and compared by absolute time.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["utcnow"]
