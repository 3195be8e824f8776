"""
Core types for storefront.

Re-exports from kungfu + identifiers and UTC time helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime

from bson import ObjectId
from bson.errors import InvalidId

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Alias
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════


def new_id() -> ObjectId:
    """Fresh time-ordered identifier."""
    return ObjectId()


def parse_id(raw: object) -> ObjectId | None:
    """
    Parse a 24-hex identifier. Returns None for anything else.

    Note: ObjectId() also accepts 12-byte strings — those are rejected here,
    only the canonical hex form is valid input.
    """
    if isinstance(raw, ObjectId):
        return raw
    if not isinstance(raw, str) or len(raw) != 24:
        return None
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Time
# ═══════════════════════════════════════════════════════════════════════════════


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utcnow() -> datetime:
    """
    Current instant, UTC, truncated to milliseconds.

    Note: document stores keep millisecond precision — truncating up front
    keeps in-memory records equal to what a read returns.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    # Identifiers
    "ObjectId",
    "new_id",
    "parse_id",
    # Time
    "as_utc",
    "utcnow",
)
