"""
In-memory evaluation of filters and sorts.

Used by the memory repository; semantics mirror the document store:
a missing (None) field never satisfies a comparison.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from storefront.query._filter import (
    Filter,
    Eq,
    Ne,
    In,
    Gt,
    Gte,
    Lt,
    Lte,
    Regex,
    And,
    Or,
    Sort,
    Direction,
)


def matches(f: Filter, record: Any) -> bool:
    """Evaluate filter against a record's attributes."""
    match f:
        case Eq(field, value):
            return getattr(record, field) == value
        case Ne(field, value):
            return getattr(record, field) != value
        case In(field, values):
            return getattr(record, field) in values
        case Gt(field, value):
            current = getattr(record, field)
            return current is not None and current > value
        case Gte(field, value):
            current = getattr(record, field)
            return current is not None and current >= value
        case Lt(field, value):
            current = getattr(record, field)
            return current is not None and current < value
        case Lte(field, value):
            current = getattr(record, field)
            return current is not None and current <= value
        case Regex(field, pattern, ignore_case):
            current = getattr(record, field)
            if not isinstance(current, str):
                return False
            flags = re.IGNORECASE if ignore_case else 0
            return re.search(pattern, current, flags) is not None
        case And(children):
            return all(matches(child, record) for child in children)
        case Or(children):
            return any(matches(child, record) for child in children)
    raise TypeError(f"Unknown filter node: {f!r}")


def ordered[T](records: Iterable[T], sort: Sort) -> list[T]:
    """Stable multi-key sort: apply keys last-to-first."""
    result = list(records)
    for key in reversed(sort):
        result.sort(
            key=lambda r, name=key.field: getattr(r, name),
            reverse=key.direction is Direction.DESC,
        )
    return result


__all__ = (
    "matches",
    "ordered",
)
