"""
Filter and sort expressions — storage-agnostic predicate tree.

Adapters compile these into SQL, Mongo query documents, or evaluate them
in memory. Field names are record attribute names (created_at, id, price).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Predicates
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Ne:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class In:
    """Membership. An empty value set matches nothing."""

    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Gt:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Gte:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Lt:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Lte:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Regex:
    """
    Pattern match on a string field.

    Note: pattern is used as-is — callers escape user input first.
    """

    field: str
    pattern: str
    ignore_case: bool = False


@dataclass(frozen=True, slots=True)
class And:
    """Conjunction. And(()) matches every record."""

    children: tuple[Filter, ...]


@dataclass(frozen=True, slots=True)
class Or:
    """Disjunction. Or(()) matches nothing."""

    children: tuple[Filter, ...]


type Filter = Eq | Ne | In | Gt | Gte | Lt | Lte | Regex | And | Or

ALL: Filter = And(())


def all_of(*filters: Filter) -> Filter:
    """AND of filters, flattening match-all children."""
    children = tuple(f for f in filters if f != ALL)
    if not children:
        return ALL
    if len(children) == 1:
        return children[0]
    return And(children)


def any_of(*filters: Filter) -> Filter:
    return Or(tuple(filters))


def is_empty(f: Filter) -> bool:
    """True when the filter imposes no constraint."""
    return f == ALL


# ═══════════════════════════════════════════════════════════════════════════════
# Sort
# ═══════════════════════════════════════════════════════════════════════════════


class Direction(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortField:
    field: str
    direction: Direction = Direction.ASC


type Sort = tuple[SortField, ...]


def sort_by(*fields: tuple[str, Direction]) -> Sort:
    return tuple(SortField(name, direction) for name, direction in fields)


__all__ = (
    "Eq",
    "Ne",
    "In",
    "Gt",
    "Gte",
    "Lt",
    "Lte",
    "Regex",
    "And",
    "Or",
    "Filter",
    "ALL",
    "all_of",
    "any_of",
    "is_empty",
    "Direction",
    "SortField",
    "Sort",
    "sort_by",
)
