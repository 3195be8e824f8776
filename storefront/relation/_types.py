"""
Relation types — capacity checks, outcomes, record shape.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from bson import ObjectId


@dataclass(frozen=True, slots=True)
class Capacity:
    """
    Upper bound on a relation's quantity.

    Note: the bound is a point-in-time reading (e.g. current stock);
    it is not kept consistent with concurrent stock changes elsewhere.
    """

    limit: int | None = None

    @staticmethod
    def unbounded() -> Capacity:
        return Capacity(None)

    @staticmethod
    def at_most(limit: int) -> Capacity:
        return Capacity(limit)

    def allows(self, quantity: int) -> bool:
        return self.limit is None or quantity <= self.limit


@dataclass(frozen=True, slots=True)
class UpsertOutcome[T]:
    """Resulting record and whether this call created it."""

    value: T
    created: bool


class Relation(Protocol):
    """Per-user link to a product, unique on (user_id, product_id)."""

    @property
    def id(self) -> ObjectId: ...
    @property
    def user_id(self) -> ObjectId: ...
    @property
    def product_id(self) -> ObjectId: ...


class QuantityRelation(Relation, Protocol):
    @property
    def quantity(self) -> int: ...


type QuantityFactory[T] = Callable[[ObjectId, ObjectId, int], T]
"""(user_id, product_id, quantity) → new record."""

type Factory[T] = Callable[[ObjectId, ObjectId], T]
"""(user_id, product_id) → new record."""


__all__ = (
    "Capacity",
    "UpsertOutcome",
    "Relation",
    "QuantityRelation",
    "QuantityFactory",
    "Factory",
)
