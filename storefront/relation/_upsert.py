"""
Unique-relation upserter — add-or-increment under concurrent writers.

Protocol for add_or_increment(user, product, delta):

    read (user, product)
      found     → capacity check → guarded atomic increment
      not found → capacity check → create
                    DUPLICATE_KEY → re-read once → guarded atomic increment
                                    (still missing → INTERNAL, never looped)

The store's unique (user_id, product_id) constraint is the only
concurrency mechanism; nothing here locks.
"""

from __future__ import annotations

import logging

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront._types import utcnow
from storefront.paging import storage_failure
from storefront.query import Filter, Eq, Lte, all_of
from storefront.relation._types import (
    Capacity,
    UpsertOutcome,
    Relation,
    QuantityRelation,
    QuantityFactory,
    Factory,
)
from storefront.repo import Repository, Update

logger = logging.getLogger(__name__)


def pair(user_id: ObjectId, product_id: ObjectId) -> Filter:
    return all_of(Eq("user_id", user_id), Eq("product_id", product_id))


def owned(relation_id: ObjectId, user_id: ObjectId) -> Filter:
    """Scope a single relation to its owner."""
    return all_of(Eq("id", relation_id), Eq("user_id", user_id))


def _lost_record(user_id: ObjectId, product_id: ObjectId) -> CatalogError:
    logger.error(
        "Duplicate key reported but no relation found for user=%s product=%s",
        user_id,
        product_id,
    )
    return CatalogError.internal("Relation vanished after duplicate-key conflict")


# ═══════════════════════════════════════════════════════════════════════════════
# Add Or Increment
# ═══════════════════════════════════════════════════════════════════════════════


async def add_or_increment[T: QuantityRelation](
    repo: Repository[T],
    user_id: ObjectId,
    product_id: ObjectId,
    delta: int,
    capacity: Capacity,
    make: QuantityFactory[T],
) -> Result[UpsertOutcome[T], CatalogError]:
    """
    Create the (user, product) relation with quantity=delta, or add delta
    to the existing one. Concurrent callers converge on a single record.
    """
    if delta < 1:
        return Error(CatalogError.invalid_request("Quantity must be at least 1"))

    match await repo.find_one(pair(user_id, product_id)):
        case Ok(existing):
            pass
        case Error(e):
            return Error(storage_failure(e))

    if existing is not None:
        return await _increment(repo, existing, delta, capacity)

    if not capacity.allows(delta):
        return Error(CatalogError.capacity_exceeded())

    match await repo.create(make(user_id, product_id, delta)):
        case Ok(created):
            return Ok(UpsertOutcome(created, created=True))
        case Error(e) if e.is_duplicate_key:
            logger.info(
                "Concurrent create for user=%s product=%s, retrying as increment",
                user_id,
                product_id,
            )
        case Error(e):
            return Error(storage_failure(e))

    match await repo.find_one(pair(user_id, product_id)):
        case Ok(None):
            return Error(_lost_record(user_id, product_id))
        case Ok(winner):
            return await _increment(repo, winner, delta, capacity)
        case Error(e):
            return Error(storage_failure(e))


async def _increment[T: QuantityRelation](
    repo: Repository[T],
    existing: T,
    delta: int,
    capacity: Capacity,
) -> Result[UpsertOutcome[T], CatalogError]:
    if not capacity.allows(existing.quantity + delta):
        return Error(CatalogError.capacity_exceeded())

    guard: Filter = Eq("id", existing.id)
    if capacity.limit is not None:
        guard = all_of(guard, Lte("quantity", capacity.limit - delta))

    patch = Update(assign={"updated_at": utcnow()}, increment={"quantity": delta})

    match await repo.find_one_and_update(guard, patch):
        case Ok(None):
            pass
        case Ok(updated):
            return Ok(UpsertOutcome(updated, created=False))
        case Error(e):
            return Error(storage_failure(e))

    # Guard missed: a concurrent increment used the capacity, or a delete won.
    match await repo.find_one(Eq("id", existing.id)):
        case Ok(None):
            return Error(CatalogError.not_found("Item no longer exists"))
        case Ok(_):
            return Error(CatalogError.capacity_exceeded())
        case Error(e):
            return Error(storage_failure(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Add Unique
# ═══════════════════════════════════════════════════════════════════════════════


async def add_unique[T: Relation](
    repo: Repository[T],
    user_id: ObjectId,
    product_id: ObjectId,
    make: Factory[T],
) -> Result[UpsertOutcome[T], CatalogError]:
    """Create the (user, product) relation unless it exists; return it either way."""
    match await repo.find_one(pair(user_id, product_id)):
        case Ok(None):
            pass
        case Ok(existing):
            return Ok(UpsertOutcome(existing, created=False))
        case Error(e):
            return Error(storage_failure(e))

    match await repo.create(make(user_id, product_id)):
        case Ok(created):
            return Ok(UpsertOutcome(created, created=True))
        case Error(e) if e.is_duplicate_key:
            pass
        case Error(e):
            return Error(storage_failure(e))

    match await repo.find_one(pair(user_id, product_id)):
        case Ok(None):
            return Error(_lost_record(user_id, product_id))
        case Ok(winner):
            return Ok(UpsertOutcome(winner, created=False))
        case Error(e):
            return Error(storage_failure(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Single-Row Operations — scoped by (relation_id, user_id)
# ═══════════════════════════════════════════════════════════════════════════════


async def get_owned[T: Relation](
    repo: Repository[T],
    relation_id: ObjectId,
    user_id: ObjectId,
) -> Result[T, CatalogError]:
    match await repo.find_one(owned(relation_id, user_id)):
        case Ok(None):
            return Error(CatalogError.not_found("Item not found"))
        case Ok(record):
            return Ok(record)
        case Error(e):
            return Error(storage_failure(e))


async def set_quantity[T: QuantityRelation](
    repo: Repository[T],
    relation_id: ObjectId,
    user_id: ObjectId,
    quantity: int,
    capacity: Capacity,
) -> Result[T, CatalogError]:
    """Set an exact quantity if the relation exists and belongs to user_id."""
    if quantity < 1:
        return Error(CatalogError.invalid_request("Quantity must be at least 1"))
    if not capacity.allows(quantity):
        return Error(CatalogError.capacity_exceeded())

    patch = Update(assign={"quantity": quantity, "updated_at": utcnow()})
    match await repo.find_one_and_update(owned(relation_id, user_id), patch):
        case Ok(None):
            return Error(CatalogError.not_found("Item not found"))
        case Ok(updated):
            return Ok(updated)
        case Error(e):
            return Error(storage_failure(e))


async def remove[T: Relation](
    repo: Repository[T],
    relation_id: ObjectId,
    user_id: ObjectId,
) -> Result[T, CatalogError]:
    match await repo.find_one_and_delete(owned(relation_id, user_id)):
        case Ok(None):
            return Error(CatalogError.not_found("Item not found"))
        case Ok(removed):
            return Ok(removed)
        case Error(e):
            return Error(storage_failure(e))


async def clear[T: Relation](
    repo: Repository[T],
    user_id: ObjectId,
) -> Result[int, CatalogError]:
    """Delete every relation of user_id. Returns the number deleted."""
    match await repo.delete_many(Eq("user_id", user_id)):
        case Ok(deleted):
            return Ok(deleted)
        case Error(e):
            return Error(storage_failure(e))


__all__ = (
    "pair",
    "owned",
    "add_or_increment",
    "add_unique",
    "get_owned",
    "set_quantity",
    "remove",
    "clear",
)
