"""
MongoDB integration — repository over a Motor collection.

    client = AsyncIOMotorClient(url, tz_aware=True)
    products = MongoRepository(client[db]["products"], Product)

Record field `id` is stored as `_id`; every other field keeps its name.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from combinators import lift as L
from kungfu import Result, Ok, Error
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from storefront.query import (
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
from storefront.repo._types import RepoError, Update


# ═══════════════════════════════════════════════════════════════════════════════
# Compilation
# ═══════════════════════════════════════════════════════════════════════════════


def _name(field: str) -> str:
    return "_id" if field == "id" else field


def to_mongo(f: Filter) -> dict[str, Any]:
    """Translate a filter tree into a Mongo query document."""
    match f:
        case Eq(field, value):
            return {_name(field): value}
        case Ne(field, value):
            return {_name(field): {"$ne": value}}
        case In(field, values):
            return {_name(field): {"$in": list(values)}}
        case Gt(field, value):
            return {_name(field): {"$gt": value}}
        case Gte(field, value):
            return {_name(field): {"$gte": value}}
        case Lt(field, value):
            return {_name(field): {"$lt": value}}
        case Lte(field, value):
            return {_name(field): {"$lte": value}}
        case Regex(field, pattern, ignore_case):
            doc: dict[str, Any] = {"$regex": pattern}
            if ignore_case:
                doc["$options"] = "i"
            return {_name(field): doc}
        case And(children):
            if not children:
                return {}
            return {"$and": [to_mongo(c) for c in children]}
        case Or(children):
            if not children:
                # $or requires a non-empty array
                return {"_id": {"$in": []}}
            return {"$or": [to_mongo(c) for c in children]}
    raise TypeError(f"Unknown filter node: {f!r}")


def to_mongo_sort(sort: Sort) -> list[tuple[str, int]]:
    return [
        (_name(s.field), DESCENDING if s.direction is Direction.DESC else ASCENDING)
        for s in sort
    ]


def to_mongo_update(update: Update) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    if update.assign:
        doc["$set"] = {_name(k): v for k, v in update.assign.items()}
    if update.increment:
        doc["$inc"] = {_name(k): v for k, v in update.increment.items()}
    return doc


def to_document(record: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    for f in dataclasses.fields(record):
        value = getattr(record, f.name)
        doc[_name(f.name)] = list(value) if isinstance(value, tuple) else value
    return doc


def from_document[T](entity: type[T], doc: dict[str, Any]) -> T:
    values: dict[str, Any] = {}
    for f in dataclasses.fields(entity):  # type: ignore[arg-type]
        value = doc.get(_name(f.name))
        values[f.name] = tuple(value) if isinstance(value, list) else value
    return entity(**values)


def _failure(e: Exception) -> RepoError:
    if isinstance(e, DuplicateKeyError):
        return RepoError.duplicate_key(f"Duplicate key: {e.details}", e)
    return RepoError.failure(f"MongoDB operation failed: {e}", e)


# ═══════════════════════════════════════════════════════════════════════════════
# Repository
# ═══════════════════════════════════════════════════════════════════════════════


class MongoRepository[T]:
    """
    Repository over one collection.

    Note: the client should be created with tz_aware=True so timestamps
    come back as aware UTC datetimes.
    """

    def __init__(self, collection: AsyncIOMotorCollection, entity: type[T]) -> None:
        self._collection = collection
        self._entity = entity

    async def find(
        self,
        filter: Filter,
        sort: Sort,
        skip: int,
        limit: int | None,
    ) -> Result[list[T], RepoError]:
        async def run() -> list[dict[str, Any]]:
            cursor = self._collection.find(to_mongo(filter))
            if sort:
                cursor = cursor.sort(to_mongo_sort(sort))
            cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=None)

        match await L.catching_async(run, on_error=_failure):
            case Ok(docs):
                return Ok([from_document(self._entity, d) for d in docs])
            case Error(e):
                return Error(e)

    async def count(self, filter: Filter) -> Result[int, RepoError]:
        return await L.catching_async(
            lambda: self._collection.count_documents(to_mongo(filter)),
            on_error=_failure,
        )

    async def find_one(self, filter: Filter) -> Result[T | None, RepoError]:
        match await L.catching_async(
            lambda: self._collection.find_one(to_mongo(filter)),
            on_error=_failure,
        ):
            case Ok(doc):
                return Ok(from_document(self._entity, doc) if doc is not None else None)
            case Error(e):
                return Error(e)

    async def create(self, record: T) -> Result[T, RepoError]:
        match await L.catching_async(
            lambda: self._collection.insert_one(to_document(record)),
            on_error=_failure,
        ):
            case Ok(_):
                return Ok(record)
            case Error(e):
                return Error(e)

    async def find_one_and_update(
        self, filter: Filter, update: Update
    ) -> Result[T | None, RepoError]:
        match await L.catching_async(
            lambda: self._collection.find_one_and_update(
                to_mongo(filter),
                to_mongo_update(update),
                return_document=ReturnDocument.AFTER,
            ),
            on_error=_failure,
        ):
            case Ok(doc):
                return Ok(from_document(self._entity, doc) if doc is not None else None)
            case Error(e):
                return Error(e)

    async def find_one_and_delete(self, filter: Filter) -> Result[T | None, RepoError]:
        match await L.catching_async(
            lambda: self._collection.find_one_and_delete(to_mongo(filter)),
            on_error=_failure,
        ):
            case Ok(doc):
                return Ok(from_document(self._entity, doc) if doc is not None else None)
            case Error(e):
                return Error(e)

    async def delete_many(self, filter: Filter) -> Result[int, RepoError]:
        match await L.catching_async(
            lambda: self._collection.delete_many(to_mongo(filter)),
            on_error=_failure,
        ):
            case Ok(result):
                return Ok(result.deleted_count)
            case Error(e):
                return Error(e)


__all__ = (
    "to_mongo",
    "to_mongo_sort",
    "to_mongo_update",
    "to_document",
    "from_document",
    "MongoRepository",
)
