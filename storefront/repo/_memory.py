"""
In-memory repository — dict + asyncio.Lock.

Every call sleeps for `latency` (0 by default) before touching state,
which yields to the event loop: concurrent callers genuinely interleave
between a read and the following write, like against a real store.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Sequence
from typing import Any

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront.query import Filter, Sort, matches, ordered
from storefront.repo._types import RepoError, Update


class MemoryRepository[T]:
    """
    Repository over a dict keyed by record id.

    unique: field-name tuples that must be unique across records,
    e.g. (("user_id", "product_id"),). The id is always unique. String
    values compare case-insensitively, like a case-folding unique index.
    Checked on create and on update.

    Example:
        carts = MemoryRepository[CartItem](unique=[("user_id", "product_id")])
    """

    def __init__(
        self,
        *,
        unique: Sequence[tuple[str, ...]] = (),
        latency: float = 0.0,
    ) -> None:
        self._rows: dict[ObjectId, T] = {}
        self._unique = tuple(unique)
        self._latency = latency
        self._lock = asyncio.Lock()

    async def find(
        self,
        filter: Filter,
        sort: Sort,
        skip: int,
        limit: int | None,
    ) -> Result[list[T], RepoError]:
        await self._pause()
        async with self._lock:
            rows = ordered((r for r in self._rows.values() if matches(filter, r)), sort)
        end = None if limit is None else skip + limit
        return Ok(rows[skip:end])

    async def count(self, filter: Filter) -> Result[int, RepoError]:
        await self._pause()
        async with self._lock:
            return Ok(sum(1 for r in self._rows.values() if matches(filter, r)))

    async def find_one(self, filter: Filter) -> Result[T | None, RepoError]:
        await self._pause()
        async with self._lock:
            return Ok(self._first(filter))

    async def create(self, record: T) -> Result[T, RepoError]:
        await self._pause()
        async with self._lock:
            rid = _id(record)
            if rid in self._rows:
                return Error(RepoError.duplicate_key(f"Duplicate id {rid}"))
            if (clash := self._clash(record)) is not None:
                return Error(clash)
            self._rows[rid] = record
            return Ok(record)

    async def find_one_and_update(
        self, filter: Filter, update: Update
    ) -> Result[T | None, RepoError]:
        await self._pause()
        async with self._lock:
            current = self._first(filter)
            if current is None:
                return Ok(None)
            changes: dict[str, Any] = dict(update.assign)
            for name, delta in update.increment.items():
                changes[name] = getattr(current, name) + delta
            updated = dataclasses.replace(current, **changes)  # type: ignore[type-var]
            if (clash := self._clash(updated)) is not None:
                return Error(clash)
            self._rows[_id(current)] = updated
            return Ok(updated)

    async def find_one_and_delete(self, filter: Filter) -> Result[T | None, RepoError]:
        await self._pause()
        async with self._lock:
            current = self._first(filter)
            if current is not None:
                del self._rows[_id(current)]
            return Ok(current)

    async def delete_many(self, filter: Filter) -> Result[int, RepoError]:
        await self._pause()
        async with self._lock:
            doomed = [rid for rid, r in self._rows.items() if matches(filter, r)]
            for rid in doomed:
                del self._rows[rid]
            return Ok(len(doomed))

    def __len__(self) -> int:
        return len(self._rows)

    def _first(self, filter: Filter) -> T | None:
        for row in self._rows.values():
            if matches(filter, row):
                return row
        return None

    def _clash(self, record: T) -> RepoError | None:
        rid = _id(record)
        for key in self._unique:
            values = _key(record, key)
            for other in self._rows.values():
                if _id(other) != rid and _key(other, key) == values:
                    return RepoError.duplicate_key(f"Duplicate key {dict(zip(key, values))}")
        return None

    async def _pause(self) -> None:
        await asyncio.sleep(self._latency)


def _id(record: Any) -> ObjectId:
    return record.id


def _key(record: Any, fields: tuple[str, ...]) -> tuple[Any, ...]:
    return tuple(_fold(getattr(record, name)) for name in fields)


def _fold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


__all__ = ("MemoryRepository",)
