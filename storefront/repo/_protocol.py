"""
Repository — typed, Result-based storage protocol.

Repository[T] — stores frozen records with an `id` attribute.
All methods return Result for explicit error handling.
"""

from __future__ import annotations

from typing import Protocol

from kungfu import Result

from storefront.query import Filter, Sort
from storefront.repo._types import RepoError, Update


class Repository[T](Protocol):
    """
    Storage port used by the lister, the tree resolver and the upserter.

    Example — custom implementation:

        class OrdersRepo(Repository[Order]):
            async def find_one(self, filter) -> Result[Order | None, RepoError]:
                try:
                    row = await self.collection.find_one(to_mongo(filter))
                    return Ok(from_document(Order, row) if row else None)
                except PyMongoError as e:
                    return Error(RepoError.failure("Failed to read", e))

            # ... other methods
    """

    async def find(
        self,
        filter: Filter,
        sort: Sort,
        skip: int,
        limit: int | None,
    ) -> Result[list[T], RepoError]:
        """Records matching filter in sort order. limit=None means all."""
        ...

    async def count(self, filter: Filter) -> Result[int, RepoError]:
        ...

    async def find_one(self, filter: Filter) -> Result[T | None, RepoError]:
        """First match. Returns Ok(None) if not found."""
        ...

    async def create(self, record: T) -> Result[T, RepoError]:
        """
        Insert record.

        Must report uniqueness violations as RepoErrorKind.DUPLICATE_KEY.
        """
        ...

    async def find_one_and_update(
        self, filter: Filter, update: Update
    ) -> Result[T | None, RepoError]:
        """
        Atomically patch the first match, return the updated record.

        The filter is re-checked at write time — guarded increments rely on it.
        Returns Ok(None) if nothing matched.
        """
        ...

    async def find_one_and_delete(self, filter: Filter) -> Result[T | None, RepoError]:
        """Delete the first match. Returns Ok(None) if not found."""
        ...

    async def delete_many(self, filter: Filter) -> Result[int, RepoError]:
        """Delete every match. Returns the number deleted."""
        ...


__all__ = ("Repository",)
