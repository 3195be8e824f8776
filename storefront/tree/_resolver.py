"""
Category tree resolver — bounded breadth-first descendant expansion.

The parent graph is not validated on write, so it may contain
self-references or cycles. Expansion never re-visits an id it has
already seen and never runs more than max_levels lookups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront.query import In
from storefront.repo import Repository, RepoError

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEVELS = 64


# ═══════════════════════════════════════════════════════════════════════════════
# Lookup Port
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Edge:
    """Child → parent adjacency."""

    id: ObjectId
    parent_id: ObjectId | None


class CategoryLookup(Protocol):
    """Read-only adjacency query."""

    async def children_of(
        self, ids: frozenset[ObjectId]
    ) -> Result[list[Edge], RepoError]:
        """All nodes whose parent_id is in ids."""
        ...


class HasParent(Protocol):
    @property
    def id(self) -> ObjectId: ...
    @property
    def parent_id(self) -> ObjectId | None: ...


class RepositoryLookup[T: HasParent]:
    """CategoryLookup over any repository of parent-linked records."""

    def __init__(self, repo: Repository[T]) -> None:
        self._repo = repo

    async def children_of(
        self, ids: frozenset[ObjectId]
    ) -> Result[list[Edge], RepoError]:
        match await self._repo.find(In("parent_id", tuple(sorted(ids))), (), 0, None):
            case Ok(rows):
                return Ok([Edge(r.id, r.parent_id) for r in rows])
            case Error(e):
                return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Resolver
# ═══════════════════════════════════════════════════════════════════════════════


async def descendants(
    lookup: CategoryLookup,
    ancestor_id: ObjectId,
    *,
    max_depth: int | None = None,
    include_self: bool = False,
    max_levels: int = DEFAULT_MAX_LEVELS,
) -> Result[frozenset[ObjectId], CatalogError]:
    """
    Ids below ancestor_id, at most max_depth levels down.

    Returns an empty set when the ancestor has no children.
    Fails with INTERNAL when expansion still has a frontier after
    max_levels lookups.
    """
    if max_depth is not None and max_depth < 1:
        return Error(CatalogError.invalid_request("max_depth must be a positive integer"))

    seen: set[ObjectId] = {ancestor_id}
    found: set[ObjectId] = set()
    frontier = frozenset({ancestor_id})
    depth = 0

    while frontier:
        if max_depth is not None and depth >= max_depth:
            break
        if depth >= max_levels:
            logger.warning(
                "Category expansion of %s exceeded %d levels", ancestor_id, max_levels
            )
            return Error(CatalogError.internal(
                f"Category tree below {ancestor_id} exceeds {max_levels} levels"
            ))

        match await lookup.children_of(frontier):
            case Ok(edges):
                fresh = frozenset(e.id for e in edges if e.id not in seen)
            case Error(e):
                logger.warning("Category lookup failed: %s", e.message)
                return Error(CatalogError.internal("Failed to resolve category tree", e))

        seen |= fresh
        found |= fresh
        frontier = fresh
        depth += 1

    if include_self:
        found.add(ancestor_id)
    return Ok(frozenset(found))


__all__ = (
    "DEFAULT_MAX_LEVELS",
    "Edge",
    "CategoryLookup",
    "RepositoryLookup",
    "descendants",
)
