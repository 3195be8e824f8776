"""
Paginated lister — offset and keyset listing over any repository.

Offset mode: find + count run in parallel (combinators.parallel).
Cursor mode: fetch limit + 1, the extra record only signals a next page.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import combinators as C
from kungfu import Result, Ok, Error, LazyCoroResult

from storefront import cursor as cursor_codec
from storefront._errors import CatalogError
from storefront._types import Lazy
from storefront.cursor import Cursor, Positioned
from storefront.paging._types import (
    PageMode,
    PageRequest,
    OffsetInfo,
    CursorInfo,
    Page,
)
from storefront.query import Filter, with_cursor, sort_for
from storefront.repo import Repository, RepoError

logger = logging.getLogger(__name__)


def storage_failure(e: RepoError) -> CatalogError:
    """Surface a storage error as INTERNAL."""
    logger.warning("Storage failure: %s", e.message)
    return CatalogError.internal(e.message, e)


async def paginate[T: Positioned](
    repo: Repository[T],
    base: Filter,
    request: PageRequest,
) -> Result[Page[T], CatalogError]:
    """List records matching base according to request's mode."""
    if request.mode is PageMode.CURSOR:
        return await list_cursor(repo, base, request)
    return await list_offset(repo, base, request)


async def list_offset[T](
    repo: Repository[T],
    base: Filter,
    request: PageRequest,
) -> Result[Page[T], CatalogError]:
    skip = (request.page - 1) * request.limit

    fetch: Lazy[Any, RepoError] = LazyCoroResult(
        lambda: repo.find(base, sort_for(request.sort), skip, request.limit)
    )
    total: Lazy[Any, RepoError] = LazyCoroResult(lambda: repo.count(base))

    match await C.parallel(fetch, total):
        case Ok(results):
            items, count = results
            return Ok(Page(
                items=list(items),
                info=OffsetInfo(
                    total=count,
                    page=request.page,
                    limit=request.limit,
                    total_pages=math.ceil(count / request.limit),
                ),
            ))
        case Error(e):
            return Error(storage_failure(e))


async def list_cursor[T: Positioned](
    repo: Repository[T],
    base: Filter,
    request: PageRequest,
) -> Result[Page[T], CatalogError]:
    if not request.sort.cursor_compatible:
        return Error(CatalogError.invalid_request(
            f"Cursor pagination requires sort 'newest' or 'oldest', got '{request.sort.value}'"
        ))

    position: Cursor | None = None
    if request.cursor is not None:
        match cursor_codec.decode(request.cursor):
            case Ok(decoded):
                position = decoded
            case Error(e):
                return Error(e)

    match with_cursor(base, position, request.sort):
        case Ok(keyed):
            pass
        case Error(e):
            return Error(e)

    match await repo.find(keyed, sort_for(request.sort), 0, request.limit + 1):
        case Ok(rows):
            pass
        case Error(e):
            return Error(storage_failure(e))

    has_next = len(rows) > request.limit
    items = rows[: request.limit]
    next_cursor = Cursor.of(items[-1]).encode() if has_next else None

    return Ok(Page(
        items=items,
        info=CursorInfo(
            limit=request.limit,
            next_cursor=next_cursor,
            has_next_page=has_next,
        ),
    ))


__all__ = (
    "storage_failure",
    "paginate",
    "list_offset",
    "list_cursor",
)
