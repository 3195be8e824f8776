"""
Query composer — whitelisted product predicates, sort specs, keyset filters.

    base = product_filter(ProductFilters(min_price=10, search="usb-c"))
    match with_cursor(base, position, SortKey.NEWEST):
        case Ok(f): ...

Note: every sort spec ends with the id tie-break so that listings stay
totally ordered when created_at values collide.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront.cursor import Cursor
from storefront.query._filter import (
    Filter,
    ALL,
    Eq,
    In,
    Gt,
    Gte,
    Lt,
    Lte,
    Regex,
    Or,
    all_of,
    is_empty,
    Sort,
    Direction,
    sort_by,
)


ASC = Direction.ASC
DESC = Direction.DESC


# ═══════════════════════════════════════════════════════════════════════════════
# Sort Keys
# ═══════════════════════════════════════════════════════════════════════════════


class SortKey(Enum):
    """User-facing listing orders."""

    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING_DESC = "rating_desc"

    @property
    def cursor_compatible(self) -> bool:
        """Only (created_at, id) orders support keyset pagination."""
        return self in (SortKey.NEWEST, SortKey.OLDEST)

    @classmethod
    def parse(cls, raw: str | None) -> Result[SortKey, CatalogError]:
        """None/empty → NEWEST. Unknown names are rejected."""
        if raw is None or raw == "":
            return Ok(cls.NEWEST)
        try:
            return Ok(cls(raw.strip().lower()))
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            return Error(CatalogError.invalid_request(f"Unknown sort '{raw}' (allowed: {allowed})"))


_SORTS: dict[SortKey, Sort] = {
    SortKey.NEWEST: sort_by(("created_at", DESC), ("id", DESC)),
    SortKey.OLDEST: sort_by(("created_at", ASC), ("id", ASC)),
    SortKey.PRICE_ASC: sort_by(("price", ASC), ("id", ASC)),
    SortKey.PRICE_DESC: sort_by(("price", DESC), ("id", DESC)),
    SortKey.RATING_DESC: sort_by(("rating", DESC), ("id", DESC)),
}


def sort_for(key: SortKey) -> Sort:
    return _SORTS[key]


# ═══════════════════════════════════════════════════════════════════════════════
# Text Matching
# ═══════════════════════════════════════════════════════════════════════════════


def escape(text: str) -> str:
    """Escape every regex metacharacter so text matches literally."""
    return re.escape(text)


def contains(field: str, text: str) -> Regex:
    """Case-insensitive literal substring match."""
    return Regex(field, escape(text), ignore_case=True)


def equals_ignore_case(field: str, text: str) -> Regex:
    """Case-insensitive literal whole-value match."""
    return Regex(field, f"^{escape(text)}$", ignore_case=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Keyset Filter
# ═══════════════════════════════════════════════════════════════════════════════


def keyset(position: Cursor, key: SortKey) -> Result[Filter, CatalogError]:
    """
    Records strictly after position in key's order.

    newest: created_at < c OR (created_at == c AND id < id_c)
    oldest: the mirrored > form.
    """
    if not key.cursor_compatible:
        return Error(CatalogError.invalid_request(
            f"Cursor pagination requires sort 'newest' or 'oldest', got '{key.value}'"
        ))

    before = key is SortKey.NEWEST
    past = Lt if before else Gt

    return Ok(Or((
        past("created_at", position.created_at),
        all_of(Eq("created_at", position.created_at), past("id", position.id)),
    )))


def combine(base: Filter, extra: Filter) -> Filter:
    """AND extra onto base. Never replaces base."""
    if is_empty(base):
        return extra
    return all_of(base, extra)


def with_cursor(
    base: Filter,
    position: Cursor | None,
    key: SortKey,
) -> Result[Filter, CatalogError]:
    if position is None:
        return Ok(base)
    match keyset(position, key):
        case Ok(after):
            return Ok(combine(base, after))
        case Error(e):
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Product Filters
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductFilters:
    """
    Whitelisted product predicates.

    category_id and category_ids are mutually exclusive strategies:
    a named category vs. a resolved descendant set.
    """

    category_id: ObjectId | None = None
    category_ids: frozenset[ObjectId] | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    featured: bool | None = None
    search: str | None = None


def product_filter(filters: ProductFilters) -> Result[Filter, CatalogError]:
    if filters.category_id is not None and filters.category_ids is not None:
        return Error(CatalogError.invalid_request(
            "Use either a category id or an ancestor category, not both"
        ))
    if (
        filters.min_price is not None
        and filters.max_price is not None
        and filters.min_price > filters.max_price
    ):
        return Error(CatalogError.invalid_request("min_price must not exceed max_price"))

    parts: list[Filter] = []

    if filters.category_ids is not None:
        parts.append(In("category_id", tuple(sorted(filters.category_ids))))
    elif filters.category_id is not None:
        parts.append(Eq("category_id", filters.category_id))

    if filters.min_price is not None:
        parts.append(Gte("price", filters.min_price))
    if filters.max_price is not None:
        parts.append(Lte("price", filters.max_price))
    if filters.min_rating is not None:
        parts.append(Gte("rating", filters.min_rating))
    if filters.featured is not None:
        parts.append(Eq("is_featured", filters.featured))
    if filters.search:
        parts.append(contains("name", filters.search))

    return Ok(all_of(*parts) if parts else ALL)


def compose(
    filters: ProductFilters,
    position: Cursor | None,
    key: SortKey,
) -> Result[Filter, CatalogError]:
    """Product predicates AND the optional keyset filter."""
    match product_filter(filters):
        case Ok(base):
            return with_cursor(base, position, key)
        case Error(e):
            return Error(e)


__all__ = (
    "SortKey",
    "sort_for",
    "escape",
    "contains",
    "equals_ignore_case",
    "keyset",
    "combine",
    "with_cursor",
    "ProductFilters",
    "product_filter",
    "compose",
)
