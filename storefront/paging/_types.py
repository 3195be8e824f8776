"""
Paging types — request, page info, page, policy.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront.query import SortKey

# Largest skip ever sent to a store; both SQLite and BSON integers are 64-bit.
MAX_OFFSET = 2**53


# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Listing limits.

    Example:
        policy = Policy().with_limits(default=20, maximum=50)
    """

    default_limit: int = 10
    max_limit: int = 100

    def with_limits(self, *, default: int | None = None, maximum: int | None = None) -> Policy:
        return replace(
            self,
            default_limit=self.default_limit if default is None else default,
            max_limit=self.max_limit if maximum is None else maximum,
        )

    @property
    def max_page(self) -> int:
        """Highest page whose offset stays within MAX_OFFSET at any allowed limit."""
        return MAX_OFFSET // self.max_limit + 1

    def clamp_page(self, raw: int | str | None) -> int:
        return min(max(_to_int(raw, 1), 1), self.max_page)

    def clamp_limit(self, raw: int | str | None) -> int:
        return min(max(_to_int(raw, self.default_limit), 1), self.max_limit)


DEFAULT_POLICY = Policy()


def _to_int(raw: int | str | None, default: int) -> int:
    """Lenient integer parse: anything unparsable falls back to default."""
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return default
    return default


# ═══════════════════════════════════════════════════════════════════════════════
# Request
# ═══════════════════════════════════════════════════════════════════════════════


class PageMode(Enum):
    OFFSET = "offset"
    CURSOR = "cursor"


@dataclass(frozen=True, slots=True)
class PageRequest:
    """
    Validated paging parameters.

    Invariant: mode is CURSOR only with a cursor-compatible sort.
    """

    mode: PageMode = PageMode.OFFSET
    page: int = 1
    limit: int = 10
    cursor: str | None = None
    sort: SortKey = SortKey.NEWEST

    @classmethod
    def parse(
        cls,
        *,
        page: int | str | None = None,
        limit: int | str | None = None,
        cursor: str | None = None,
        sort: str | SortKey | None = None,
        mode: str | PageMode | None = None,
        policy: Policy = DEFAULT_POLICY,
    ) -> Result[PageRequest, CatalogError]:
        """
        Build a request from raw query parameters.

        Cursor mode is chosen when a cursor is given or mode="cursor"
        (the first cursor page has no cursor). Page and limit are clamped,
        never rejected.
        """
        match _parse_sort(sort):
            case Ok(key):
                pass
            case Error(e):
                return Error(e)

        match _parse_mode(mode, cursor):
            case Ok(resolved):
                pass
            case Error(e):
                return Error(e)

        if resolved is PageMode.CURSOR and not key.cursor_compatible:
            return Error(CatalogError.invalid_request(
                f"Cursor pagination requires sort 'newest' or 'oldest', got '{key.value}'"
            ))

        return Ok(cls(
            mode=resolved,
            page=policy.clamp_page(page),
            limit=policy.clamp_limit(limit),
            cursor=cursor or None,
            sort=key,
        ))

    @classmethod
    def first(cls, limit: int = 10, sort: SortKey = SortKey.NEWEST) -> PageRequest:
        """First cursor-mode page."""
        return cls(mode=PageMode.CURSOR, limit=limit, sort=sort)

    def next(self, cursor: str) -> PageRequest:
        return replace(self, mode=PageMode.CURSOR, cursor=cursor)


def _parse_sort(raw: str | SortKey | None) -> Result[SortKey, CatalogError]:
    if isinstance(raw, SortKey):
        return Ok(raw)
    return SortKey.parse(raw)


def _parse_mode(raw: str | PageMode | None, cursor: str | None) -> Result[PageMode, CatalogError]:
    if isinstance(raw, PageMode):
        requested: PageMode | None = raw
    elif raw is None or raw == "":
        requested = None
    else:
        try:
            requested = PageMode(raw.strip().lower())
        except ValueError:
            return Error(CatalogError.invalid_request(f"Unknown paging mode '{raw}'"))

    if cursor:
        if requested is PageMode.OFFSET:
            return Error(CatalogError.invalid_request("A cursor cannot be used in offset mode"))
        return Ok(PageMode.CURSOR)
    return Ok(requested or PageMode.OFFSET)


# ═══════════════════════════════════════════════════════════════════════════════
# Page
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OffsetInfo:
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True, slots=True)
class CursorInfo:
    """Keyset page info. Carries no total or page number."""

    limit: int
    next_cursor: str | None
    has_next_page: bool


type PageInfo = OffsetInfo | CursorInfo


@dataclass(frozen=True, slots=True)
class Page[T]:
    items: list[T]
    info: PageInfo

    def map[U](self, fn: Callable[[T], U]) -> Page[U]:
        return Page([fn(item) for item in self.items], self.info)


__all__ = (
    "MAX_OFFSET",
    "Policy",
    "DEFAULT_POLICY",
    "PageMode",
    "PageRequest",
    "OffsetInfo",
    "CursorInfo",
    "PageInfo",
    "Page",
)
