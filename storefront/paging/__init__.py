"""
paging — offset and cursor (keyset) listing.

    from storefront import paging as P

    match P.PageRequest.parse(page="2", limit="20", sort="price_asc"):
        case Ok(request):
            page = await P.paginate(products, base_filter, request)

    # Cursor mode: follow info.next_cursor until has_next_page is False
    request = P.PageRequest.first(limit=20)
"""

from storefront.paging._types import (
    MAX_OFFSET,
    Policy,
    DEFAULT_POLICY,
    PageMode,
    PageRequest,
    OffsetInfo,
    CursorInfo,
    PageInfo,
    Page,
)
from storefront.paging._lister import (
    storage_failure,
    paginate,
    list_offset,
    list_cursor,
)

__all__ = (
    # Types
    "MAX_OFFSET",
    "Policy",
    "DEFAULT_POLICY",
    "PageMode",
    "PageRequest",
    "OffsetInfo",
    "CursorInfo",
    "PageInfo",
    "Page",
    # Listing
    "storage_failure",
    "paginate",
    "list_offset",
    "list_cursor",
)
