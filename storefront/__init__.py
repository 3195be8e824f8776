"""
storefront — catalog and commerce backend core.

    from storefront import cursor as K    # Opaque keyset cursors
    from storefront import query as Q     # Filter/sort expressions, query composer
    from storefront import tree as T      # Category descendant resolution
    from storefront import paging as P    # Offset and cursor listing
    from storefront import relation as R  # Race-safe per-user relations (cart, wishlist)

Services over these live in storefront.catalog, the HTTP surface in
storefront.api.
"""

from storefront import cursor
from storefront import query
from storefront import tree
from storefront import repo
from storefront import paging
from storefront import relation
from storefront._errors import ErrorKind, CatalogError
from storefront._types import Lazy, new_id, parse_id, utcnow

__version__ = "0.1.0"

__all__ = (
    "cursor",
    "query",
    "tree",
    "repo",
    "paging",
    "relation",
    "ErrorKind",
    "CatalogError",
    "Lazy",
    "new_id",
    "parse_id",
    "utcnow",
)
