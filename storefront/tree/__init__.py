"""
tree — category ancestor → descendant expansion.

    from storefront import tree

    lookup = tree.RepositoryLookup(categories)

    match await tree.descendants(lookup, root_id, max_depth=2):
        case Ok(ids): ...          # frozenset of category ids
        case Error(e): ...
"""

from storefront.tree._resolver import (
    DEFAULT_MAX_LEVELS,
    Edge,
    CategoryLookup,
    RepositoryLookup,
    descendants,
)

__all__ = (
    "DEFAULT_MAX_LEVELS",
    "Edge",
    "CategoryLookup",
    "RepositoryLookup",
    "descendants",
)
