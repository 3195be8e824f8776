"""
query — storage-agnostic filters, sort specs and the product query composer.

    from storefront import query as Q

    f = Q.all_of(Q.Eq("category_id", cid), Q.Gte("price", 10))
    sort = Q.sort_for(Q.SortKey.NEWEST)   # (created_at desc, id desc)

    match Q.compose(Q.ProductFilters(search="a+b"), position, Q.SortKey.NEWEST):
        case Ok(f): ...
"""

from storefront.query._filter import (
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
    Filter,
    ALL,
    all_of,
    any_of,
    is_empty,
    Direction,
    SortField,
    Sort,
    sort_by,
)
from storefront.query._compose import (
    SortKey,
    sort_for,
    escape,
    contains,
    equals_ignore_case,
    keyset,
    combine,
    with_cursor,
    ProductFilters,
    product_filter,
    compose,
)
from storefront.query._match import (
    matches,
    ordered,
)

__all__ = (
    # Predicates
    "Eq",
    "Ne",
    "In",
    "Gt",
    "Gte",
    "Lt",
    "Lte",
    "Regex",
    "And",
    "Or",
    "Filter",
    "ALL",
    "all_of",
    "any_of",
    "is_empty",
    # Sort
    "Direction",
    "SortField",
    "Sort",
    "sort_by",
    "SortKey",
    "sort_for",
    # Composer
    "escape",
    "contains",
    "equals_ignore_case",
    "keyset",
    "combine",
    "with_cursor",
    "ProductFilters",
    "product_filter",
    "compose",
    # Evaluation
    "matches",
    "ordered",
)
