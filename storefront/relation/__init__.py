"""
relation — race-safe per-user (user, product) relations.

    from storefront import relation as Rel

    match await Rel.add_or_increment(
        carts, user_id, product_id, 2,
        Rel.Capacity.at_most(product.count_in_stock),
        make=CartItem.new,
    ):
        case Ok(outcome):
            outcome.value, outcome.created
        case Error(e): ...   # CAPACITY_EXCEEDED, INVALID_REQUEST, INTERNAL
"""

from storefront.relation._types import (
    Capacity,
    UpsertOutcome,
    Relation,
    QuantityRelation,
    QuantityFactory,
    Factory,
)
from storefront.relation._upsert import (
    pair,
    owned,
    add_or_increment,
    add_unique,
    get_owned,
    set_quantity,
    remove,
    clear,
)

__all__ = (
    # Types
    "Capacity",
    "UpsertOutcome",
    "Relation",
    "QuantityRelation",
    "QuantityFactory",
    "Factory",
    # Operations
    "pair",
    "owned",
    "add_or_increment",
    "add_unique",
    "get_owned",
    "set_quantity",
    "remove",
    "clear",
)
