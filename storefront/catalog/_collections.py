"""
MongoDB collections and indexes for the domain records.
"""

from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from storefront.catalog._models import Category, Product, CartItem, WishlistItem
from storefront.repo.mongo import MongoRepository

logger = logging.getLogger(__name__)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create indexes. The (user_id, product_id) unique indexes are what make
    concurrent cart and wishlist adds converge.
    """
    keyset = [("created_at", DESCENDING), ("_id", DESCENDING)]

    await db.categories.create_index(
        "name", unique=True, collation={"locale": "en", "strength": 2}
    )
    await db.categories.create_index("parent_id")
    await db.categories.create_index(keyset)

    await db.products.create_index("category_id")
    await db.products.create_index(keyset)
    await db.products.create_index([("price", ASCENDING), ("_id", ASCENDING)])
    await db.products.create_index([("rating", DESCENDING), ("_id", DESCENDING)])

    await db.cart_items.create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True
    )
    await db.cart_items.create_index([("user_id", ASCENDING), *keyset])

    await db.wishlist_items.create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True
    )
    await db.wishlist_items.create_index([("user_id", ASCENDING), *keyset])

    logger.info("MongoDB indexes ensured on %s", db.name)


def mongo_repositories(
    db: AsyncIOMotorDatabase,
) -> tuple[
    MongoRepository[Category],
    MongoRepository[Product],
    MongoRepository[CartItem],
    MongoRepository[WishlistItem],
]:
    """(categories, products, cart items, wishlist items)."""
    return (
        MongoRepository(db.categories, Category),
        MongoRepository(db.products, Product),
        MongoRepository(db.cart_items, CartItem),
        MongoRepository(db.wishlist_items, WishlistItem),
    )


__all__ = (
    "ensure_indexes",
    "mongo_repositories",
)
