"""
Wiring — builds the services for the configured storage backend.

    container = memory_container()                      # tests, local runs
    container = await build_container(Settings())       # from environment
    ...
    await container.close()
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from storefront.catalog import (
    CartItem,
    CartService,
    Category,
    CategoryService,
    ImageStore,
    MemoryImageStore,
    Product,
    ProductService,
    WishlistItem,
    WishlistService,
)
from storefront.config import Settings
from storefront.paging import Policy
from storefront.repo import MemoryRepository, Repository

logger = logging.getLogger(__name__)

RELATION_KEY = ("user_id", "product_id")
NAME_KEY = ("name",)


async def _noop() -> None:
    return None


@dataclass(frozen=True, slots=True)
class Container:
    products: ProductService
    categories: CategoryService
    cart: CartService
    wishlist: WishlistService
    policy: Policy
    images: ImageStore
    on_close: Callable[[], Awaitable[None]] = _noop

    async def close(self) -> None:
        await self.on_close()


def assemble(
    categories: Repository[Category],
    products: Repository[Product],
    cart_items: Repository[CartItem],
    wishlist_items: Repository[WishlistItem],
    *,
    settings: Settings,
    images: ImageStore | None = None,
    on_close: Callable[[], Awaitable[None]] = _noop,
) -> Container:
    """Services over the given repositories."""
    images = images if images is not None else MemoryImageStore()
    levels = settings.tree_max_levels
    return Container(
        products=ProductService(products, categories, images, max_tree_levels=levels),
        categories=CategoryService(categories, images, max_tree_levels=levels),
        cart=CartService(cart_items, products),
        wishlist=WishlistService(wishlist_items, products),
        policy=Policy().with_limits(
            default=settings.default_page_limit,
            maximum=settings.max_page_limit,
        ),
        images=images,
        on_close=on_close,
    )


def memory_container(
    settings: Settings | None = None,
    *,
    images: ImageStore | None = None,
    latency: float = 0.0,
) -> Container:
    """
    In-process backend. Category names are unique ignoring case; cart and
    wishlist keep (user_id, product_id) unique.
    """
    return assemble(
        MemoryRepository[Category](unique=[NAME_KEY], latency=latency),
        MemoryRepository[Product](latency=latency),
        MemoryRepository[CartItem](unique=[RELATION_KEY], latency=latency),
        MemoryRepository[WishlistItem](unique=[RELATION_KEY], latency=latency),
        settings=settings or Settings(),
        images=images,
    )


async def build_container(
    settings: Settings,
    *,
    images: ImageStore | None = None,
) -> Container:
    """Container for settings.backend. Drivers are imported only when selected."""
    logger.info("Using %s storage backend", settings.backend)

    match settings.backend:
        case "memory":
            return memory_container(settings, images=images)

        case "sqlalchemy":
            from storefront.catalog._tables import create_database, sql_repositories

            session_factory, engine = await create_database(settings.database_url)
            return assemble(
                *sql_repositories(session_factory),
                settings=settings,
                images=images,
                on_close=engine.dispose,
            )

        case "mongo":
            from motor.motor_asyncio import AsyncIOMotorClient

            from storefront.catalog._collections import ensure_indexes, mongo_repositories

            client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
            db = client[settings.mongodb_database]
            await ensure_indexes(db)

            async def close() -> None:
                client.close()

            return assemble(
                *mongo_repositories(db),
                settings=settings,
                images=images,
                on_close=close,
            )

    raise ValueError(f"Unknown storage backend: {settings.backend}")


__all__ = (
    "Container",
    "assemble",
    "memory_container",
    "build_container",
)
