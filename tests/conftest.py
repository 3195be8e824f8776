"""Pytest fixtures: memory-backed repositories, services and HTTP client."""

from collections.abc import Iterator

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from storefront._wiring import Container, memory_container
from storefront.api import create_app
from storefront.catalog import (
    CartItem,
    CartService,
    Category,
    CategoryService,
    MemoryImageStore,
    Product,
    ProductService,
    WishlistItem,
    WishlistService,
)
from storefront.config import Settings
from storefront.repo import MemoryRepository


@pytest.fixture
def categories() -> MemoryRepository[Category]:
    return MemoryRepository[Category](unique=[("name",)])


@pytest.fixture
def products() -> MemoryRepository[Product]:
    return MemoryRepository[Product]()


@pytest.fixture
def cart_items() -> MemoryRepository[CartItem]:
    return MemoryRepository[CartItem](unique=[("user_id", "product_id")])


@pytest.fixture
def wishlist_items() -> MemoryRepository[WishlistItem]:
    return MemoryRepository[WishlistItem](unique=[("user_id", "product_id")])


@pytest.fixture
def images() -> MemoryImageStore:
    return MemoryImageStore()


@pytest.fixture
def product_service(products, categories, images) -> ProductService:
    return ProductService(products, categories, images)


@pytest.fixture
def category_service(categories, images) -> CategoryService:
    return CategoryService(categories, images)


@pytest.fixture
def cart_service(cart_items, products) -> CartService:
    return CartService(cart_items, products)


@pytest.fixture
def wishlist_service(wishlist_items, products) -> WishlistService:
    return WishlistService(wishlist_items, products)


@pytest.fixture
def user_id() -> ObjectId:
    return ObjectId()


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def container() -> Container:
    return memory_container(Settings(default_page_limit=10, max_page_limit=50))


@pytest.fixture
def client(container: Container) -> Iterator[TestClient]:
    with TestClient(create_app(container)) as c:
        yield c


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-User-Id": str(ObjectId())}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Id": str(ObjectId()), "X-User-Role": "admin"}
