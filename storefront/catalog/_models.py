"""Domain records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bson import ObjectId

from storefront._types import new_id, utcnow


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    images: tuple[str, ...] = ()
    parent_id: ObjectId | None = None
    parent_name: str = ""
    id: ObjectId = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class Product:
    name: str
    description: str
    price: float
    category_id: ObjectId
    count_in_stock: int
    images: tuple[str, ...] = ()
    brand: str = ""
    old_price: float | None = None
    rating: float = 0.0
    num_reviews: int = 0
    is_featured: bool = False
    discount: int = 0
    ram_options: tuple[str, ...] = ()
    sizes: tuple[str, ...] = ()
    weights: tuple[str, ...] = ()
    id: ObjectId = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Per-user relations
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItem:
    user_id: ObjectId
    product_id: ObjectId
    quantity: int = 1
    id: ObjectId = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, user_id: ObjectId, product_id: ObjectId, quantity: int) -> CartItem:
        return cls(user_id=user_id, product_id=product_id, quantity=quantity)


@dataclass(frozen=True, slots=True)
class WishlistItem:
    user_id: ObjectId
    product_id: ObjectId
    id: ObjectId = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, user_id: ObjectId, product_id: ObjectId) -> WishlistItem:
        return cls(user_id=user_id, product_id=product_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Views — records joined with what they reference
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductView:
    product: Product
    category: Category | None


@dataclass(frozen=True, slots=True)
class CartLine:
    item: CartItem
    product: Product | None


@dataclass(frozen=True, slots=True)
class WishlistLine:
    item: WishlistItem
    product: Product | None


__all__ = (
    "Category",
    "Product",
    "CartItem",
    "WishlistItem",
    "ProductView",
    "CartLine",
    "WishlistLine",
)
