"""
Database layer — SQLAlchemy tables mirroring the domain records.

Column names equal record field names; the generic repository maps
rows ↔ records by name.
"""

from __future__ import annotations

from datetime import datetime

from bson import ObjectId
from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from storefront.catalog._models import Category, Product, CartItem, WishlistItem
from storefront.repo.sqlalchemy import ObjectIdType, UTCDateTime, SQLAlchemyRepository


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class _Timestamps:
    id: Mapped[ObjectId] = mapped_column(ObjectIdType, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class CategoryTable(_Timestamps, Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    parent_id: Mapped[ObjectId | None] = mapped_column(ObjectIdType, nullable=True, index=True)
    parent_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")


# Names are unique ignoring case.
Index("uq_categories_name_ci", func.lower(CategoryTable.name), unique=True)


class ProductTable(_Timestamps, Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    category_id: Mapped[ObjectId] = mapped_column(ObjectIdType, nullable=False, index=True)
    count_in_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    brand: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    old_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    num_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    discount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ram_options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    sizes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    weights: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class CartItemTable(_Timestamps, Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_cart_user_product"),)

    user_id: Mapped[ObjectId] = mapped_column(ObjectIdType, nullable=False, index=True)
    product_id: Mapped[ObjectId] = mapped_column(ObjectIdType, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class WishlistItemTable(_Timestamps, Base):
    __tablename__ = "wishlist_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),)

    user_id: Mapped[ObjectId] = mapped_column(ObjectIdType, nullable=False, index=True)
    product_id: Mapped[ObjectId] = mapped_column(ObjectIdType, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


def sql_repositories(
    session_factory: async_sessionmaker[AsyncSession],
) -> tuple[
    SQLAlchemyRepository[CategoryTable, Category],
    SQLAlchemyRepository[ProductTable, Product],
    SQLAlchemyRepository[CartItemTable, CartItem],
    SQLAlchemyRepository[WishlistItemTable, WishlistItem],
]:
    """(categories, products, cart items, wishlist items)."""
    return (
        SQLAlchemyRepository(session_factory, CategoryTable, Category),
        SQLAlchemyRepository(session_factory, ProductTable, Product),
        SQLAlchemyRepository(session_factory, CartItemTable, CartItem),
        SQLAlchemyRepository(session_factory, WishlistItemTable, WishlistItem),
    )


__all__ = (
    "Base",
    "CategoryTable",
    "ProductTable",
    "CartItemTable",
    "WishlistItemTable",
    "create_database",
    "sql_repositories",
)
