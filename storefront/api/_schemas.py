"""
Wire models. Requests expose to_domain(), responses from_domain().
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Annotated, Any, Literal

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from storefront._types import parse_id
from storefront.catalog import (
    CartItem,
    CartLine,
    Category,
    CategoryPatch,
    Product,
    ProductDraft,
    ProductPatch,
    ProductView,
    WishlistItem,
    WishlistLine,
)
from storefront.paging import CursorInfo, OffsetInfo, Page, PageInfo


def _check_id(value: str) -> str:
    if parse_id(value) is None:
        raise ValueError("must be a 24-character hex id")
    return value


ObjectIdStr = Annotated[str, AfterValidator(_check_id)]


def _oid(value: str | None) -> ObjectId | None:
    return None if value is None else ObjectId(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Common
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorOut(BaseModel):
    success: Literal[False] = False
    kind: str
    message: str


class MessageOut(BaseModel):
    success: bool = True
    message: str


class CountOut(BaseModel):
    success: bool = True
    count: int


class DeletedOut(BaseModel):
    success: bool = True
    deleted: int


class OffsetInfoOut(BaseModel):
    mode: Literal["offset"] = "offset"
    total: int
    page: int
    limit: int
    total_pages: int


class CursorInfoOut(BaseModel):
    mode: Literal["cursor"] = "cursor"
    limit: int
    next_cursor: str | None
    has_next_page: bool


def pagination(info: PageInfo) -> OffsetInfoOut | CursorInfoOut:
    match info:
        case OffsetInfo(total=total, page=page, limit=limit, total_pages=pages):
            return OffsetInfoOut(total=total, page=page, limit=limit, total_pages=pages)
        case CursorInfo(limit=limit, next_cursor=token, has_next_page=more):
            return CursorInfoOut(limit=limit, next_cursor=token, has_next_page=more)
    raise TypeError(f"Unknown page info: {info!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════════════════════════


class CategorySummary(BaseModel):
    id: str
    name: str
    images: list[str]

    @classmethod
    def from_domain(cls, c: Category) -> "CategorySummary":
        return cls(id=str(c.id), name=c.name, images=list(c.images))


class CategoryOut(BaseModel):
    id: str
    name: str
    images: list[str]
    parent_id: str | None
    parent_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, c: Category) -> "CategoryOut":
        return cls(
            id=str(c.id),
            name=c.name,
            images=list(c.images),
            parent_id=None if c.parent_id is None else str(c.parent_id),
            parent_name=c.parent_name,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class CategoryListOut(BaseModel):
    success: bool = True
    items: list[CategoryOut]

    @classmethod
    def from_domain(cls, categories: Sequence[Category]) -> "CategoryListOut":
        return cls(items=[CategoryOut.from_domain(c) for c in categories])


class CategoryPageOut(BaseModel):
    success: bool = True
    items: list[CategoryOut]
    pagination: OffsetInfoOut | CursorInfoOut

    @classmethod
    def from_domain(cls, page: Page[Category]) -> "CategoryPageOut":
        return cls(
            items=[CategoryOut.from_domain(c) for c in page.items],
            pagination=pagination(page.info),
        )


class CategoryPatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    parent_id: ObjectIdStr | None = None
    parent_name: str | None = None

    def to_domain(self) -> CategoryPatch:
        changes: dict[str, Any] = self.model_dump(exclude_unset=True)
        if "parent_id" in changes:
            changes["parent_id"] = _oid(changes["parent_id"])
        if changes.get("name", "") is None:
            del changes["name"]
        return CategoryPatch(changes)


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


class ProductOut(BaseModel):
    id: str
    name: str
    description: str
    brand: str
    price: float
    old_price: float | None
    category_id: str
    category: CategorySummary | None = None
    count_in_stock: int
    rating: float
    num_reviews: int
    is_featured: bool
    discount: int
    ram_options: list[str]
    sizes: list[str]
    weights: list[str]
    images: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, p: Product, category: Category | None = None) -> "ProductOut":
        return cls(
            id=str(p.id),
            name=p.name,
            description=p.description,
            brand=p.brand,
            price=p.price,
            old_price=p.old_price,
            category_id=str(p.category_id),
            category=None if category is None else CategorySummary.from_domain(category),
            count_in_stock=p.count_in_stock,
            rating=p.rating,
            num_reviews=p.num_reviews,
            is_featured=p.is_featured,
            discount=p.discount,
            ram_options=list(p.ram_options),
            sizes=list(p.sizes),
            weights=list(p.weights),
            images=list(p.images),
            created_at=p.created_at,
            updated_at=p.updated_at,
        )

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductOut":
        return cls.from_domain(view.product, view.category)


class ProductPageOut(BaseModel):
    success: bool = True
    items: list[ProductOut]
    pagination: OffsetInfoOut | CursorInfoOut

    @classmethod
    def from_domain(cls, page: Page[ProductView]) -> "ProductPageOut":
        return cls(
            items=[ProductOut.from_view(v) for v in page.items],
            pagination=pagination(page.info),
        )


class ProductIn(BaseModel):
    name: str
    description: str
    price: float
    count_in_stock: int
    category_id: ObjectIdStr
    brand: str = ""
    old_price: float | None = None
    rating: float = 0.0
    num_reviews: int = 0
    is_featured: bool = False
    discount: int = 0
    ram_options: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    weights: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    def to_domain(self) -> ProductDraft:
        return ProductDraft(
            name=self.name,
            description=self.description,
            price=self.price,
            count_in_stock=self.count_in_stock,
            category_id=ObjectId(self.category_id),
            brand=self.brand,
            old_price=self.old_price,
            rating=self.rating,
            num_reviews=self.num_reviews,
            is_featured=self.is_featured,
            discount=self.discount,
            ram_options=tuple(self.ram_options),
            sizes=tuple(self.sizes),
            weights=tuple(self.weights),
            images=tuple(self.images),
        )


class ProductPatchIn(BaseModel):
    """Only fields present in the body are applied. old_price may be cleared with null."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    brand: str | None = None
    price: float | None = None
    old_price: float | None = None
    category_id: ObjectIdStr | None = None
    count_in_stock: int | None = None
    rating: float | None = None
    num_reviews: int | None = None
    is_featured: bool | None = None
    discount: int | None = None
    ram_options: list[str] | None = None
    sizes: list[str] | None = None
    weights: list[str] | None = None

    def to_domain(self) -> ProductPatch:
        changes: dict[str, Any] = {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key == "old_price"
        }
        if "category_id" in changes:
            changes["category_id"] = ObjectId(changes["category_id"])
        for key in ("ram_options", "sizes", "weights"):
            if key in changes:
                changes[key] = tuple(changes[key])
        return ProductPatch(changes)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart & Wishlist
# ═══════════════════════════════════════════════════════════════════════════════


class ProductSummary(BaseModel):
    id: str
    name: str
    price: float
    count_in_stock: int
    images: list[str]

    @classmethod
    def from_domain(cls, p: Product) -> "ProductSummary":
        return cls(
            id=str(p.id),
            name=p.name,
            price=p.price,
            count_in_stock=p.count_in_stock,
            images=list(p.images),
        )


class CartItemOut(BaseModel):
    id: str
    product_id: str
    quantity: int
    product: ProductSummary | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, item: CartItem, product: Product | None = None) -> "CartItemOut":
        return cls(
            id=str(item.id),
            product_id=str(item.product_id),
            quantity=item.quantity,
            product=None if product is None else ProductSummary.from_domain(product),
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class CartPageOut(BaseModel):
    success: bool = True
    items: list[CartItemOut]
    pagination: OffsetInfoOut | CursorInfoOut

    @classmethod
    def from_domain(cls, page: Page[CartLine]) -> "CartPageOut":
        return cls(
            items=[CartItemOut.from_domain(line.item, line.product) for line in page.items],
            pagination=pagination(page.info),
        )


class CartAddIn(BaseModel):
    product_id: ObjectIdStr
    quantity: int = 1

    def to_domain(self) -> tuple[ObjectId, int]:
        return ObjectId(self.product_id), self.quantity


class CartQuantityIn(BaseModel):
    quantity: int


class WishlistItemOut(BaseModel):
    id: str
    product_id: str
    product: ProductSummary | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, item: WishlistItem, product: Product | None = None) -> "WishlistItemOut":
        return cls(
            id=str(item.id),
            product_id=str(item.product_id),
            product=None if product is None else ProductSummary.from_domain(product),
            created_at=item.created_at,
        )


class WishlistPageOut(BaseModel):
    success: bool = True
    items: list[WishlistItemOut]
    pagination: OffsetInfoOut | CursorInfoOut

    @classmethod
    def from_domain(cls, page: Page[WishlistLine]) -> "WishlistPageOut":
        return cls(
            items=[WishlistItemOut.from_domain(line.item, line.product) for line in page.items],
            pagination=pagination(page.info),
        )


class WishlistAddIn(BaseModel):
    product_id: ObjectIdStr

    def to_domain(self) -> ObjectId:
        return ObjectId(self.product_id)


__all__ = (
    "ObjectIdStr",
    "ErrorOut",
    "MessageOut",
    "CountOut",
    "DeletedOut",
    "OffsetInfoOut",
    "CursorInfoOut",
    "pagination",
    "CategorySummary",
    "CategoryOut",
    "CategoryListOut",
    "CategoryPageOut",
    "CategoryPatchIn",
    "ProductOut",
    "ProductPageOut",
    "ProductIn",
    "ProductPatchIn",
    "ProductSummary",
    "CartItemOut",
    "CartPageOut",
    "CartAddIn",
    "CartQuantityIn",
    "WishlistItemOut",
    "WishlistPageOut",
    "WishlistAddIn",
)
