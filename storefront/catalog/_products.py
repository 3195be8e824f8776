"""
Product service — filtered listing, CRUD and image management.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront._types import utcnow
from storefront.catalog._models import Category, Product, ProductView
from storefront.catalog._ports import ImageStore, Upload, upload_all, delete_all
from storefront.paging import Page, PageRequest, paginate, storage_failure
from storefront.query import ALL, Eq, In, ProductFilters, equals_ignore_case, product_filter
from storefront.repo import Repository, Update
from storefront.tree import DEFAULT_MAX_LEVELS, RepositoryLookup, descendants

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "products"


# ═══════════════════════════════════════════════════════════════════════════════
# Inputs
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductQuery:
    """
    Listing filters.

    category_id excludes the ancestor filters. ancestor_id wins over
    ancestor_name when both are given.
    """

    category_id: ObjectId | None = None
    ancestor_id: ObjectId | None = None
    ancestor_name: str | None = None
    max_depth: int | None = None
    include_self: bool = True
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    featured: bool | None = None
    search: str | None = None


@dataclass(frozen=True, slots=True)
class ProductDraft:
    name: str
    description: str
    price: float
    count_in_stock: int
    category_id: ObjectId
    brand: str = ""
    old_price: float | None = None
    rating: float = 0.0
    num_reviews: int = 0
    is_featured: bool = False
    discount: int = 0
    ram_options: tuple[str, ...] = ()
    sizes: tuple[str, ...] = ()
    weights: tuple[str, ...] = ()
    images: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ProductPatch:
    """Partial update: only fields set in `changes` are applied."""

    changes: dict[str, Any] = field(default_factory=dict)


EDITABLE_FIELDS = frozenset({
    "name", "description", "brand", "price", "old_price", "category_id",
    "count_in_stock", "rating", "num_reviews", "is_featured", "discount",
    "ram_options", "sizes", "weights",
})


def validate_product(p: Product) -> CatalogError | None:
    if not p.name.strip():
        return CatalogError.invalid_request("name is required")
    if not p.description.strip():
        return CatalogError.invalid_request("description is required")
    if p.price < 0:
        return CatalogError.invalid_request("price must not be negative")
    if p.old_price is not None and p.old_price < p.price:
        return CatalogError.invalid_request("old_price must not be lower than price")
    if p.count_in_stock < 0:
        return CatalogError.invalid_request("count_in_stock must not be negative")
    if not 0 <= p.rating <= 5:
        return CatalogError.invalid_request("rating must be between 0 and 5")
    if p.num_reviews < 0:
        return CatalogError.invalid_request("num_reviews must not be negative")
    if not 0 <= p.discount <= 100:
        return CatalogError.invalid_request("discount must be between 0 and 100")
    if not p.images:
        return CatalogError.invalid_request("At least one product image is required")
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Service
# ═══════════════════════════════════════════════════════════════════════════════


class ProductService:
    def __init__(
        self,
        products: Repository[Product],
        categories: Repository[Category],
        images: ImageStore,
        *,
        max_tree_levels: int = DEFAULT_MAX_LEVELS,
    ) -> None:
        self._products = products
        self._categories = categories
        self._images = images
        self._lookup = RepositoryLookup(categories)
        self._max_tree_levels = max_tree_levels

    # ── Reads ──────────────────────────────────────────────────────────────────

    async def list(
        self, query: ProductQuery, page: PageRequest
    ) -> Result[Page[ProductView], CatalogError]:
        """
        Filtered listing. An ancestor filter expands to the ancestor's
        descendant categories first; an empty expansion matches nothing.
        """
        if query.category_id is not None and (
            query.ancestor_id is not None or query.ancestor_name
        ):
            return Error(CatalogError.invalid_request(
                "Use either a category id or an ancestor category, not both"
            ))

        category_ids: frozenset[ObjectId] | None = None
        ancestor = query.ancestor_id
        if ancestor is None and query.ancestor_name:
            match await self._category_by_name(query.ancestor_name):
                case Ok(found):
                    ancestor = found.id
                case Error(e):
                    return Error(e)

        if ancestor is not None:
            match await descendants(
                self._lookup,
                ancestor,
                max_depth=query.max_depth,
                include_self=query.include_self,
                max_levels=self._max_tree_levels,
            ):
                case Ok(ids):
                    category_ids = ids
                case Error(e):
                    return Error(e)

        filters = ProductFilters(
            category_id=query.category_id,
            category_ids=category_ids,
            min_price=query.min_price,
            max_price=query.max_price,
            min_rating=query.min_rating,
            featured=query.featured,
            search=query.search,
        )
        match product_filter(filters):
            case Ok(base):
                pass
            case Error(e):
                return Error(e)

        match await paginate(self._products, base, page):
            case Ok(listed):
                pass
            case Error(e):
                return Error(e)

        return await self._with_categories(listed)

    async def list_by_category_name(
        self, name: str, page: PageRequest
    ) -> Result[Page[ProductView], CatalogError]:
        match await self._category_by_name(name):
            case Ok(category):
                return await self.list(ProductQuery(category_id=category.id), page)
            case Error(e):
                return Error(e)

    async def get(self, product_id: ObjectId) -> Result[ProductView, CatalogError]:
        match await self._product(product_id):
            case Ok(product):
                pass
            case Error(e):
                return Error(e)

        match await self._categories.find_one(Eq("id", product.category_id)):
            case Ok(category):
                return Ok(ProductView(product, category))
            case Error(e):
                return Error(storage_failure(e))

    async def count(self) -> Result[int, CatalogError]:
        match await self._products.count(ALL):
            case Ok(total):
                return Ok(total)
            case Error(e):
                return Error(storage_failure(e))

    # ── Writes ─────────────────────────────────────────────────────────────────

    async def create(
        self, draft: ProductDraft, uploads: Sequence[Upload] | None = None
    ) -> Result[Product, CatalogError]:
        """
        Uploaded files take precedence over URLs given in the draft.
        The category must exist.
        """
        match await self._require_category(draft.category_id):
            case Ok(_):
                pass
            case Error(e):
                return Error(e)

        images = draft.images
        uploaded: tuple[str, ...] = ()
        if uploads:
            match await upload_all(self._images, uploads, IMAGE_FOLDER):
                case Ok(urls):
                    images = uploaded = tuple(urls)
                case Error(e):
                    return Error(e)

        values = {f.name: getattr(draft, f.name) for f in dataclasses.fields(draft)}
        values.update(
            name=draft.name.strip(),
            description=draft.description.strip(),
            brand=draft.brand.strip(),
            images=images,
        )
        product = Product(**values)

        if (invalid := validate_product(product)) is not None:
            await delete_all(self._images, uploaded)
            return Error(invalid)

        match await self._products.create(product):
            case Ok(created):
                logger.info("Created product %s", created.id)
                return Ok(created)
            case Error(e):
                await delete_all(self._images, uploaded)
                return Error(storage_failure(e))

    async def update(
        self,
        product_id: ObjectId,
        patch: ProductPatch,
        uploads: Sequence[Upload] | None = None,
    ) -> Result[Product, CatalogError]:
        """Apply a partial update; new uploads replace the whole image set."""
        unknown = set(patch.changes) - EDITABLE_FIELDS
        if unknown:
            return Error(CatalogError.invalid_request(f"Unknown fields: {', '.join(sorted(unknown))}"))
        if not patch.changes and not uploads:
            return Error(CatalogError.invalid_request("No update fields provided"))

        match await self._product(product_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        changes = dict(patch.changes)
        for text in ("name", "description", "brand"):
            if isinstance(changes.get(text), str):
                changes[text] = changes[text].strip()

        if "category_id" in changes:
            match await self._require_category(changes["category_id"]):
                case Ok(_):
                    pass
                case Error(e):
                    return Error(e)

        uploaded: tuple[str, ...] = ()
        if uploads:
            match await upload_all(self._images, uploads, IMAGE_FOLDER):
                case Ok(urls):
                    changes["images"] = uploaded = tuple(urls)
                case Error(e):
                    return Error(e)

        candidate = dataclasses.replace(current, **changes)
        if (invalid := validate_product(candidate)) is not None:
            await delete_all(self._images, uploaded)
            return Error(invalid)

        changes["updated_at"] = utcnow()
        match await self._products.find_one_and_update(
            Eq("id", product_id), Update(assign=changes)
        ):
            case Ok(None):
                await delete_all(self._images, uploaded)
                return Error(CatalogError.not_found("Product not found"))
            case Ok(updated):
                pass
            case Error(e):
                await delete_all(self._images, uploaded)
                return Error(storage_failure(e))

        if uploads:
            await delete_all(self._images, current.images)
        return Ok(updated)

    async def delete(self, product_id: ObjectId) -> Result[Product, CatalogError]:
        match await self._products.find_one_and_delete(Eq("id", product_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Product not found"))
            case Ok(deleted):
                await delete_all(self._images, deleted.images)
                logger.info("Deleted product %s", product_id)
                return Ok(deleted)
            case Error(e):
                return Error(storage_failure(e))

    async def add_images(
        self, product_id: ObjectId, uploads: Sequence[Upload]
    ) -> Result[Product, CatalogError]:
        if not uploads:
            return Error(CatalogError.invalid_request("No files uploaded"))

        match await self._product(product_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        match await upload_all(self._images, uploads, IMAGE_FOLDER):
            case Ok(urls):
                pass
            case Error(e):
                return Error(e)

        match await self._set_images(product_id, current.images + tuple(urls)):
            case Ok(updated):
                return Ok(updated)
            case Error(e):
                await delete_all(self._images, urls)
                return Error(e)

    async def remove_image(
        self, product_id: ObjectId, url: str
    ) -> Result[Product, CatalogError]:
        if not url:
            return Error(CatalogError.invalid_request("Image URL is required"))

        match await self._product(product_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        if url not in current.images:
            return Error(CatalogError.not_found("Image not found in this product"))
        if len(current.images) <= 1:
            return Error(CatalogError.invalid_request("Cannot delete the last image of a product"))

        match await self._set_images(
            product_id, tuple(i for i in current.images if i != url)
        ):
            case Ok(updated):
                await delete_all(self._images, [url])
                return Ok(updated)
            case Error(e):
                return Error(e)

    # ── Helpers ────────────────────────────────────────────────────────────────

    async def _product(self, product_id: ObjectId) -> Result[Product, CatalogError]:
        match await self._products.find_one(Eq("id", product_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Product not found"))
            case Ok(product):
                return Ok(product)
            case Error(e):
                return Error(storage_failure(e))

    async def _require_category(self, category_id: ObjectId) -> Result[Category, CatalogError]:
        match await self._categories.find_one(Eq("id", category_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Category not found"))
            case Ok(category):
                return Ok(category)
            case Error(e):
                return Error(storage_failure(e))

    async def _category_by_name(self, name: str) -> Result[Category, CatalogError]:
        if not name or not name.strip():
            return Error(CatalogError.invalid_request("Category name is required"))
        match await self._categories.find_one(equals_ignore_case("name", name.strip())):
            case Ok(None):
                return Error(CatalogError.not_found("Category not found"))
            case Ok(category):
                return Ok(category)
            case Error(e):
                return Error(storage_failure(e))

    async def _set_images(
        self, product_id: ObjectId, images: tuple[str, ...]
    ) -> Result[Product, CatalogError]:
        patch = Update(assign={"images": images, "updated_at": utcnow()})
        match await self._products.find_one_and_update(Eq("id", product_id), patch):
            case Ok(None):
                return Error(CatalogError.not_found("Product not found"))
            case Ok(updated):
                return Ok(updated)
            case Error(e):
                return Error(storage_failure(e))

    async def _with_categories(
        self, page: Page[Product]
    ) -> Result[Page[ProductView], CatalogError]:
        ids = tuple(sorted({p.category_id for p in page.items}))
        if not ids:
            return Ok(page.map(lambda p: ProductView(p, None)))

        match await self._categories.find(In("id", ids), (), 0, None):
            case Ok(found):
                by_id = {c.id: c for c in found}
                return Ok(page.map(lambda p: ProductView(p, by_id.get(p.category_id))))
            case Error(e):
                return Error(storage_failure(e))


__all__ = (
    "IMAGE_FOLDER",
    "ProductQuery",
    "ProductDraft",
    "ProductPatch",
    "EDITABLE_FIELDS",
    "validate_product",
    "ProductService",
)
