"""
Category service — hierarchy reads, CRUD and image management.

Only parent existence is checked on write: reparenting may create cycles,
which the tree resolver tolerates.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront._types import utcnow
from storefront.catalog._models import Category
from storefront.catalog._ports import ImageStore, Upload, upload_all, delete_all
from storefront.paging import Page, PageRequest, paginate, storage_failure
from storefront.query import Filter, ALL, Eq, Ne, In, all_of, contains, equals_ignore_case, sort_for, SortKey
from storefront.repo import Repository, Update
from storefront.tree import DEFAULT_MAX_LEVELS, RepositoryLookup, descendants

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "categories"


@dataclass(frozen=True, slots=True)
class CategoryPatch:
    """
    Partial update. Recognised keys: name, parent_id, parent_name.
    parent_id=None detaches the category into a root.
    """

    changes: dict[str, Any] = field(default_factory=dict)


def normalize_name(name: str | None) -> str:
    return " ".join((name or "").split())


class CategoryService:
    def __init__(
        self,
        categories: Repository[Category],
        images: ImageStore,
        *,
        max_tree_levels: int = DEFAULT_MAX_LEVELS,
    ) -> None:
        self._categories = categories
        self._images = images
        self._lookup = RepositoryLookup(categories)
        self._max_tree_levels = max_tree_levels

    # ── Reads ──────────────────────────────────────────────────────────────────

    async def list(
        self,
        page: PageRequest,
        *,
        parent_id: ObjectId | None = None,
        search: str | None = None,
    ) -> Result[Page[Category], CatalogError]:
        parts: list[Filter] = []
        if parent_id is not None:
            parts.append(Eq("parent_id", parent_id))
        if search and search.strip():
            parts.append(contains("name", search.strip()))
        return await paginate(self._categories, all_of(*parts) if parts else ALL, page)

    async def get(self, category_id: ObjectId) -> Result[Category, CatalogError]:
        match await self._categories.find_one(Eq("id", category_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Category not found"))
            case Ok(category):
                return Ok(category)
            case Error(e):
                return Error(storage_failure(e))

    async def children(self, category_id: ObjectId) -> Result[Sequence[Category], CatalogError]:
        """Direct children, newest first."""
        match await self._categories.find(
            Eq("parent_id", category_id), sort_for(SortKey.NEWEST), 0, None
        ):
            case Ok(found):
                return Ok(found)
            case Error(e):
                return Error(storage_failure(e))

    async def descendants(
        self,
        category_id: ObjectId,
        *,
        max_depth: int | None = None,
        include_self: bool = False,
    ) -> Result[Sequence[Category], CatalogError]:
        """Descendant records, newest first."""
        match await descendants(
            self._lookup,
            category_id,
            max_depth=max_depth,
            include_self=include_self,
            max_levels=self._max_tree_levels,
        ):
            case Ok(ids):
                pass
            case Error(e):
                return Error(e)

        if not ids:
            return Ok([])
        match await self._categories.find(
            In("id", tuple(sorted(ids))), sort_for(SortKey.NEWEST), 0, None
        ):
            case Ok(found):
                return Ok(found)
            case Error(e):
                return Error(storage_failure(e))

    # ── Writes ─────────────────────────────────────────────────────────────────

    async def create(
        self,
        name: str,
        uploads: Sequence[Upload],
        *,
        parent_id: ObjectId | None = None,
        parent_name: str = "",
    ) -> Result[Category, CatalogError]:
        normalized = normalize_name(name)
        if not normalized:
            return Error(CatalogError.invalid_request("Category name is required"))
        if not uploads:
            return Error(CatalogError.invalid_request("At least one image is required"))

        match await self._ensure_name_free(normalized, exclude=None):
            case Ok(_):
                pass
            case Error(e):
                return Error(e)

        if parent_id is not None:
            match await self._require_parent(parent_id):
                case Ok(_):
                    pass
                case Error(e):
                    return Error(e)

        match await upload_all(self._images, uploads, IMAGE_FOLDER):
            case Ok(urls):
                pass
            case Error(e):
                return Error(e)

        category = Category(
            name=normalized,
            images=tuple(urls),
            parent_id=parent_id,
            parent_name=parent_name or "",
        )
        match await self._categories.create(category):
            case Ok(created):
                logger.info("Created category %s (%s)", created.id, created.name)
                return Ok(created)
            case Error(e) if e.is_duplicate_key:
                await delete_all(self._images, urls)
                return Error(CatalogError.conflict("Category with this name already exists"))
            case Error(e):
                await delete_all(self._images, urls)
                return Error(storage_failure(e))

    async def update(
        self,
        category_id: ObjectId,
        patch: CategoryPatch,
        uploads: Sequence[Upload] | None = None,
    ) -> Result[Category, CatalogError]:
        unknown = set(patch.changes) - {"name", "parent_id", "parent_name"}
        if unknown:
            return Error(CatalogError.invalid_request(f"Unknown fields: {', '.join(sorted(unknown))}"))

        match await self.get(category_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        changes: dict[str, Any] = {}

        if "name" in patch.changes:
            normalized = normalize_name(patch.changes["name"])
            if normalized and normalized != current.name:
                match await self._ensure_name_free(normalized, exclude=category_id):
                    case Ok(_):
                        pass
                    case Error(e):
                        return Error(e)
            if normalized:
                changes["name"] = normalized

        if "parent_name" in patch.changes:
            changes["parent_name"] = patch.changes["parent_name"] or ""

        if "parent_id" in patch.changes:
            parent_id = patch.changes["parent_id"]
            if parent_id is not None:
                match await self._require_parent(parent_id):
                    case Ok(_):
                        pass
                    case Error(e):
                        return Error(e)
            changes["parent_id"] = parent_id

        if not changes and not uploads:
            return Error(CatalogError.invalid_request("No update fields provided"))

        uploaded: tuple[str, ...] = ()
        if uploads:
            match await upload_all(self._images, uploads, IMAGE_FOLDER):
                case Ok(urls):
                    changes["images"] = uploaded = tuple(urls)
                case Error(e):
                    return Error(e)

        changes["updated_at"] = utcnow()
        match await self._categories.find_one_and_update(
            Eq("id", category_id), Update(assign=changes)
        ):
            case Ok(None):
                await delete_all(self._images, uploaded)
                return Error(CatalogError.not_found("Category not found"))
            case Ok(updated):
                pass
            case Error(e) if e.is_duplicate_key:
                await delete_all(self._images, uploaded)
                return Error(CatalogError.conflict("Category with this name already exists"))
            case Error(e):
                await delete_all(self._images, uploaded)
                return Error(storage_failure(e))

        if uploads:
            await delete_all(self._images, current.images)
        return Ok(updated)

    async def delete(self, category_id: ObjectId) -> Result[Category, CatalogError]:
        match await self.get(category_id):
            case Ok(_):
                pass
            case Error(e):
                return Error(e)

        match await self._categories.count(Eq("parent_id", category_id)):
            case Ok(0):
                pass
            case Ok(_):
                return Error(CatalogError.conflict("Category has child categories"))
            case Error(e):
                return Error(storage_failure(e))

        match await self._categories.find_one_and_delete(Eq("id", category_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Category not found"))
            case Ok(deleted):
                await delete_all(self._images, deleted.images)
                logger.info("Deleted category %s", category_id)
                return Ok(deleted)
            case Error(e):
                return Error(storage_failure(e))

    async def add_images(
        self, category_id: ObjectId, uploads: Sequence[Upload]
    ) -> Result[Category, CatalogError]:
        if not uploads:
            return Error(CatalogError.invalid_request("No files uploaded"))

        match await self.get(category_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        match await upload_all(self._images, uploads, IMAGE_FOLDER):
            case Ok(urls):
                pass
            case Error(e):
                return Error(e)

        match await self._set_images(category_id, current.images + tuple(urls)):
            case Ok(updated):
                return Ok(updated)
            case Error(e):
                await delete_all(self._images, urls)
                return Error(e)

    async def remove_image(self, category_id: ObjectId, url: str) -> Result[Category, CatalogError]:
        if not url:
            return Error(CatalogError.invalid_request("Image URL is required"))

        match await self.get(category_id):
            case Ok(current):
                pass
            case Error(e):
                return Error(e)

        if url not in current.images:
            return Error(CatalogError.not_found("Image not found in this category"))
        if len(current.images) <= 1:
            return Error(CatalogError.invalid_request("Cannot delete the last image of a category"))

        match await self._set_images(category_id, tuple(i for i in current.images if i != url)):
            case Ok(updated):
                await delete_all(self._images, [url])
                return Ok(updated)
            case Error(e):
                return Error(e)

    # ── Helpers ────────────────────────────────────────────────────────────────

    async def _ensure_name_free(
        self, name: str, *, exclude: ObjectId | None
    ) -> Result[None, CatalogError]:
        """Names are unique ignoring case."""
        same_name: Filter = equals_ignore_case("name", name)
        if exclude is not None:
            same_name = all_of(same_name, Ne("id", exclude))
        match await self._categories.find_one(same_name):
            case Ok(None):
                return Ok(None)
            case Ok(_):
                return Error(CatalogError.conflict("Category with this name already exists"))
            case Error(e):
                return Error(storage_failure(e))

    async def _require_parent(self, parent_id: ObjectId) -> Result[Category, CatalogError]:
        match await self._categories.find_one(Eq("id", parent_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Parent category not found"))
            case Ok(parent):
                return Ok(parent)
            case Error(e):
                return Error(storage_failure(e))

    async def _set_images(
        self, category_id: ObjectId, images: tuple[str, ...]
    ) -> Result[Category, CatalogError]:
        patch = Update(assign={"images": images, "updated_at": utcnow()})
        match await self._categories.find_one_and_update(Eq("id", category_id), patch):
            case Ok(None):
                return Error(CatalogError.not_found("Category not found"))
            case Ok(updated):
                return Ok(updated)
            case Error(e):
                return Error(storage_failure(e))


__all__ = (
    "IMAGE_FOLDER",
    "CategoryPatch",
    "normalize_name",
    "CategoryService",
)
