"""Category routes. Creation and image uploads take multipart form data."""

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile

from storefront.api._deps import AdminDep, ContainerDep, PageDep, object_id, optional_id, read_uploads
from storefront.api._errors import unwrap
from storefront.api._schemas import (
    CategoryListOut,
    CategoryOut,
    CategoryPageOut,
    CategoryPatchIn,
    MessageOut,
)

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/")
async def list_categories(
    container: ContainerDep,
    page: PageDep,
    parent_id: str | None = None,
    search: str | None = None,
) -> CategoryPageOut:
    listed = unwrap(await container.categories.list(
        page, parent_id=optional_id(parent_id, "parent_id"), search=search
    ))
    return CategoryPageOut.from_domain(listed)


@router.get("/{category_id}")
async def get_category(category_id: str, container: ContainerDep) -> CategoryOut:
    return CategoryOut.from_domain(unwrap(await container.categories.get(object_id(category_id))))


@router.get("/{category_id}/children")
async def category_children(category_id: str, container: ContainerDep) -> CategoryListOut:
    found = unwrap(await container.categories.children(object_id(category_id)))
    return CategoryListOut.from_domain(found)


@router.get("/{category_id}/descendants")
async def category_descendants(
    category_id: str,
    container: ContainerDep,
    max_depth: int | None = None,
    include_self: bool = False,
) -> CategoryListOut:
    found = unwrap(await container.categories.descendants(
        object_id(category_id), max_depth=max_depth, include_self=include_self
    ))
    return CategoryListOut.from_domain(found)


@router.post("/", status_code=201)
async def create_category(
    container: ContainerDep,
    _: AdminDep,
    name: Annotated[str, Form()],
    images: Annotated[list[UploadFile] | None, File()] = None,
    parent_id: Annotated[str | None, Form()] = None,
    parent_name: Annotated[str, Form()] = "",
) -> CategoryOut:
    uploads = await read_uploads(images)
    created = unwrap(await container.categories.create(
        name,
        uploads,
        parent_id=optional_id(parent_id, "parent_id"),
        parent_name=parent_name,
    ))
    return CategoryOut.from_domain(created)


@router.patch("/{category_id}")
async def update_category(
    category_id: str, body: CategoryPatchIn, container: ContainerDep, _: AdminDep
) -> CategoryOut:
    updated = unwrap(await container.categories.update(object_id(category_id), body.to_domain()))
    return CategoryOut.from_domain(updated)


@router.delete("/{category_id}")
async def delete_category(category_id: str, container: ContainerDep, _: AdminDep) -> MessageOut:
    unwrap(await container.categories.delete(object_id(category_id)))
    return MessageOut(message="Category deleted")


@router.post("/{category_id}/images")
async def add_category_images(
    category_id: str,
    container: ContainerDep,
    _: AdminDep,
    images: Annotated[list[UploadFile], File()],
) -> CategoryOut:
    uploads = await read_uploads(images)
    updated = unwrap(await container.categories.add_images(object_id(category_id), uploads))
    return CategoryOut.from_domain(updated)


@router.delete("/{category_id}/images")
async def remove_category_image(
    category_id: str,
    container: ContainerDep,
    _: AdminDep,
    url: Annotated[str, Query(min_length=1)],
) -> CategoryOut:
    updated = unwrap(await container.categories.remove_image(object_id(category_id), url))
    return CategoryOut.from_domain(updated)


__all__ = ("router",)
