"""Product routes."""

from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile

from storefront.api._deps import AdminDep, ContainerDep, PageDep, object_id, optional_id, read_uploads
from storefront.api._errors import unwrap
from storefront.api._schemas import (
    CountOut,
    MessageOut,
    ProductIn,
    ProductOut,
    ProductPageOut,
    ProductPatchIn,
)
from storefront.catalog import ProductQuery

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/")
async def list_products(
    container: ContainerDep,
    page: PageDep,
    category_id: str | None = None,
    ancestor_id: str | None = None,
    ancestor_name: str | None = None,
    max_depth: int | None = None,
    include_self: bool = True,
    min_price: float | None = None,
    max_price: float | None = None,
    min_rating: float | None = None,
    featured: bool | None = None,
    search: str | None = None,
) -> ProductPageOut:
    query = ProductQuery(
        category_id=optional_id(category_id, "category_id"),
        ancestor_id=optional_id(ancestor_id, "ancestor_id"),
        ancestor_name=ancestor_name,
        max_depth=max_depth,
        include_self=include_self,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        featured=featured,
        search=search,
    )
    return ProductPageOut.from_domain(unwrap(await container.products.list(query, page)))


@router.get("/count")
async def count_products(container: ContainerDep) -> CountOut:
    return CountOut(count=unwrap(await container.products.count()))


@router.get("/by-category-name")
async def products_by_category_name(
    container: ContainerDep,
    page: PageDep,
    name: Annotated[str, Query(min_length=1)],
) -> ProductPageOut:
    listed = unwrap(await container.products.list_by_category_name(name, page))
    return ProductPageOut.from_domain(listed)


@router.get("/{product_id}")
async def get_product(product_id: str, container: ContainerDep) -> ProductOut:
    view = unwrap(await container.products.get(object_id(product_id)))
    return ProductOut.from_view(view)


@router.post("/", status_code=201)
async def create_product(body: ProductIn, container: ContainerDep, _: AdminDep) -> ProductOut:
    return ProductOut.from_domain(unwrap(await container.products.create(body.to_domain())))


@router.patch("/{product_id}")
async def update_product(
    product_id: str, body: ProductPatchIn, container: ContainerDep, _: AdminDep
) -> ProductOut:
    updated = unwrap(await container.products.update(object_id(product_id), body.to_domain()))
    return ProductOut.from_domain(updated)


@router.delete("/{product_id}")
async def delete_product(product_id: str, container: ContainerDep, _: AdminDep) -> MessageOut:
    unwrap(await container.products.delete(object_id(product_id)))
    return MessageOut(message="Product deleted")


@router.post("/{product_id}/images")
async def add_product_images(
    product_id: str,
    container: ContainerDep,
    _: AdminDep,
    images: Annotated[list[UploadFile], File()],
) -> ProductOut:
    uploads = await read_uploads(images)
    updated = unwrap(await container.products.add_images(object_id(product_id), uploads))
    return ProductOut.from_domain(updated)


@router.delete("/{product_id}/images")
async def remove_product_image(
    product_id: str,
    container: ContainerDep,
    _: AdminDep,
    url: Annotated[str, Query(min_length=1)],
) -> ProductOut:
    updated = unwrap(await container.products.remove_image(object_id(product_id), url))
    return ProductOut.from_domain(updated)


__all__ = ("router",)
