"""Wishlist service — per-user saved products, one entry per product."""

from __future__ import annotations

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront import relation
from storefront._errors import CatalogError
from storefront.catalog._models import Product, WishlistItem, WishlistLine
from storefront.paging import Page, PageRequest, paginate, storage_failure
from storefront.query import Eq, In
from storefront.relation import UpsertOutcome
from storefront.repo import Repository


class WishlistService:
    def __init__(
        self,
        items: Repository[WishlistItem],
        products: Repository[Product],
    ) -> None:
        self._items = items
        self._products = products

    async def add(
        self, user_id: ObjectId, product_id: ObjectId
    ) -> Result[UpsertOutcome[WishlistItem], CatalogError]:
        """Save product; adding it again returns the existing entry."""
        match await self._products.find_one(Eq("id", product_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Product not found"))
            case Ok(_):
                pass
            case Error(e):
                return Error(storage_failure(e))

        return await relation.add_unique(self._items, user_id, product_id, make=WishlistItem.new)

    async def list(
        self, user_id: ObjectId, page: PageRequest
    ) -> Result[Page[WishlistLine], CatalogError]:
        if not page.sort.cursor_compatible:
            return Error(CatalogError.invalid_request("Wishlist supports only newest or oldest sorting"))

        match await paginate(self._items, Eq("user_id", user_id), page):
            case Ok(listed):
                pass
            case Error(e):
                return Error(e)

        ids = tuple(sorted({i.product_id for i in listed.items}))
        if not ids:
            return Ok(listed.map(lambda i: WishlistLine(i, None)))

        match await self._products.find(In("id", ids), (), 0, None):
            case Ok(found):
                by_id = {p.id: p for p in found}
                return Ok(listed.map(lambda i: WishlistLine(i, by_id.get(i.product_id))))
            case Error(e):
                return Error(storage_failure(e))

    async def remove(
        self, user_id: ObjectId, item_id: ObjectId
    ) -> Result[WishlistItem, CatalogError]:
        return await relation.remove(self._items, item_id, user_id)


__all__ = ("WishlistService",)
