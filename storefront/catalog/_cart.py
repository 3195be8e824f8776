"""
Cart service — per-user cart items bounded by product stock.

Stock is read once per mutation; the check is point-in-time and does not
hold against concurrent stock changes made elsewhere.
"""

from __future__ import annotations

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront import relation
from storefront._errors import CatalogError
from storefront.catalog._models import CartItem, CartLine, Product
from storefront.paging import Page, PageRequest, paginate, storage_failure
from storefront.query import Eq, In
from storefront.relation import Capacity, UpsertOutcome
from storefront.repo import Repository


class CartService:
    def __init__(
        self,
        items: Repository[CartItem],
        products: Repository[Product],
    ) -> None:
        self._items = items
        self._products = products

    async def add(
        self,
        user_id: ObjectId,
        product_id: ObjectId,
        quantity: int = 1,
    ) -> Result[UpsertOutcome[CartItem], CatalogError]:
        """Add quantity of product, merging into an existing line."""
        if quantity < 1:
            return Error(CatalogError.invalid_request("Quantity must be at least 1"))

        match await self._product(product_id):
            case Ok(product):
                pass
            case Error(e):
                return Error(e)

        return await relation.add_or_increment(
            self._items,
            user_id,
            product_id,
            quantity,
            Capacity.at_most(product.count_in_stock),
            make=CartItem.new,
        )

    async def list(
        self, user_id: ObjectId, page: PageRequest
    ) -> Result[Page[CartLine], CatalogError]:
        if not page.sort.cursor_compatible:
            return Error(CatalogError.invalid_request("Cart supports only newest or oldest sorting"))

        match await paginate(self._items, Eq("user_id", user_id), page):
            case Ok(listed):
                pass
            case Error(e):
                return Error(e)

        ids = tuple(sorted({i.product_id for i in listed.items}))
        if not ids:
            return Ok(listed.map(lambda i: CartLine(i, None)))

        match await self._products.find(In("id", ids), (), 0, None):
            case Ok(found):
                by_id = {p.id: p for p in found}
                return Ok(listed.map(lambda i: CartLine(i, by_id.get(i.product_id))))
            case Error(e):
                return Error(storage_failure(e))

    async def set_quantity(
        self,
        user_id: ObjectId,
        item_id: ObjectId,
        quantity: int,
    ) -> Result[CartItem, CatalogError]:
        if quantity < 1:
            return Error(CatalogError.invalid_request("Quantity must be at least 1"))

        match await relation.get_owned(self._items, item_id, user_id):
            case Ok(item):
                pass
            case Error(e):
                return Error(e)

        match await self._product(item.product_id):
            case Ok(product):
                pass
            case Error(e):
                return Error(e)

        return await relation.set_quantity(
            self._items,
            item_id,
            user_id,
            quantity,
            Capacity.at_most(product.count_in_stock),
        )

    async def remove(self, user_id: ObjectId, item_id: ObjectId) -> Result[CartItem, CatalogError]:
        return await relation.remove(self._items, item_id, user_id)

    async def clear(self, user_id: ObjectId) -> Result[int, CatalogError]:
        return await relation.clear(self._items, user_id)

    async def _product(self, product_id: ObjectId) -> Result[Product, CatalogError]:
        match await self._products.find_one(Eq("id", product_id)):
            case Ok(None):
                return Error(CatalogError.not_found("Product not found"))
            case Ok(product):
                return Ok(product)
            case Error(e):
                return Error(storage_failure(e))


__all__ = ("CartService",)
