"""Cart routes, scoped to the calling user."""

from fastapi import APIRouter, Response

from storefront.api._deps import ContainerDep, PageDep, PrincipalDep, object_id
from storefront.api._errors import unwrap
from storefront.api._schemas import (
    CartAddIn,
    CartItemOut,
    CartPageOut,
    CartQuantityIn,
    DeletedOut,
    MessageOut,
)

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/")
async def add_to_cart(
    body: CartAddIn, response: Response, container: ContainerDep, principal: PrincipalDep
) -> CartItemOut:
    """201 when a new line was created, 200 when an existing one was incremented."""
    product_id, quantity = body.to_domain()
    outcome = unwrap(await container.cart.add(principal.user_id, product_id, quantity))
    response.status_code = 201 if outcome.created else 200
    return CartItemOut.from_domain(outcome.value)


@router.get("/")
async def list_cart(container: ContainerDep, principal: PrincipalDep, page: PageDep) -> CartPageOut:
    return CartPageOut.from_domain(unwrap(await container.cart.list(principal.user_id, page)))


@router.put("/{item_id}")
async def update_cart_item(
    item_id: str, body: CartQuantityIn, container: ContainerDep, principal: PrincipalDep
) -> CartItemOut:
    updated = unwrap(await container.cart.set_quantity(
        principal.user_id, object_id(item_id, "item id"), body.quantity
    ))
    return CartItemOut.from_domain(updated)


@router.delete("/{item_id}")
async def remove_cart_item(item_id: str, container: ContainerDep, principal: PrincipalDep) -> MessageOut:
    unwrap(await container.cart.remove(principal.user_id, object_id(item_id, "item id")))
    return MessageOut(message="Item removed from cart")


@router.delete("/")
async def clear_cart(container: ContainerDep, principal: PrincipalDep) -> DeletedOut:
    return DeletedOut(deleted=unwrap(await container.cart.clear(principal.user_id)))


__all__ = ("router",)
