"""Wishlist routes, scoped to the calling user."""

from fastapi import APIRouter, Response

from storefront.api._deps import ContainerDep, PageDep, PrincipalDep, object_id
from storefront.api._errors import unwrap
from storefront.api._schemas import MessageOut, WishlistAddIn, WishlistItemOut, WishlistPageOut

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.post("/")
async def add_to_wishlist(
    body: WishlistAddIn, response: Response, container: ContainerDep, principal: PrincipalDep
) -> WishlistItemOut:
    outcome = unwrap(await container.wishlist.add(principal.user_id, body.to_domain()))
    response.status_code = 201 if outcome.created else 200
    return WishlistItemOut.from_domain(outcome.value)


@router.get("/")
async def list_wishlist(
    container: ContainerDep, principal: PrincipalDep, page: PageDep
) -> WishlistPageOut:
    return WishlistPageOut.from_domain(unwrap(await container.wishlist.list(principal.user_id, page)))


@router.delete("/{item_id}")
async def remove_from_wishlist(
    item_id: str, container: ContainerDep, principal: PrincipalDep
) -> MessageOut:
    unwrap(await container.wishlist.remove(principal.user_id, object_id(item_id, "item id")))
    return MessageOut(message="Item removed from wishlist")


__all__ = ("router",)
