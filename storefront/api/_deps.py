"""
Request dependencies — container, caller identity, paging, path ids.
"""

from collections.abc import Sequence
from typing import Annotated

from bson import ObjectId
from fastapi import Depends, Header, Request, UploadFile

from storefront._errors import CatalogError
from storefront._types import parse_id
from storefront._wiring import Container
from storefront.api._errors import ApiError, unwrap
from storefront.catalog import Principal, Role, Upload
from storefront.paging import PageRequest


def get_container(request: Request) -> Container:
    return request.app.state.container


ContainerDep = Annotated[Container, Depends(get_container)]


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


def current_principal(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Principal:
    """
    Caller from X-User-Id / X-User-Role, set by the authenticating gateway.
    """
    user_id = parse_id(x_user_id)
    if user_id is None:
        raise ApiError.unauthorized()
    try:
        role = Role((x_user_role or Role.USER.value).strip().lower())
    except ValueError:
        raise ApiError.unauthorized(f"Unknown role '{x_user_role}'") from None
    return Principal(user_id, role)


PrincipalDep = Annotated[Principal, Depends(current_principal)]


def require_admin(principal: PrincipalDep) -> Principal:
    if not principal.is_admin:
        raise ApiError.forbidden()
    return principal


AdminDep = Annotated[Principal, Depends(require_admin)]


# ═══════════════════════════════════════════════════════════════════════════════
# Parameters
# ═══════════════════════════════════════════════════════════════════════════════


def page_request(
    container: ContainerDep,
    page: str | None = None,
    limit: str | None = None,
    cursor: str | None = None,
    sort: str | None = None,
    mode: str | None = None,
) -> PageRequest:
    # Raw strings: page and limit are clamped leniently, never rejected.
    return unwrap(PageRequest.parse(
        page=page,
        limit=limit,
        cursor=cursor,
        sort=sort,
        mode=mode,
        policy=container.policy,
    ))


PageDep = Annotated[PageRequest, Depends(page_request)]


def object_id(raw: str, what: str = "id") -> ObjectId:
    parsed = parse_id(raw)
    if parsed is None:
        raise ApiError.of(CatalogError.invalid_request(f"Invalid {what}"))
    return parsed


def optional_id(raw: str | None, what: str) -> ObjectId | None:
    if raw is None or raw == "":
        return None
    return object_id(raw, what)


async def read_uploads(files: Sequence[UploadFile] | None) -> list[Upload]:
    uploads: list[Upload] = []
    for file in files or ():
        uploads.append(Upload(
            filename=file.filename or "",
            content=await file.read(),
            content_type=file.content_type or "application/octet-stream",
        ))
    return uploads


__all__ = (
    "get_container",
    "ContainerDep",
    "current_principal",
    "PrincipalDep",
    "require_admin",
    "AdminDep",
    "page_request",
    "PageDep",
    "object_id",
    "optional_id",
    "read_uploads",
)
