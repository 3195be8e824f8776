"""
FastAPI application factory.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError

from storefront._wiring import Container, build_container
from storefront.api import _cart, _categories, _products, _wishlist
from storefront.api._errors import ApiError, handle_api_error, handle_validation_error
from storefront.config import Settings

API_PREFIX = "/api/v1"


def create_app(
    container: Container | None = None,
    *,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the app.

    With a container, the app serves it as-is and leaves closing it to
    the caller. Without one, the container is built from settings at
    startup and closed at shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            yield
            return
        app.state.container = await build_container(settings)
        try:
            yield
        finally:
            await app.state.container.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    if container is not None:
        app.state.container = container

    app.add_exception_handler(ApiError, handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(_products.router)
    api.include_router(_categories.router)
    api.include_router(_cart.router)
    api.include_router(_wishlist.router)
    app.include_router(api)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = (
    "API_PREFIX",
    "create_app",
)
