"""
api — FastAPI HTTP surface over the catalog services.

    from storefront.api import create_app
    from storefront._wiring import memory_container

    app = create_app(memory_container())     # or create_app(settings=Settings())

Callers identify themselves with X-User-Id (and X-User-Role: admin for
catalog writes). Errors render as {"success": false, "kind", "message"}.
"""

from storefront.api._app import API_PREFIX, create_app
from storefront.api._errors import ApiError, status_for, unwrap
from storefront.api._deps import current_principal, require_admin, page_request

__all__ = (
    "API_PREFIX",
    "create_app",
    "ApiError",
    "status_for",
    "unwrap",
    "current_principal",
    "require_admin",
    "page_request",
)
