"""
catalog — domain records and the services built on the core.

    from storefront import catalog

    products = catalog.ProductService(product_repo, category_repo, images)

    match await products.list(catalog.ProductQuery(ancestor_name="Phones"), page):
        case Ok(listed): ...

Table and collection definitions: storefront.catalog._tables (SQLAlchemy),
storefront.catalog._collections (MongoDB).
"""

from storefront.catalog._models import (
    Category,
    Product,
    CartItem,
    WishlistItem,
    ProductView,
    CartLine,
    WishlistLine,
)
from storefront.catalog._ports import (
    Role,
    Principal,
    Upload,
    ImageStore,
    MemoryImageStore,
)
from storefront.catalog._products import (
    ProductQuery,
    ProductDraft,
    ProductPatch,
    EDITABLE_FIELDS,
    validate_product,
    ProductService,
)
from storefront.catalog._categories import (
    CategoryPatch,
    normalize_name,
    CategoryService,
)
from storefront.catalog._cart import CartService
from storefront.catalog._wishlist import WishlistService

__all__ = (
    # Records
    "Category",
    "Product",
    "CartItem",
    "WishlistItem",
    "ProductView",
    "CartLine",
    "WishlistLine",
    # Ports
    "Role",
    "Principal",
    "Upload",
    "ImageStore",
    "MemoryImageStore",
    # Products
    "ProductQuery",
    "ProductDraft",
    "ProductPatch",
    "EDITABLE_FIELDS",
    "validate_product",
    "ProductService",
    # Categories
    "CategoryPatch",
    "normalize_name",
    "CategoryService",
    # Relations
    "CartService",
    "WishlistService",
)
