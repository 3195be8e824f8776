"""
repo — Result-based storage port and its adapters.

    from storefront import repo as R

    products = R.MemoryRepository[Product]()
    carts = R.MemoryRepository[CartItem](unique=[("user_id", "product_id")])

    match await carts.create(item):
        case Ok(saved): ...
        case Error(e) if e.is_duplicate_key: ...   # retry as update
        case Error(e): ...

SQLAlchemy and MongoDB adapters live in storefront.repo.sqlalchemy and
storefront.repo.mongo so their drivers load only when used.
"""

from storefront.repo._types import (
    RepoErrorKind,
    RepoError,
    Update,
)
from storefront.repo._protocol import Repository
from storefront.repo._memory import MemoryRepository

__all__ = (
    "RepoErrorKind",
    "RepoError",
    "Update",
    "Repository",
    "MemoryRepository",
)
