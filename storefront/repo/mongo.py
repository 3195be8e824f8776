"""
MongoDB (Motor) adapter for the repository port.

    from storefront.repo.mongo import MongoRepository, to_mongo
"""

from storefront.repo._mongo import (
    to_mongo,
    to_mongo_sort,
    to_mongo_update,
    to_document,
    from_document,
    MongoRepository,
)

__all__ = (
    "to_mongo",
    "to_mongo_sort",
    "to_mongo_update",
    "to_document",
    "from_document",
    "MongoRepository",
)
