"""
SQLAlchemy adapter for the repository port.

    from storefront.repo.sqlalchemy import SQLAlchemyRepository, ObjectIdType, UTCDateTime
"""

from storefront.repo._sqlalchemy import (
    ObjectIdType,
    UTCDateTime,
    compile_filter,
    compile_sort,
    to_row,
    from_row,
    SQLAlchemyRepository,
)

__all__ = (
    "ObjectIdType",
    "UTCDateTime",
    "compile_filter",
    "compile_sort",
    "to_row",
    "from_row",
    "SQLAlchemyRepository",
)
