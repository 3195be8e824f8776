"""
SQLAlchemy integration — generic repository for any mapped table.

Usage:
    1. Declare a table whose column names match the record's fields:

        class CartItemTable(Base):
            __tablename__ = "cart_items"
            __table_args__ = (UniqueConstraint("user_id", "product_id"),)
            id: Mapped[ObjectId] = mapped_column(ObjectIdType, primary_key=True)
            user_id: Mapped[ObjectId] = mapped_column(ObjectIdType)
            ...

    2. Create the repository:

        carts = SQLAlchemyRepository(session_factory, CartItemTable, CartItem)

ObjectIds are stored as 24-char lowercase hex — lexicographic order equals
ObjectId order, so (created_at, id) keyset filters work unchanged.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any

from bson import ObjectId
from sqlalchemy import (
    ColumnElement,
    DateTime,
    String,
    and_,
    delete,
    false,
    func,
    or_,
    select,
    true,
    update as sql_update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.types import TypeDecorator

from kungfu import Result, Ok, Error

from storefront._types import as_utc
from storefront.query import (
    Filter,
    Eq,
    Ne,
    In,
    Gt,
    Gte,
    Lt,
    Lte,
    Regex,
    And,
    Or,
    Sort,
    Direction,
)
from storefront.repo._types import RepoError, Update


# ═══════════════════════════════════════════════════════════════════════════════
# Column Types
# ═══════════════════════════════════════════════════════════════════════════════


class ObjectIdType(TypeDecorator[ObjectId]):
    """ObjectId stored as 24-char hex."""

    impl = String(24)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: Any, dialect: Any) -> ObjectId | None:
        if value is None:
            return None
        return ObjectId(value)


class UTCDateTime(TypeDecorator[datetime]):
    """
    Timezone-aware UTC datetime.

    Note: SQLite drops tzinfo — values are normalised to UTC on the way in
    and re-attached on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: Any, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Filter Compilation
# ═══════════════════════════════════════════════════════════════════════════════


def compile_filter(model: type[Any], f: Filter) -> ColumnElement[bool]:
    """Translate a filter tree into a SQL boolean expression."""
    match f:
        case Eq(field, value):
            column = getattr(model, field)
            return column.is_(None) if value is None else column == value
        case Ne(field, value):
            column = getattr(model, field)
            return column.is_not(None) if value is None else column != value
        case In(field, values):
            if not values:
                return false()
            return getattr(model, field).in_(values)
        case Gt(field, value):
            return getattr(model, field) > value
        case Gte(field, value):
            return getattr(model, field) >= value
        case Lt(field, value):
            return getattr(model, field) < value
        case Lte(field, value):
            return getattr(model, field) <= value
        case Regex(field, pattern, ignore_case):
            return getattr(model, field).regexp_match(pattern, flags="i" if ignore_case else None)
        case And(children):
            if not children:
                return true()
            return and_(*(compile_filter(model, c) for c in children))
        case Or(children):
            if not children:
                return false()
            return or_(*(compile_filter(model, c) for c in children))
    raise TypeError(f"Unknown filter node: {f!r}")


def compile_sort(model: type[Any], sort: Sort) -> list[Any]:
    return [
        getattr(model, s.field).desc() if s.direction is Direction.DESC else getattr(model, s.field).asc()
        for s in sort
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Row ↔ Record
# ═══════════════════════════════════════════════════════════════════════════════


def to_row[M](model: type[M], record: Any) -> M:
    values = {
        f.name: list(v) if isinstance(v := getattr(record, f.name), tuple) else v
        for f in dataclasses.fields(record)
    }
    return model(**values)


def from_row[T](entity: type[T], row: Any) -> T:
    values = {
        f.name: tuple(v) if isinstance(v := getattr(row, f.name), list) else v
        for f in dataclasses.fields(entity)  # type: ignore[arg-type]
    }
    return entity(**values)


def _is_unique_violation(e: IntegrityError) -> bool:
    orig = e.orig
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig).lower()


# ═══════════════════════════════════════════════════════════════════════════════
# Generic SQLAlchemy Repository
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyRepository[M, T]:
    """
    Repository over one mapped table.

    Type parameters:
        M: Table model (e.g., ProductTable)
        T: Record dataclass (e.g., Product)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[M],
        entity: type[T],
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self._entity = entity

    async def find(
        self,
        filter: Filter,
        sort: Sort,
        skip: int,
        limit: int | None,
    ) -> Result[list[T], RepoError]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(self._model)
                    .where(compile_filter(self._model, filter))
                    .order_by(*compile_sort(self._model, sort))
                    .offset(skip)
                )
                if limit is not None:
                    stmt = stmt.limit(limit)
                rows = (await session.execute(stmt)).scalars().all()
                return Ok([from_row(self._entity, r) for r in rows])
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to find: {e}", e))

    async def count(self, filter: Filter) -> Result[int, RepoError]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(func.count())
                    .select_from(self._model)
                    .where(compile_filter(self._model, filter))
                )
                return Ok(int((await session.execute(stmt)).scalar_one()))
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to count: {e}", e))

    async def find_one(self, filter: Filter) -> Result[T | None, RepoError]:
        try:
            async with self._session_factory() as session:
                row = await self._first(session, filter)
                return Ok(from_row(self._entity, row) if row is not None else None)
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to find one: {e}", e))

    async def create(self, record: T) -> Result[T, RepoError]:
        try:
            async with self._session_factory() as session:
                session.add(to_row(self._model, record))
                await session.commit()
                return Ok(record)
        except IntegrityError as e:
            if _is_unique_violation(e):
                return Error(RepoError.duplicate_key(f"Duplicate key: {e.orig}", e))
            return Error(RepoError.failure(f"Failed to create: {e}", e))
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to create: {e}", e))

    async def find_one_and_update(
        self, filter: Filter, update: Update
    ) -> Result[T | None, RepoError]:
        """
        SELECT the first match, then UPDATE it with the filter repeated in
        the WHERE clause. rowcount 0 means a concurrent writer got there first.
        """
        model: Any = self._model
        condition = compile_filter(model, filter)
        values: dict[str, Any] = dict(update.assign)
        for name, delta in update.increment.items():
            values[name] = getattr(model, name) + delta

        try:
            async with self._session_factory() as session:
                target = (
                    await session.execute(select(model.id).where(condition).limit(1))
                ).scalar_one_or_none()
                if target is None:
                    return Ok(None)

                result = await session.execute(
                    sql_update(model)
                    .where(model.id == target, condition)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:  # type: ignore[attr-defined]
                    await session.rollback()
                    return Ok(None)
                await session.commit()

                row = (
                    await session.execute(
                        select(model)
                        .where(model.id == target)
                        .execution_options(populate_existing=True)
                    )
                ).scalar_one()
                return Ok(from_row(self._entity, row))
        except IntegrityError as e:
            if _is_unique_violation(e):
                return Error(RepoError.duplicate_key(f"Duplicate key: {e.orig}", e))
            return Error(RepoError.failure(f"Failed to update: {e}", e))
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to update: {e}", e))

    async def find_one_and_delete(self, filter: Filter) -> Result[T | None, RepoError]:
        model: Any = self._model
        try:
            async with self._session_factory() as session:
                row = await self._first(session, filter)
                if row is None:
                    return Ok(None)
                record = from_row(self._entity, row)
                result = await session.execute(
                    delete(model)
                    .where(model.id == record.id, compile_filter(model, filter))  # type: ignore[attr-defined]
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
                if result.rowcount == 0:  # type: ignore[attr-defined]
                    return Ok(None)
                return Ok(record)
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to delete: {e}", e))

    async def delete_many(self, filter: Filter) -> Result[int, RepoError]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(self._model)
                    .where(compile_filter(self._model, filter))
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
                return Ok(int(result.rowcount))  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            return Error(RepoError.failure(f"Failed to delete many: {e}", e))

    async def _first(self, session: AsyncSession, filter: Filter) -> M | None:
        stmt = select(self._model).where(compile_filter(self._model, filter)).limit(1)
        return (await session.execute(stmt)).scalar_one_or_none()


__all__ = (
    "ObjectIdType",
    "UTCDateTime",
    "compile_filter",
    "compile_sort",
    "to_row",
    "from_row",
    "SQLAlchemyRepository",
)
