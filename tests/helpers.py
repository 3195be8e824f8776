"""Shared test helpers."""

from datetime import UTC, datetime, timedelta

import pytest
from bson import ObjectId
from kungfu import Result, Ok, Error

from storefront._errors import CatalogError, ErrorKind
from storefront.catalog import Category, Product
from storefront.repo import RepoError

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def ok[T](result: Result[T, object]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got Error({e!r})")


def error_kind(result: Result[object, CatalogError]) -> ErrorKind:
    match result:
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")
        case Error(e):
            return e.kind


def at(seconds: int) -> datetime:
    return EPOCH + timedelta(seconds=seconds)


def category(name: str, parent: Category | None = None, **kw) -> Category:
    return Category(
        name=name,
        images=kw.pop("images", (f"memory://categories/{name}",)),
        parent_id=None if parent is None else parent.id,
        parent_name="" if parent is None else parent.name,
        **kw,
    )


def product(name: str, cat: Category | ObjectId, **kw) -> Product:
    return Product(
        name=name,
        description=kw.pop("description", f"{name} description"),
        price=kw.pop("price", 10.0),
        category_id=cat if isinstance(cat, ObjectId) else cat.id,
        count_in_stock=kw.pop("count_in_stock", 5),
        images=kw.pop("images", (f"memory://products/{name}",)),
        **kw,
    )


def repo_error(result: Result[object, RepoError]) -> RepoError:
    match result:
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")
        case Error(e):
            return e
