"""SQLAlchemy repository over aiosqlite."""

import pytest
from bson import ObjectId

from storefront import paging as P
from storefront import relation
from storefront._errors import ErrorKind
from storefront.catalog import CartItem, Category
from storefront.catalog._tables import create_database, sql_repositories
from storefront.query import ALL, Eq, In, Lte, SortKey, all_of
from storefront.relation import Capacity
from storefront.repo import RepoErrorKind, Update

from tests.helpers import at, category, error_kind, ok, product, repo_error


@pytest.fixture
async def repos(tmp_path):
    session_factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    try:
        yield sql_repositories(session_factory)
    finally:
        await engine.dispose()


@pytest.fixture
def categories_sql(repos):
    return repos[0]


@pytest.fixture
def products_sql(repos):
    return repos[1]


@pytest.fixture
def cart_sql(repos):
    return repos[2]


class TestRecords:
    async def test_round_trip(self, categories_sql, products_sql):
        phones = ok(await categories_sql.create(category("Phones", created_at=at(3))))
        item = product("Pixel", phones, sizes=("S", "M"), old_price=None, created_at=at(4))
        ok(await products_sql.create(item))

        loaded = ok(await products_sql.find_one(Eq("id", item.id)))

        assert loaded == item
        assert loaded.created_at.tzinfo is not None
        assert isinstance(loaded.category_id, ObjectId)
        assert loaded.sizes == ("S", "M")

    async def test_missing_is_none(self, categories_sql):
        assert ok(await categories_sql.find_one(Eq("id", ObjectId()))) is None

    async def test_duplicate_id(self, categories_sql):
        record = category("Phones")
        ok(await categories_sql.create(record))

        result = await categories_sql.create(record)

        assert repo_error(result).kind is RepoErrorKind.DUPLICATE_KEY

    async def test_relation_uniqueness(self, cart_sql, user_id):
        product_id = ObjectId()
        ok(await cart_sql.create(CartItem.new(user_id, product_id, 1)))

        result = await cart_sql.create(CartItem.new(user_id, product_id, 1))

        assert repo_error(result).kind is RepoErrorKind.DUPLICATE_KEY

    async def test_category_name_unique_ignoring_case(self, categories_sql):
        ok(await categories_sql.create(category("Phones")))

        result = await categories_sql.create(category("PHONES"))

        assert repo_error(result).kind is RepoErrorKind.DUPLICATE_KEY

    async def test_rename_into_taken_name(self, categories_sql):
        ok(await categories_sql.create(category("Phones")))
        other = ok(await categories_sql.create(category("Tablets")))

        result = await categories_sql.find_one_and_update(
            Eq("id", other.id), Update(assign={"name": "phones"})
        )

        assert repo_error(result).kind is RepoErrorKind.DUPLICATE_KEY

    async def test_null_and_membership_filters(self, categories_sql):
        root = ok(await categories_sql.create(category("Root")))
        child = ok(await categories_sql.create(category("Child", root)))

        roots = ok(await categories_sql.find(Eq("parent_id", None), (), 0, None))
        children = ok(await categories_sql.find(In("parent_id", (root.id,)), (), 0, None))
        nothing = ok(await categories_sql.find(In("id", ()), (), 0, None))

        assert [c.id for c in roots] == [root.id]
        assert [c.id for c in children] == [child.id]
        assert nothing == []


class TestWrites:
    async def test_guarded_increment(self, cart_sql, user_id):
        item = ok(await cart_sql.create(CartItem.new(user_id, ObjectId(), 3)))
        patch = Update(increment={"quantity": 2})

        hit = ok(await cart_sql.find_one_and_update(
            all_of(Eq("id", item.id), Lte("quantity", 3)), patch
        ))
        miss = ok(await cart_sql.find_one_and_update(
            all_of(Eq("id", item.id), Lte("quantity", 3)), patch
        ))

        assert hit.quantity == 5
        assert miss is None
        assert ok(await cart_sql.find_one(Eq("id", item.id))).quantity == 5

    async def test_assign(self, categories_sql):
        record = ok(await categories_sql.create(category("Phones")))

        updated = ok(await categories_sql.find_one_and_update(
            Eq("id", record.id), Update(assign={"name": "Mobile", "images": ("a", "b")})
        ))

        assert updated.name == "Mobile"
        assert updated.images == ("a", "b")

    async def test_delete(self, cart_sql, user_id):
        items = [ok(await cart_sql.create(CartItem.new(user_id, ObjectId(), 1))) for _ in range(3)]

        removed = ok(await cart_sql.find_one_and_delete(Eq("id", items[0].id)))
        gone = ok(await cart_sql.find_one_and_delete(Eq("id", items[0].id)))
        cleared = ok(await cart_sql.delete_many(Eq("user_id", user_id)))

        assert removed.id == items[0].id
        assert gone is None
        assert cleared == 2
        assert ok(await cart_sql.count(ALL)) == 0

    async def test_add_or_increment(self, cart_sql, user_id):
        product_id = ObjectId()

        first = ok(await relation.add_or_increment(
            cart_sql, user_id, product_id, 1, Capacity.at_most(3), CartItem.new
        ))
        second = ok(await relation.add_or_increment(
            cart_sql, user_id, product_id, 2, Capacity.at_most(3), CartItem.new
        ))
        third = await relation.add_or_increment(
            cart_sql, user_id, product_id, 1, Capacity.at_most(3), CartItem.new
        )

        assert first.created and not second.created
        assert second.value.quantity == 3
        assert error_kind(third) is ErrorKind.CAPACITY_EXCEEDED


class TestListing:
    async def test_cursor_walk_with_shared_timestamps(self, categories_sql):
        for i in range(11):
            ok(await categories_sql.create(category(f"c{i}", created_at=at(i // 4))))

        collected: list[Category] = []
        request = P.PageRequest.first(limit=3, sort=SortKey.OLDEST)
        while True:
            page = ok(await P.paginate(categories_sql, ALL, request))
            collected.extend(page.items)
            if not page.info.has_next_page:
                break
            request = request.next(page.info.next_cursor)

        keys = [(c.created_at, c.id) for c in collected]
        assert len(set(keys)) == 11
        assert keys == sorted(keys)

    async def test_offset_counts(self, categories_sql):
        for i in range(7):
            ok(await categories_sql.create(category(f"c{i}", created_at=at(i))))

        page = ok(await P.paginate(categories_sql, ALL, ok(P.PageRequest.parse(page=2, limit=5))))

        assert [c.name for c in page.items] == ["c1", "c0"]
        assert page.info == P.OffsetInfo(total=7, page=2, limit=5, total_pages=2)

    async def test_page_far_past_the_end(self, categories_sql):
        ok(await categories_sql.create(category("only")))
        request = ok(P.PageRequest.parse(page="100000000000000000000", limit=10))

        page = ok(await P.paginate(categories_sql, ALL, request))

        assert page.items == []
        assert page.info.total == 1
