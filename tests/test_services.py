"""Catalog services over the memory backend."""

import asyncio

import pytest
from bson import ObjectId
from kungfu import Error, Ok

from storefront._errors import ErrorKind
from storefront.catalog import (
    Category,
    CategoryPatch,
    CategoryService,
    MemoryImageStore,
    Product,
    ProductDraft,
    ProductPatch,
    ProductQuery,
    ProductService,
    Upload,
)
from storefront.catalog._ports import upload_all
from storefront.paging import PageRequest
from storefront.query import ALL, Eq, SortKey
from storefront.repo import MemoryRepository, RepoError, Update

from tests.helpers import category, error_kind, ok, product, repo_error

PNG = Upload("a.png", b"\x89PNG", "image/png")


def page(limit: int = 50, sort: SortKey = SortKey.NEWEST) -> PageRequest:
    return PageRequest(limit=limit, sort=sort)


@pytest.fixture
async def tree(categories):
    """Electronics → Phones → Smartphones; Books separate."""
    electronics = category("Electronics")
    phones = category("Phones", electronics)
    smart = category("Smartphones", phones)
    books = category("Books")
    for record in (electronics, phones, smart, books):
        ok(await categories.create(record))
    return electronics, phones, smart, books


@pytest.fixture
async def stocked(products, tree):
    electronics, phones, smart, books = tree
    items = {
        "tv": product("TV", electronics, price=500),
        "landline": product("Landline", phones, price=30),
        "pixel": product("Pixel", smart, price=700, rating=4.6, is_featured=True),
        "novel": product("Novel", books, price=12, count_in_stock=2),
    }
    for item in items.values():
        ok(await products.create(item))
    return items


def names(listed) -> set[str]:
    return {view.product.name for view in listed.items}


class TestProductListing:
    async def test_by_ancestor_name_includes_self(self, product_service, stocked):
        listed = ok(await product_service.list(ProductQuery(ancestor_name="electronics"), page()))
        assert names(listed) == {"TV", "Landline", "Pixel"}

    async def test_excluding_self(self, product_service, stocked, tree):
        electronics, *_ = tree
        query = ProductQuery(ancestor_id=electronics.id, include_self=False)
        listed = ok(await product_service.list(query, page()))
        assert names(listed) == {"Landline", "Pixel"}

    async def test_max_depth(self, product_service, stocked, tree):
        electronics, *_ = tree
        query = ProductQuery(ancestor_id=electronics.id, max_depth=1)
        listed = ok(await product_service.list(query, page()))
        assert names(listed) == {"TV", "Landline"}

    async def test_leaf_without_self_lists_nothing(self, product_service, stocked, tree):
        *_, smart, _ = tree
        query = ProductQuery(ancestor_id=smart.id, include_self=False)
        listed = ok(await product_service.list(query, page()))
        assert listed.items == []
        assert listed.info.total == 0

    async def test_unknown_ancestor_name(self, product_service, stocked):
        result = await product_service.list(ProductQuery(ancestor_name="Garden"), page())
        assert error_kind(result) is ErrorKind.NOT_FOUND

    async def test_ancestor_name_is_literal(self, product_service, stocked):
        result = await product_service.list(ProductQuery(ancestor_name="Elec.*"), page())
        assert error_kind(result) is ErrorKind.NOT_FOUND

    async def test_category_and_ancestor_are_exclusive(self, product_service, tree):
        electronics, phones, *_ = tree
        query = ProductQuery(category_id=phones.id, ancestor_id=electronics.id)
        assert error_kind(await product_service.list(query, page())) is ErrorKind.INVALID_REQUEST

    async def test_filters_and_category_summary(self, product_service, stocked, tree):
        query = ProductQuery(min_price=100, featured=True, min_rating=4)
        listed = ok(await product_service.list(query, page()))

        assert names(listed) == {"Pixel"}
        assert listed.items[0].category.name == "Smartphones"

    async def test_price_sort(self, product_service, stocked):
        listed = ok(await product_service.list(ProductQuery(), page(sort=SortKey.PRICE_ASC)))
        assert [v.product.name for v in listed.items] == ["Novel", "Landline", "TV", "Pixel"]

    async def test_by_category_name(self, product_service, stocked):
        listed = ok(await product_service.list_by_category_name("PHONES", page()))
        assert names(listed) == {"Landline"}

    async def test_count(self, product_service, stocked):
        assert ok(await product_service.count()) == 4


class TestProductWrites:
    def draft(self, category_id: ObjectId, **kw) -> ProductDraft:
        values = dict(
            name="  Tablet ",
            description="10 inch",
            price=300.0,
            count_in_stock=4,
            category_id=category_id,
            images=("https://cdn.example/tablet.png",),
        )
        values.update(kw)
        return ProductDraft(**values)

    async def test_create(self, product_service, tree):
        electronics, *_ = tree
        created = ok(await product_service.create(self.draft(electronics.id)))
        assert created.name == "Tablet"

    async def test_create_requires_category(self, product_service, tree):
        result = await product_service.create(self.draft(ObjectId()))
        assert error_kind(result) is ErrorKind.NOT_FOUND

    async def test_create_validates(self, product_service, tree, images):
        electronics, *_ = tree
        result = await product_service.create(
            self.draft(electronics.id, old_price=100.0), uploads=[PNG]
        )
        assert error_kind(result) is ErrorKind.INVALID_REQUEST
        assert len(images) == 0

    async def test_create_requires_image(self, product_service, tree):
        electronics, *_ = tree
        result = await product_service.create(self.draft(electronics.id, images=()))
        assert error_kind(result) is ErrorKind.INVALID_REQUEST

    async def test_uploads_replace_urls(self, product_service, tree, images):
        electronics, *_ = tree
        created = ok(await product_service.create(self.draft(electronics.id), uploads=[PNG, PNG]))
        assert len(created.images) == 2
        assert all(url in images for url in created.images)

    async def test_update(self, product_service, stocked):
        pixel = stocked["pixel"]
        updated = ok(await product_service.update(pixel.id, ProductPatch({"price": 650.0, "name": " Pixel 9 "})))
        assert updated.price == 650.0
        assert updated.name == "Pixel 9"
        assert updated.updated_at >= pixel.updated_at

    async def test_empty_update(self, product_service, stocked):
        result = await product_service.update(stocked["pixel"].id, ProductPatch({}))
        assert error_kind(result) is ErrorKind.INVALID_REQUEST

    async def test_unknown_field(self, product_service, stocked):
        result = await product_service.update(stocked["pixel"].id, ProductPatch({"id": ObjectId()}))
        assert error_kind(result) is ErrorKind.INVALID_REQUEST

    async def test_update_uploads_replace_images(self, product_service, tree, images):
        electronics, *_ = tree
        created = ok(await product_service.create(self.draft(electronics.id), uploads=[PNG]))

        updated = ok(await product_service.update(created.id, ProductPatch({}), uploads=[PNG]))

        assert updated.images != created.images
        assert created.images[0] not in images
        assert updated.images[0] in images

    async def test_image_management(self, product_service, tree, images):
        electronics, *_ = tree
        created = ok(await product_service.create(self.draft(electronics.id), uploads=[PNG]))

        grown = ok(await product_service.add_images(created.id, [PNG]))
        assert len(grown.images) == 2

        shrunk = ok(await product_service.remove_image(created.id, grown.images[0]))
        assert shrunk.images == grown.images[1:]

        last = await product_service.remove_image(created.id, shrunk.images[0])
        assert error_kind(last) is ErrorKind.INVALID_REQUEST

        foreign = await product_service.remove_image(created.id, "memory://products/other")
        assert error_kind(foreign) is ErrorKind.NOT_FOUND

    async def test_delete(self, product_service, stocked):
        novel = stocked["novel"]
        ok(await product_service.delete(novel.id))
        assert error_kind(await product_service.get(novel.id)) is ErrorKind.NOT_FOUND
        assert error_kind(await product_service.delete(novel.id)) is ErrorKind.NOT_FOUND


class TestCategories:
    async def test_create(self, category_service, images):
        created = ok(await category_service.create("  Garden   Tools ", [PNG]))
        assert created.name == "Garden Tools"
        assert created.images[0] in images

    async def test_name_is_unique_ignoring_case(self, category_service, tree, images):
        result = await category_service.create("electronics", [PNG])
        assert error_kind(result) is ErrorKind.CONFLICT
        assert len(images) == 0

    async def test_requires_image(self, category_service):
        assert error_kind(await category_service.create("Garden", [])) is ErrorKind.INVALID_REQUEST

    async def test_missing_parent(self, category_service):
        result = await category_service.create("Garden", [PNG], parent_id=ObjectId())
        assert error_kind(result) is ErrorKind.NOT_FOUND

    async def test_children_and_descendants(self, category_service, tree):
        electronics, phones, smart, _ = tree

        children = ok(await category_service.children(electronics.id))
        below = ok(await category_service.descendants(electronics.id))
        shallow = ok(await category_service.descendants(electronics.id, max_depth=1, include_self=True))

        assert [c.id for c in children] == [phones.id]
        assert {c.id for c in below} == {phones.id, smart.id}
        assert {c.id for c in shallow} == {electronics.id, phones.id}

    async def test_search_is_literal(self, category_service, tree):
        listed = ok(await category_service.list(page(), search="phone"))
        assert {c.name for c in listed.items} == {"Phones", "Smartphones"}

        nothing = ok(await category_service.list(page(), search=".*"))
        assert nothing.items == []

    async def test_list_by_parent(self, category_service, tree):
        electronics, phones, *_ = tree
        listed = ok(await category_service.list(page(), parent_id=electronics.id))
        assert [c.id for c in listed.items] == [phones.id]

    async def test_rename_conflict(self, category_service, tree):
        _, phones, *_ = tree
        result = await category_service.update(phones.id, CategoryPatch({"name": "BOOKS"}))
        assert error_kind(result) is ErrorKind.CONFLICT

    async def test_rename_keeps_own_name_case(self, category_service, tree):
        _, phones, *_ = tree
        updated = ok(await category_service.update(phones.id, CategoryPatch({"name": "PHONES"})))
        assert updated.name == "PHONES"

    async def test_reparent(self, category_service, tree):
        electronics, phones, smart, books = tree
        updated = ok(await category_service.update(smart.id, CategoryPatch({"parent_id": books.id})))
        assert updated.parent_id == books.id

    async def test_delete_with_children(self, category_service, tree):
        electronics, *_ = tree
        assert error_kind(await category_service.delete(electronics.id)) is ErrorKind.CONFLICT

    async def test_delete_leaf(self, category_service, tree):
        *_, books = tree
        ok(await category_service.delete(books.id))
        assert error_kind(await category_service.get(books.id)) is ErrorKind.NOT_FOUND


class TestCart:
    async def test_add_merges_lines(self, cart_service, stocked, user_id):
        tv = stocked["tv"]

        first = ok(await cart_service.add(user_id, tv.id))
        second = ok(await cart_service.add(user_id, tv.id, 2))

        assert first.created and not second.created
        assert second.value.quantity == 3

    async def test_stock_is_the_limit(self, cart_service, stocked, user_id):
        novel = stocked["novel"]
        ok(await cart_service.add(user_id, novel.id, 2))

        result = await cart_service.add(user_id, novel.id)

        assert error_kind(result) is ErrorKind.CAPACITY_EXCEEDED

    async def test_unknown_product(self, cart_service, user_id):
        assert error_kind(await cart_service.add(user_id, ObjectId())) is ErrorKind.NOT_FOUND

    async def test_list_attaches_products(self, cart_service, stocked, user_id):
        for key in ("tv", "pixel"):
            ok(await cart_service.add(user_id, stocked[key].id))

        listed = ok(await cart_service.list(user_id, page()))

        assert {line.product.name for line in listed.items} == {"TV", "Pixel"}

    async def test_list_rejects_price_sort(self, cart_service, user_id):
        result = await cart_service.list(user_id, page(sort=SortKey.PRICE_ASC))
        assert error_kind(result) is ErrorKind.INVALID_REQUEST

    async def test_set_quantity(self, cart_service, stocked, user_id):
        novel = stocked["novel"]
        line = ok(await cart_service.add(user_id, novel.id)).value

        assert ok(await cart_service.set_quantity(user_id, line.id, 2)).quantity == 2
        over = await cart_service.set_quantity(user_id, line.id, 3)
        assert error_kind(over) is ErrorKind.CAPACITY_EXCEEDED

    async def test_remove_and_clear(self, cart_service, stocked, user_id):
        lines = [ok(await cart_service.add(user_id, stocked[k].id)).value for k in ("tv", "pixel", "novel")]

        ok(await cart_service.remove(user_id, lines[0].id))
        assert error_kind(await cart_service.remove(ObjectId(), lines[1].id)) is ErrorKind.NOT_FOUND
        assert ok(await cart_service.clear(user_id)) == 2


class TestWishlist:
    async def test_add_is_idempotent(self, wishlist_service, stocked, user_id):
        first = ok(await wishlist_service.add(user_id, stocked["tv"].id))
        again = ok(await wishlist_service.add(user_id, stocked["tv"].id))

        assert first.created and not again.created
        assert again.value.id == first.value.id

    async def test_unknown_product(self, wishlist_service, user_id):
        assert error_kind(await wishlist_service.add(user_id, ObjectId())) is ErrorKind.NOT_FOUND

    async def test_list_and_remove(self, wishlist_service, stocked, user_id):
        entry = ok(await wishlist_service.add(user_id, stocked["pixel"].id)).value

        listed = ok(await wishlist_service.list(user_id, page()))
        assert [line.product.name for line in listed.items] == ["Pixel"]

        ok(await wishlist_service.remove(user_id, entry.id))
        assert ok(await wishlist_service.list(user_id, page())).items == []


class FlakyImageStore(MemoryImageStore):
    """Accepts the first `succeed` puts, then fails every one after."""

    def __init__(self, succeed: int) -> None:
        super().__init__()
        self.remaining = succeed

    async def put(self, data: bytes, folder: str) -> str:
        if self.remaining == 0:
            raise OSError("bucket unavailable")
        self.remaining -= 1
        return await super().put(data, folder)


class ScriptedUpdates[T](MemoryRepository[T]):
    """Reads and creates normally; find_one_and_update always returns `outcome`."""

    def __init__(self, outcome, **kw) -> None:
        super().__init__(**kw)
        self.outcome = outcome

    async def find_one_and_update(self, filter, update):
        return self.outcome


class TestUploadCleanup:
    async def test_partial_upload_is_rolled_back(self):
        store = FlakyImageStore(succeed=1)

        result = await upload_all(store, [PNG, PNG], "products")

        assert error_kind(result) is ErrorKind.INTERNAL
        assert len(store) == 0

    async def test_product_create_upload_failure(self, products, categories, tree):
        electronics, *_ = tree
        store = FlakyImageStore(succeed=2)
        service = ProductService(products, categories, store)
        draft = ProductDraft(
            name="Tablet",
            description="10 inch",
            price=300.0,
            count_in_stock=4,
            category_id=electronics.id,
        )

        result = await service.create(draft, uploads=[PNG, PNG, PNG])

        assert error_kind(result) is ErrorKind.INTERNAL
        assert len(store) == 0
        assert ok(await products.count(ALL)) == 0

    async def test_product_update_storage_failure(self, categories, images):
        products = ScriptedUpdates[Product](Error(RepoError.failure("disk full")))
        record = ok(await products.create(product("Lamp", ObjectId())))
        service = ProductService(products, categories, images)

        result = await service.update(record.id, ProductPatch({}), uploads=[PNG])

        assert error_kind(result) is ErrorKind.INTERNAL
        assert len(images) == 0

    async def test_product_update_vanished(self, categories, images):
        products = ScriptedUpdates[Product](Ok(None))
        record = ok(await products.create(product("Lamp", ObjectId())))
        service = ProductService(products, categories, images)

        result = await service.update(record.id, ProductPatch({"price": 5.0}), uploads=[PNG])

        assert error_kind(result) is ErrorKind.NOT_FOUND
        assert len(images) == 0

    async def test_product_add_images_vanished(self, categories, images):
        products = ScriptedUpdates[Product](Ok(None))
        record = ok(await products.create(product("Lamp", ObjectId())))
        service = ProductService(products, categories, images)

        result = await service.add_images(record.id, [PNG, PNG])

        assert error_kind(result) is ErrorKind.NOT_FOUND
        assert len(images) == 0

    async def test_category_rename_duplicate_key_is_conflict(self, images):
        categories = ScriptedUpdates[Category](Error(RepoError.duplicate_key("name")))
        record = ok(await categories.create(category("Garden")))
        service = CategoryService(categories, images)

        result = await service.update(record.id, CategoryPatch({"name": "Yard"}), uploads=[PNG])

        assert error_kind(result) is ErrorKind.CONFLICT
        assert len(images) == 0

    async def test_category_update_storage_failure(self, images):
        categories = ScriptedUpdates[Category](Error(RepoError.failure("disk full")))
        record = ok(await categories.create(category("Garden")))
        service = CategoryService(categories, images)

        result = await service.update(record.id, CategoryPatch({}), uploads=[PNG])

        assert error_kind(result) is ErrorKind.INTERNAL
        assert len(images) == 0

    async def test_category_add_images_vanished(self, images):
        categories = ScriptedUpdates[Category](Ok(None))
        record = ok(await categories.create(category("Garden")))
        service = CategoryService(categories, images)

        result = await service.add_images(record.id, [PNG])

        assert error_kind(result) is ErrorKind.NOT_FOUND
        assert len(images) == 0


class TestConcurrentRenames:
    async def test_one_rename_wins(self, images):
        categories = MemoryRepository[Category](unique=[("name",)], latency=0.001)
        first = ok(await categories.create(category("Garden")))
        second = ok(await categories.create(category("Kitchen")))
        service = CategoryService(categories, images)

        results = await asyncio.gather(
            service.update(first.id, CategoryPatch({"name": "Outdoor"})),
            service.update(second.id, CategoryPatch({"name": "OUTDOOR"})),
        )

        succeeded = [r for r in results if isinstance(r, Ok)]
        conflicts = [r for r in results if not isinstance(r, Ok)]
        assert len(succeeded) == 1
        assert [error_kind(r) for r in conflicts] == [ErrorKind.CONFLICT]

    async def test_unique_key_enforced_on_update(self):
        categories = MemoryRepository[Category](unique=[("name",)])
        ok(await categories.create(category("Garden")))
        other = ok(await categories.create(category("Kitchen")))

        result = await categories.find_one_and_update(
            Eq("id", other.id), Update(assign={"name": "garden"})
        )

        assert repo_error(result).is_duplicate_key
