"""Unique-relation upserter under concurrent writers."""

import asyncio

import pytest
from bson import ObjectId
from kungfu import Ok, Error

from storefront import relation
from storefront._errors import ErrorKind
from storefront.catalog import CartItem, WishlistItem
from storefront.query import Eq
from storefront.relation import Capacity
from storefront.repo import MemoryRepository, RepoError

from tests.helpers import error_kind, ok

KEY = [("user_id", "product_id")]


@pytest.fixture
def slow_cart() -> MemoryRepository[CartItem]:
    return MemoryRepository[CartItem](unique=KEY, latency=0.001)


class TestCapacity:
    def test_unbounded(self):
        assert Capacity.unbounded().allows(10**9)

    def test_at_most(self):
        assert Capacity.at_most(3).allows(3)
        assert not Capacity.at_most(3).allows(4)


class TestAddOrIncrement:
    async def test_create_then_increment(self, cart_items, user_id):
        product_id = ObjectId()

        first = ok(await relation.add_or_increment(
            cart_items, user_id, product_id, 2, Capacity.unbounded(), CartItem.new
        ))
        second = ok(await relation.add_or_increment(
            cart_items, user_id, product_id, 3, Capacity.unbounded(), CartItem.new
        ))

        assert first.created is True
        assert second.created is False
        assert second.value.id == first.value.id
        assert second.value.quantity == 5
        assert len(cart_items) == 1

    async def test_users_are_independent(self, cart_items):
        product_id = ObjectId()
        for user in (ObjectId(), ObjectId()):
            outcome = ok(await relation.add_or_increment(
                cart_items, user, product_id, 1, Capacity.unbounded(), CartItem.new
            ))
            assert outcome.created is True
        assert len(cart_items) == 2

    @pytest.mark.parametrize("delta", [0, -1])
    async def test_delta_must_be_positive(self, cart_items, user_id, delta):
        result = await relation.add_or_increment(
            cart_items, user_id, ObjectId(), delta, Capacity.unbounded(), CartItem.new
        )
        assert error_kind(result) is ErrorKind.INVALID_REQUEST
        assert len(cart_items) == 0

    async def test_capacity_on_create(self, cart_items, user_id):
        result = await relation.add_or_increment(
            cart_items, user_id, ObjectId(), 4, Capacity.at_most(3), CartItem.new
        )
        assert error_kind(result) is ErrorKind.CAPACITY_EXCEEDED
        assert len(cart_items) == 0

    async def test_capacity_on_increment(self, cart_items, user_id):
        product_id = ObjectId()
        ok(await relation.add_or_increment(
            cart_items, user_id, product_id, 2, Capacity.at_most(3), CartItem.new
        ))

        result = await relation.add_or_increment(
            cart_items, user_id, product_id, 2, Capacity.at_most(3), CartItem.new
        )

        assert error_kind(result) is ErrorKind.CAPACITY_EXCEEDED
        stored = ok(await cart_items.find_one(Eq("user_id", user_id)))
        assert stored.quantity == 2


class TestConcurrentAdds:
    async def test_concurrent_adds_converge(self, slow_cart, user_id):
        product_id = ObjectId()

        results = await asyncio.gather(*[
            relation.add_or_increment(
                slow_cart, user_id, product_id, 1, Capacity.unbounded(), CartItem.new
            )
            for _ in range(10)
        ])

        outcomes = [ok(r) for r in results]
        assert sum(o.created for o in outcomes) == 1
        assert len(slow_cart) == 1
        stored = ok(await slow_cart.find_one(Eq("product_id", product_id)))
        assert stored.quantity == 10

    async def test_concurrent_adds_respect_capacity(self, slow_cart, user_id):
        product_id = ObjectId()

        results = await asyncio.gather(*[
            relation.add_or_increment(
                slow_cart, user_id, product_id, 1, Capacity.at_most(5), CartItem.new
            )
            for _ in range(10)
        ])

        succeeded = [r for r in results if isinstance(r, Ok)]
        rejected = [r for r in results if isinstance(r, Error)]
        assert len(succeeded) == 5
        assert all(error_kind(r) is ErrorKind.CAPACITY_EXCEEDED for r in rejected)
        stored = ok(await slow_cart.find_one(Eq("product_id", product_id)))
        assert stored.quantity == 5

    async def test_concurrent_wishlist_adds_converge(self, user_id):
        items = MemoryRepository[WishlistItem](unique=KEY, latency=0.001)
        product_id = ObjectId()

        results = await asyncio.gather(*[
            relation.add_unique(items, user_id, product_id, WishlistItem.new)
            for _ in range(8)
        ])

        outcomes = [ok(r) for r in results]
        assert sum(o.created for o in outcomes) == 1
        assert len({o.value.id for o in outcomes}) == 1
        assert len(items) == 1


class VanishingRepo(MemoryRepository[CartItem]):
    """Reports a duplicate key on create but never finds the winner."""

    async def find_one(self, filter):
        return Ok(None)

    async def create(self, record):
        return Error(RepoError.duplicate_key("duplicate (user_id, product_id)"))


class TestLostRace:
    async def test_vanished_winner_is_internal(self, user_id):
        result = await relation.add_or_increment(
            VanishingRepo(), user_id, ObjectId(), 1, Capacity.unbounded(), CartItem.new
        )
        assert error_kind(result) is ErrorKind.INTERNAL

    async def test_add_unique_vanished_winner_is_internal(self, user_id):
        result = await relation.add_unique(VanishingRepo(), user_id, ObjectId(), CartItem.new)
        assert error_kind(result) is ErrorKind.INTERNAL


class TestSingleRowOps:
    async def test_add_unique_returns_existing(self, wishlist_items, user_id):
        product_id = ObjectId()
        first = ok(await relation.add_unique(wishlist_items, user_id, product_id, WishlistItem.new))
        again = ok(await relation.add_unique(wishlist_items, user_id, product_id, WishlistItem.new))

        assert first.created and not again.created
        assert again.value.id == first.value.id

    async def test_set_quantity(self, cart_items, user_id):
        item = ok(await cart_items.create(CartItem.new(user_id, ObjectId(), 1)))

        updated = ok(await relation.set_quantity(cart_items, item.id, user_id, 4, Capacity.at_most(5)))

        assert updated.quantity == 4

    async def test_set_quantity_checks_capacity(self, cart_items, user_id):
        item = ok(await cart_items.create(CartItem.new(user_id, ObjectId(), 1)))
        result = await relation.set_quantity(cart_items, item.id, user_id, 6, Capacity.at_most(5))
        assert error_kind(result) is ErrorKind.CAPACITY_EXCEEDED

    async def test_other_users_item_is_not_found(self, cart_items, user_id):
        item = ok(await cart_items.create(CartItem.new(user_id, ObjectId(), 1)))
        stranger = ObjectId()

        assert error_kind(await relation.get_owned(cart_items, item.id, stranger)) is ErrorKind.NOT_FOUND
        assert error_kind(await relation.remove(cart_items, item.id, stranger)) is ErrorKind.NOT_FOUND
        assert error_kind(await relation.set_quantity(
            cart_items, item.id, stranger, 2, Capacity.unbounded()
        )) is ErrorKind.NOT_FOUND
        assert len(cart_items) == 1

    async def test_remove(self, cart_items, user_id):
        item = ok(await cart_items.create(CartItem.new(user_id, ObjectId(), 1)))

        removed = ok(await relation.remove(cart_items, item.id, user_id))

        assert removed.id == item.id
        assert len(cart_items) == 0

    async def test_clear_is_scoped_to_user(self, cart_items, user_id):
        other = ObjectId()
        for _ in range(3):
            ok(await cart_items.create(CartItem.new(user_id, ObjectId(), 1)))
        ok(await cart_items.create(CartItem.new(other, ObjectId(), 1)))

        assert ok(await relation.clear(cart_items, user_id)) == 3
        assert len(cart_items) == 1
        assert ok(await relation.clear(cart_items, user_id)) == 0
