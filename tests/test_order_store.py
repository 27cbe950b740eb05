"""
tests/test_order_store.py -- Unit tests for order pricing, the status state machine and OrderStore.

Coverage:
  - can_transition / is_cancellable over every (from, to) pair
  - price_items: server-side prices, merging, rejection of foreign/unavailable/unknown items
  - OrderStore: create, get, list (per user, under country filter, newest first)
  - cancel_order: only from placed, records time and reason, second cancel loses
"""

from __future__ import annotations

import itertools
import uuid

import pytest

from catalog.models import MenuItem
from orders.models import Order, OrderItem, OrderStatus
from orders.store import (
    DEFAULT_CANCEL_REASON,
    OrderStore,
    OrderValidationError,
    can_transition,
    is_cancellable,
    price_items,
)

STATUSES = [s.value for s in OrderStatus]


@pytest.fixture
def store():
    s = OrderStore(db_url=f"sqlite:///file:test_orders_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


def _order(user_id: int = 1, country: str = "india", status: str = "placed", total: float = 410.0) -> Order:
    return Order(
        user_id=user_id,
        restaurant_id=3,
        country=country,
        items=[
            OrderItem(menu_item_id=10, name="Butter Chicken", price=350.0, quantity=1),
            OrderItem(menu_item_id=11, name="Garlic Naan", price=60.0, quantity=1),
        ],
        status=status,
        total=total,
        currency_symbol="₹" if country == "india" else "$",
    )


MENU = {
    1: MenuItem(id=1, restaurant_id=100, name="Classic Cheeseburger", price=12.99, category="Burgers"),
    2: MenuItem(id=2, restaurant_id=100, name="French Fries", price=4.99, category="Sides"),
    3: MenuItem(id=3, restaurant_id=100, name="Milkshake", price=5.99, category="Beverages", is_available=False),
    4: MenuItem(id=4, restaurant_id=200, name="Masala Dosa", price=120.0, category="Dosas"),
}


class TestStateMachine:
    @pytest.mark.parametrize("from_status,to_status", list(itertools.product(STATUSES, STATUSES)))
    def test_only_placed_to_cancelled(self, from_status: str, to_status: str) -> None:
        expected = (from_status, to_status) == ("placed", "cancelled")
        assert can_transition(from_status, to_status) is expected

    @pytest.mark.parametrize("status,expected", [("pending", False), ("placed", True), ("cancelled", False)])
    def test_is_cancellable(self, status: str, expected: bool) -> None:
        assert is_cancellable(status) is expected

    def test_unknown_status_is_not_cancellable(self) -> None:
        assert is_cancellable("shipped") is False


class TestPriceItems:
    def test_prices_come_from_menu(self) -> None:
        lines, total = price_items(100, MENU, [(1, 2), (2, 1)])
        assert [(line.name, line.price, line.quantity) for line in lines] == [
            ("Classic Cheeseburger", 12.99, 2),
            ("French Fries", 4.99, 1),
        ]
        assert total == 30.97

    def test_repeated_ids_are_merged(self) -> None:
        lines, total = price_items(100, MENU, [(2, 1), (2, 3)])
        assert len(lines) == 1 and lines[0].quantity == 4
        assert total == 19.96

    def test_total_is_rounded_to_cents(self) -> None:
        _, total = price_items(100, MENU, [(1, 3)])
        assert total == 38.97

    @pytest.mark.parametrize(
        "requested",
        [
            [],
            [(1, 0)],
            [(1, -2)],
            [(999, 1)],
            [(4, 1)],
            [(3, 1)],
            [(1, 1), (4, 1)],
        ],
        ids=["empty", "zero-qty", "negative-qty", "unknown", "other-restaurant", "unavailable", "mixed"],
    )
    def test_invalid_requests(self, requested: list[tuple[int, int]]) -> None:
        with pytest.raises(OrderValidationError):
            price_items(100, MENU, requested)

    def test_validation_error_is_a_value_error(self) -> None:
        assert issubclass(OrderValidationError, ValueError)


class TestOrderStore:
    def test_create_and_get(self, store: OrderStore) -> None:
        order_id = store.create_order(_order())
        order = store.get_order(order_id)
        assert order is not None
        assert order.status == "placed"
        assert order.total == 410.0
        assert order.currency_symbol == "₹"
        assert [i.name for i in order.items] == ["Butter Chicken", "Garlic Naan"]
        assert order.cancelled_at is None and order.cancel_reason is None
        assert order.created_at and order.updated_at

    def test_get_missing(self, store: OrderStore) -> None:
        assert store.get_order(12345) is None

    def test_order_without_items_rejected(self, store: OrderStore) -> None:
        empty = _order()
        empty.items = []
        with pytest.raises(OrderValidationError):
            store.create_order(empty)

    def test_list_is_newest_first_and_per_user(self, store: OrderStore) -> None:
        first = store.create_order(_order(user_id=1))
        store.create_order(_order(user_id=2))
        second = store.create_order(_order(user_id=1))
        assert [o.id for o in store.list_orders(user_id=1)] == [second, first]

    def test_list_applies_country_filter(self, store: OrderStore) -> None:
        india = store.create_order(_order(country="india"))
        america = store.create_order(_order(country="america"))
        assert [o.id for o in store.list_orders(filters={"country": "india"})] == [india]
        assert {o.id for o in store.list_orders(filters={})} == {india, america}

    def test_unknown_filter_column_raises(self, store: OrderStore) -> None:
        with pytest.raises(ValueError):
            store.list_orders(filters={"planet": "mars"})


class TestCancelOrder:
    def test_cancel_placed_order(self, store: OrderStore) -> None:
        order_id = store.create_order(_order())
        assert store.cancel_order(order_id, "Changed my mind") is True
        order = store.get_order(order_id)
        assert order.status == "cancelled"
        assert order.cancel_reason == "Changed my mind"
        assert order.cancelled_at is not None

    def test_default_reason(self, store: OrderStore) -> None:
        order_id = store.create_order(_order())
        store.cancel_order(order_id)
        assert store.get_order(order_id).cancel_reason == DEFAULT_CANCEL_REASON

    def test_second_cancel_fails_and_keeps_first_record(self, store: OrderStore) -> None:
        order_id = store.create_order(_order())
        assert store.cancel_order(order_id, "first") is True
        before = store.get_order(order_id)
        assert store.cancel_order(order_id, "second") is False
        after = store.get_order(order_id)
        assert after.cancel_reason == "first"
        assert after.cancelled_at == before.cancelled_at

    def test_pending_order_cannot_be_cancelled(self, store: OrderStore) -> None:
        order_id = store.create_order(_order(status="pending"))
        assert store.cancel_order(order_id) is False
        order = store.get_order(order_id)
        assert order.status == "pending"
        assert order.cancelled_at is None

    def test_missing_order(self, store: OrderStore) -> None:
        assert store.cancel_order(999) is False
