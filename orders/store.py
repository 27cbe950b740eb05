"""
orders/store.py -- Order persistence, pricing, and the status state machine.

State machine:
  pending    -- terminal for cancellation (never placed)
  placed     -- the only state that may move, and only to cancelled
  cancelled  -- terminal

  placed -> cancelled records cancelled_at and cancel_reason and cannot be
  undone. Whether an actor may cancel (auth.rbac.can_cancel_order) is a
  separate question; the route asks both and needs two yeses.

  cancel_order() issues UPDATE ... WHERE status = 'placed', so two racing
  cancellations of the same order cannot both succeed, and a pending or
  cancelled order is never touched regardless of who asks.

Pricing:
  price_items() builds order lines from the catalog's menu items. Names and
  prices from the client are never read; the request carries only menu item
  ids and quantities.

Items are stored as a JSON array in a TEXT column.
"""

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, Float, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from catalog.models import MenuItem
from core.db import apply_filters, default_db_url, make_engine, now_iso
from orders.models import Order, OrderItem, OrderStatus

DEFAULT_CANCEL_REASON = "No reason provided"

_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.placed.value: frozenset({OrderStatus.cancelled.value}),
}


class OrderValidationError(ValueError):
    """The requested order lines do not describe a valid order."""


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in _TRANSITIONS.get(from_status, frozenset())


def is_cancellable(status: str) -> bool:
    """Only placed orders can be cancelled."""
    return can_transition(status, OrderStatus.cancelled.value)


def price_items(
    restaurant_id: int,
    menu_items: Mapping[int, MenuItem],
    requested: Iterable[tuple[int, int]],
) -> tuple[list[OrderItem], float]:
    """Turn (menu_item_id, quantity) pairs into priced order lines and a total.

    Repeated ids are merged by adding quantities. Every id must name an
    available item on restaurant_id's menu and every quantity must be >= 1,
    otherwise OrderValidationError is raised. An empty request is invalid.
    """
    quantities: dict[int, int] = {}
    for item_id, quantity in requested:
        if quantity < 1:
            raise OrderValidationError(f"Quantity for menu item {item_id} must be at least 1.")
        quantities[item_id] = quantities.get(item_id, 0) + quantity
    if not quantities:
        raise OrderValidationError("An order must contain at least one item.")

    lines: list[OrderItem] = []
    for item_id, quantity in quantities.items():
        menu_item = menu_items.get(item_id)
        if menu_item is None or menu_item.restaurant_id != restaurant_id:
            raise OrderValidationError(f"Menu item {item_id} is not on this restaurant's menu.")
        if not menu_item.is_available:
            raise OrderValidationError(f"Menu item {item_id} is not available.")
        lines.append(OrderItem(menu_item_id=item_id, name=menu_item.name, price=menu_item.price, quantity=quantity))

    total = round(sum(line.price * line.quantity for line in lines), 2)
    return lines, total


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("restaurant_id", Integer, nullable=False),
    Column("items", Text, nullable=False),  # JSON array of order lines
    Column("status", String(20), nullable=False, server_default="pending", index=True),
    Column("total", Float, nullable=False),
    Column("country", String(20), nullable=False, index=True),
    Column("currency_symbol", String(8), nullable=False, server_default="$"),
    Column("payment_method_id", Integer),
    Column("cancelled_at", String(32)),
    Column("cancel_reason", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("status IN ('pending', 'placed', 'cancelled')", name="ck_orders_status"),
    CheckConstraint("country IN ('india', 'america')", name="ck_orders_country"),
    CheckConstraint("total >= 0", name="ck_orders_total"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or default_db_url("foodorder_orders.db", Path(__file__).parent))
        metadata.create_all(self.engine)

    def create_order(self, order: Order) -> int:
        """Insert an order and return its assigned database ID.

        Raises OrderValidationError for an order without items.
        """
        if not order.items:
            raise OrderValidationError("An order must contain at least one item.")
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _orders.insert().values(
                    user_id=order.user_id,
                    restaurant_id=order.restaurant_id,
                    items=json.dumps([_item_to_dict(i) for i in order.items]),
                    status=order.status,
                    total=order.total,
                    country=order.country,
                    currency_symbol=order.currency_symbol,
                    payment_method_id=order.payment_method_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_order(self, order_id: int) -> Optional[Order]:
        with self.engine.connect() as conn:
            row = conn.execute(_orders.select().where(_orders.c.id == order_id)).fetchone()
        return _row_to_order(row) if row is not None else None

    def list_orders(
        self,
        user_id: Optional[int] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> list[Order]:
        """Return orders newest first, optionally for one user and under a scope filter."""
        stmt = _orders.select()
        if user_id is not None:
            stmt = stmt.where(_orders.c.user_id == user_id)
        stmt = apply_filters(stmt, _orders, filters)
        stmt = stmt.order_by(_orders.c.created_at.desc(), _orders.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_order(r) for r in rows]

    def cancel_order(self, order_id: int, reason: Optional[str] = None) -> bool:
        """Move a placed order to cancelled. Returns False if it was not placed.

        The status guard is part of the UPDATE itself, so a pending order, an
        already-cancelled order and a missing id all leave the table untouched.
        """
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _orders.update()
                .where((_orders.c.id == order_id) & (_orders.c.status == OrderStatus.placed.value))
                .values(
                    status=OrderStatus.cancelled.value,
                    cancelled_at=now,
                    cancel_reason=reason or DEFAULT_CANCEL_REASON,
                    updated_at=now,
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(_orders.delete())
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _item_to_dict(item: OrderItem) -> dict:
    return {
        "menu_item_id": item.menu_item_id,
        "name": item.name,
        "price": item.price,
        "quantity": item.quantity,
    }


def _row_to_order(row) -> Order:
    items = [OrderItem(**i) for i in json.loads(row.items)] if row.items else []
    return Order(
        id=row.id,
        user_id=row.user_id,
        restaurant_id=row.restaurant_id,
        items=items,
        status=row.status,
        total=row.total,
        country=row.country,
        currency_symbol=row.currency_symbol or "$",
        payment_method_id=row.payment_method_id,
        cancelled_at=row.cancelled_at,
        cancel_reason=row.cancel_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
