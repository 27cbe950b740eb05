"""
orders/models.py -- Domain dataclasses for orders.

Pure data containers. Status transitions and pricing live in orders/store.py.

An order is tagged with the country of the restaurant it was placed at; that
tag is what cancellation and listing are scoped by.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    pending = "pending"
    placed = "placed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class OrderItem:
    """A priced line on an order. name and price are copied from the menu at order time."""

    menu_item_id: int
    name: str
    price: float
    quantity: int


@dataclass
class Order:
    """A food order.

    cancelled_at / cancel_reason are set together, once, by the
    placed -> cancelled transition and never cleared.

    id is None before the record is written to the database.
    """

    user_id: int
    restaurant_id: int
    country: str  # "india" | "america"
    items: list[OrderItem] = field(default_factory=list)
    status: str = OrderStatus.pending.value
    total: float = 0.0
    currency_symbol: str = "$"
    payment_method_id: Optional[int] = None
    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
