"""
api/routes/v1/orders.py -- Order preview, checkout, history and cancellation.

Routes:
  POST /api/v1/orders/preview        -- price a basket; nothing is stored
  POST /api/v1/orders                -- place an order (checkout)
  GET  /api/v1/orders                -- the caller's orders, newest first
  POST /api/v1/orders/{id}/cancel    -- cancel a placed order

Pricing is always server-side (orders.store.price_items). The request names
menu item ids and quantities only; names, unit prices, totals, currency and
the order's country come from the catalog.

Cancellation asks two independent questions and needs two yeses:
  1. May this identity cancel an order in that country? (can_cancel_order -> 403)
  2. Is the order in a state that can be cancelled?     (is_cancellable   -> 400)
The store's conditional UPDATE repeats (2) atomically, so a concurrent
second cancel also ends in 400.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import (
    OrderCancel,
    OrderCreate,
    OrderItemResponse,
    OrderPreviewRequest,
    OrderPreviewResponse,
    OrderResponse,
)
from auth.dependencies import forbidden, get_current_identity, require_permission
from auth.models import Identity
from auth.rbac import Permission, can_access_country, can_cancel_order, get_country_filter
from catalog.models import Restaurant
from catalog.store import CatalogStore
from orders.models import Order, OrderStatus
from orders.store import OrderStore, OrderValidationError, is_cancellable, price_items
from payments.store import PaymentStore

logger = logging.getLogger("foodorder.api.orders")

# Auth policy:
# - POST /api/v1/orders/preview:      requires create_order + restaurant in scope
# - POST /api/v1/orders:              requires place_order + restaurant in scope
# - GET  /api/v1/orders:              requires auth; own orders under the country filter
# - POST /api/v1/orders/{id}/cancel:  requires can_cancel_order(identity, order.country)
router = APIRouter()


@router.post("/orders/preview", response_model=OrderPreviewResponse)
def preview_order(
    request: Request,
    body: OrderPreviewRequest,
    identity: Identity = Depends(require_permission(Permission.create_order)),
) -> OrderPreviewResponse:
    """Price the requested items against the restaurant's menu."""
    catalog: CatalogStore = request.app.state.catalog
    restaurant = _get_scoped_restaurant(catalog, body.restaurant_id, identity)
    lines, total = _price(catalog, restaurant, body)
    return OrderPreviewResponse(
        restaurant_id=restaurant.id,
        country=restaurant.country,
        currency_symbol=restaurant.currency_symbol,
        items=[OrderItemResponse.from_item(i) for i in lines],
        total=total,
    )


@router.post("/orders", response_model=OrderResponse, status_code=201)
def place_order(
    request: Request,
    body: OrderCreate,
    identity: Identity = Depends(require_permission(Permission.place_order)),
) -> OrderResponse:
    """Create an order in the placed state.

    The order carries the placing user's country, not the restaurant's, so an
    admin's order abroad stays out of reach of that country's managers.

    A payment_method_id, when given, must name a stored payment method. No
    charge is made; the id is only recorded on the order.
    """
    catalog: CatalogStore = request.app.state.catalog
    order_store: OrderStore = request.app.state.order_store
    payment_store: PaymentStore = request.app.state.payment_store

    restaurant = _get_scoped_restaurant(catalog, body.restaurant_id, identity)
    lines, total = _price(catalog, restaurant, body)
    if body.payment_method_id is not None and payment_store.get(body.payment_method_id) is None:
        raise OrderValidationError(f"Payment method {body.payment_method_id} does not exist.")

    order_id = order_store.create_order(
        Order(
            user_id=identity.id,
            restaurant_id=restaurant.id,
            country=identity.country,
            items=lines,
            status=OrderStatus.placed.value,
            total=total,
            currency_symbol=restaurant.currency_symbol,
            payment_method_id=body.payment_method_id,
        )
    )
    logger.info("User %s placed order %s (restaurant=%s, total=%.2f)", identity.id, order_id, restaurant.id, total)
    return OrderResponse.from_order(_reload(order_store, order_id))


@router.get("/orders", response_model=list[OrderResponse])
def list_orders(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> list[OrderResponse]:
    """Return the caller's own orders, newest first."""
    order_store: OrderStore = request.app.state.order_store
    orders = order_store.list_orders(user_id=identity.id, filters=get_country_filter(identity))
    return [OrderResponse.from_order(o) for o in orders]


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    request: Request,
    order_id: int,
    body: Optional[OrderCancel] = None,
    identity: Identity = Depends(get_current_identity),
) -> OrderResponse:
    """Cancel a placed order.

    404 if the order does not exist, 403 if the caller may not cancel orders
    in its country, 400 "order_cannot_cancel" if it is not in the placed
    state. The authorization answer does not depend on the order's status.
    """
    order_store: OrderStore = request.app.state.order_store
    order = order_store.get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Order not found."},
        )
    if not can_cancel_order(identity, order.country):
        logger.info(
            "Denied cancel of order %s to user %s (role=%s, country=%s, order_country=%s)",
            order_id,
            identity.id,
            identity.role,
            identity.country,
            order.country,
        )
        raise forbidden("You do not have permission to cancel this order.")

    reason = body.reason if body is not None else None
    cancelled = is_cancellable(order.status) and order_store.cancel_order(order_id, reason)
    if not cancelled:
        raise HTTPException(
            status_code=400,
            detail={"code": "order_cannot_cancel", "message": "Only placed orders can be cancelled."},
        )
    logger.info("User %s cancelled order %s", identity.id, order_id)
    return OrderResponse.from_order(_reload(order_store, order_id))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_scoped_restaurant(catalog: CatalogStore, restaurant_id: int, identity: Identity) -> Restaurant:
    restaurant = catalog.get_restaurant(restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Restaurant not found."},
        )
    if not can_access_country(identity, restaurant.country):
        raise forbidden("You cannot order from restaurants in this country.")
    return restaurant


def _price(catalog: CatalogStore, restaurant: Restaurant, body: OrderPreviewRequest):
    requested = [(line.menu_item_id, line.quantity) for line in body.items]
    menu_items = catalog.get_menu_items(item_id for item_id, _ in requested)
    return price_items(restaurant.id, menu_items, requested)


def _reload(order_store: OrderStore, order_id: int) -> Order:
    order = order_store.get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "Order not found after write."},
        )
    return order
