"""
api/routes/v1/payments.py -- Payment method management (admin only).

Routes:
  GET    /api/v1/payments        -- list payment methods, newest first
  POST   /api/v1/payments        -- add a payment method
  GET    /api/v1/payments/{id}   -- one payment method
  PATCH  /api/v1/payments/{id}   -- change name, type, digits or default flag
  DELETE /api/v1/payments/{id}   -- remove a payment method

Only the display name, type and last four digits are stored. Nothing is
charged; orders reference a method by id.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import PaymentMethodCreate, PaymentMethodPatch, PaymentMethodResponse
from auth.dependencies import require_permission
from auth.models import Identity
from auth.rbac import Permission
from payments.models import PaymentMethod
from payments.store import PaymentStore

logger = logging.getLogger("foodorder.api.payments")

# Auth policy:
# - every route: requires manage_payments (admin only in ROLE_PERMISSIONS)
router = APIRouter()

_require_manage = require_permission(Permission.manage_payments)


@router.get("/payments", response_model=list[PaymentMethodResponse])
def list_payment_methods(
    request: Request,
    identity: Identity = Depends(_require_manage),
) -> list[PaymentMethodResponse]:
    payment_store: PaymentStore = request.app.state.payment_store
    return [PaymentMethodResponse.from_method(m) for m in payment_store.list_all()]


@router.post("/payments", response_model=PaymentMethodResponse, status_code=201)
def create_payment_method(
    request: Request,
    body: PaymentMethodCreate,
    identity: Identity = Depends(_require_manage),
) -> PaymentMethodResponse:
    """Add a payment method. Setting is_default clears it on every other method."""
    payment_store: PaymentStore = request.app.state.payment_store
    method_id = payment_store.create(
        PaymentMethod(
            name=body.name,
            type=body.type.value,
            last_four_digits=body.last_four_digits,
            is_default=body.is_default,
        )
    )
    logger.info("User %s added payment method %s", identity.id, method_id)
    return PaymentMethodResponse.from_method(_get_or_404(payment_store, method_id))


@router.get("/payments/{method_id}", response_model=PaymentMethodResponse)
def get_payment_method(
    request: Request,
    method_id: int,
    identity: Identity = Depends(_require_manage),
) -> PaymentMethodResponse:
    payment_store: PaymentStore = request.app.state.payment_store
    return PaymentMethodResponse.from_method(_get_or_404(payment_store, method_id))


@router.patch("/payments/{method_id}", response_model=PaymentMethodResponse)
def update_payment_method(
    request: Request,
    method_id: int,
    body: PaymentMethodPatch,
    identity: Identity = Depends(_require_manage),
) -> PaymentMethodResponse:
    payment_store: PaymentStore = request.app.state.payment_store
    updates = body.model_dump(exclude_none=True)
    if "type" in updates:
        updates["type"] = body.type.value
    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )
    if not payment_store.update(method_id, **updates):
        raise _not_found()
    logger.info("User %s updated payment method %s (%s)", identity.id, method_id, ", ".join(sorted(updates)))
    return PaymentMethodResponse.from_method(_get_or_404(payment_store, method_id))


@router.delete("/payments/{method_id}", status_code=204)
def delete_payment_method(
    request: Request,
    method_id: int,
    identity: Identity = Depends(_require_manage),
) -> Response:
    payment_store: PaymentStore = request.app.state.payment_store
    if not payment_store.delete(method_id):
        raise _not_found()
    logger.info("User %s deleted payment method %s", identity.id, method_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Payment method not found."},
    )


def _get_or_404(payment_store: PaymentStore, method_id: int) -> PaymentMethod:
    method = payment_store.get(method_id)
    if method is None:
        raise _not_found()
    return method
