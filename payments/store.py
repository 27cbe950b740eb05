"""
payments/store.py -- SQLAlchemy Core persistence for payment methods.

At most one payment method is the default. create() and update() clear the
flag on every other row in the same transaction before setting it, so the
invariant holds even if a request fails halfway.

Field validation (type, four digits) happens in the API request models; the
CHECK constraints here are the last line of defence.
"""

import re
from pathlib import Path
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from core.db import default_db_url, make_engine, now_iso
from payments.models import PAYMENT_TYPES, PaymentMethod

_LAST_FOUR_RE = re.compile(r"[0-9]{4}")

# Columns update() accepts. Anything else is a programming error.
_UPDATABLE = frozenset({"name", "type", "last_four_digits", "is_default"})

metadata = MetaData()

_payment_methods = Table(
    "payment_methods",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("type", String(20), nullable=False),
    Column("last_four_digits", String(4), nullable=False),
    Column("is_default", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("type IN ('credit_card', 'debit_card', 'upi')", name="ck_payment_methods_type"),
    CheckConstraint("length(last_four_digits) = 4", name="ck_payment_methods_last_four"),
)


def is_valid_last_four(value: str) -> bool:
    return bool(_LAST_FOUR_RE.fullmatch(value))


class PaymentStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or default_db_url("foodorder_payments.db", Path(__file__).parent))
        metadata.create_all(self.engine)

    def create(self, method: PaymentMethod) -> int:
        """Insert a payment method and return its ID. Raises ValueError for bad type/digits."""
        _validate(method.type, method.last_four_digits)
        now = now_iso()
        with self.engine.begin() as conn:
            if method.is_default:
                conn.execute(_payment_methods.update().values(is_default=False))
            result = conn.execute(
                _payment_methods.insert().values(
                    name=method.name,
                    type=method.type,
                    last_four_digits=method.last_four_digits,
                    is_default=method.is_default,
                    created_at=now,
                    updated_at=now,
                )
            )
            return result.inserted_primary_key[0]

    def get(self, method_id: int) -> Optional[PaymentMethod]:
        with self.engine.connect() as conn:
            row = conn.execute(_payment_methods.select().where(_payment_methods.c.id == method_id)).fetchone()
        return _row_to_method(row) if row is not None else None

    def list_all(self) -> list[PaymentMethod]:
        """Return every payment method, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _payment_methods.select().order_by(_payment_methods.c.created_at.desc(), _payment_methods.c.id.desc())
            ).fetchall()
        return [_row_to_method(r) for r in rows]

    def update(self, method_id: int, **fields) -> bool:
        """Update name, type, last_four_digits and/or is_default.

        Returns True if the row exists, False otherwise. Unknown field names
        raise ValueError.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown payment method fields: {unknown!r}")
        current = self.get(method_id)
        if current is None:
            return False
        _validate(fields.get("type", current.type), fields.get("last_four_digits", current.last_four_digits))
        with self.engine.begin() as conn:
            if fields.get("is_default"):
                conn.execute(
                    _payment_methods.update().where(_payment_methods.c.id != method_id).values(is_default=False)
                )
            result = conn.execute(
                _payment_methods.update()
                .where(_payment_methods.c.id == method_id)
                .values(updated_at=now_iso(), **fields)
            )
        return result.rowcount > 0

    def delete(self, method_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_payment_methods.delete().where(_payment_methods.c.id == method_id))
        return result.rowcount > 0

    def delete_all(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(_payment_methods.delete())

    def close(self) -> None:
        self.engine.dispose()


def _validate(method_type: str, last_four_digits: str) -> None:
    if method_type not in PAYMENT_TYPES:
        raise ValueError(f"Invalid payment method type: {method_type!r}")
    if not is_valid_last_four(last_four_digits):
        raise ValueError("Last four digits must be exactly 4 digits.")


def _row_to_method(row) -> PaymentMethod:
    return PaymentMethod(
        id=row.id,
        name=row.name,
        type=row.type,
        last_four_digits=row.last_four_digits,
        is_default=bool(row.is_default),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
