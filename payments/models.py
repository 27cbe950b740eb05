"""
payments/models.py -- Stored payment methods.

Only a display name, a type and the last four digits are kept. No card
number, no token from a processor: orders reference a method by id and no
charge is ever made.
"""

from dataclasses import dataclass
from typing import Optional

PAYMENT_TYPES = ("credit_card", "debit_card", "upi")


@dataclass
class PaymentMethod:
    name: str
    type: str  # "credit_card" | "debit_card" | "upi"
    last_four_digits: str  # exactly four digits
    is_default: bool = False
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
