"""
tests/test_payment_store.py -- Unit tests for PaymentStore.

Coverage:
  - create/get/list/update/delete
  - at most one default: create and update both clear the flag elsewhere
  - type and last-four validation on create and update
"""

from __future__ import annotations

import uuid

import pytest

from payments.models import PaymentMethod
from payments.store import PaymentStore, is_valid_last_four


@pytest.fixture
def store():
    s = PaymentStore(db_url=f"sqlite:///file:test_payments_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


def _defaults(store: PaymentStore) -> list[int]:
    return [m.id for m in store.list_all() if m.is_default]


class TestLastFour:
    @pytest.mark.parametrize("value", ["0000", "4242", "9876"])
    def test_valid(self, value: str) -> None:
        assert is_valid_last_four(value) is True

    @pytest.mark.parametrize("value", ["", "123", "12345", "12a4", "4242\n", " 4242", "١٢٣٤"])
    def test_invalid(self, value: str) -> None:
        assert is_valid_last_four(value) is False


class TestPaymentStore:
    def test_create_and_get(self, store: PaymentStore) -> None:
        mid = store.create(PaymentMethod(name="Visa", type="credit_card", last_four_digits="4242"))
        method = store.get(mid)
        assert method is not None
        assert (method.name, method.type, method.last_four_digits, method.is_default) == (
            "Visa",
            "credit_card",
            "4242",
            False,
        )

    def test_list_newest_first(self, store: PaymentStore) -> None:
        a = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111"))
        b = store.create(PaymentMethod(name="B", type="upi", last_four_digits="2222"))
        assert [m.id for m in store.list_all()] == [b, a]

    @pytest.mark.parametrize(
        "method_type,digits",
        [("paypal", "1234"), ("credit_card", "123"), ("credit_card", "abcd")],
    )
    def test_create_rejects_invalid(self, store: PaymentStore, method_type: str, digits: str) -> None:
        with pytest.raises(ValueError):
            store.create(PaymentMethod(name="Bad", type=method_type, last_four_digits=digits))
        assert store.list_all() == []

    def test_new_default_clears_previous(self, store: PaymentStore) -> None:
        first = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111", is_default=True))
        second = store.create(PaymentMethod(name="B", type="upi", last_four_digits="2222", is_default=True))
        assert _defaults(store) == [second]
        assert store.get(first).is_default is False

    def test_update_fields(self, store: PaymentStore) -> None:
        mid = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111"))
        assert store.update(mid, name="Renamed", last_four_digits="9999") is True
        method = store.get(mid)
        assert (method.name, method.last_four_digits) == ("Renamed", "9999")

    def test_update_default_clears_others(self, store: PaymentStore) -> None:
        a = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111", is_default=True))
        b = store.create(PaymentMethod(name="B", type="upi", last_four_digits="2222"))
        store.update(b, is_default=True)
        assert _defaults(store) == [b]
        store.update(a, is_default=True)
        assert _defaults(store) == [a]

    def test_update_rejects_invalid_values(self, store: PaymentStore) -> None:
        mid = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111"))
        with pytest.raises(ValueError):
            store.update(mid, type="cash")
        with pytest.raises(ValueError):
            store.update(mid, last_four_digits="12")
        assert store.get(mid).type == "upi"

    def test_update_rejects_unknown_fields(self, store: PaymentStore) -> None:
        mid = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111"))
        with pytest.raises(ValueError):
            store.update(mid, id=99)

    def test_update_missing(self, store: PaymentStore) -> None:
        assert store.update(404, name="x") is False

    def test_delete(self, store: PaymentStore) -> None:
        mid = store.create(PaymentMethod(name="A", type="upi", last_four_digits="1111"))
        assert store.delete(mid) is True
        assert store.get(mid) is None
        assert store.delete(mid) is False
