from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from lab_core.audit.selectors import list_audit_events
from lab_core.billing.services import PaymentLedger, payment_status_for
from lab_core.common.api.exceptions import AuthorizationError
from lab_core.orders.models import Order, PaymentStatus


@pytest.mark.parametrize(
    "paid, total, expected",
    [
        ("0", "800", "pending"),
        ("1", "800", "partial"),
        ("799.99", "800", "partial"),
        ("800", "800", "paid"),
        ("0", "0", "pending"),
    ],
)
def test_payment_status_is_a_function_of_paid_and_total(paid, total, expected):
    assert payment_status_for(Decimal(paid), Decimal(total)) == expected


def test_apply_clamps_into_range_in_memory():
    order = Order(order_number="ORD-T", total_amount=Decimal("800.00"), paid_amount=Decimal("0.00"))

    fields = PaymentLedger.apply(order, Decimal("1000.00"))
    assert order.paid_amount == Decimal("800.00")
    assert order.payment_status == PaymentStatus.PAID
    assert set(fields) == {"paid_amount", "payment_status"}


def test_negative_amount_clamps_to_zero():
    order = Order(order_number="ORD-T", total_amount=Decimal("800.00"), paid_amount=Decimal("0.00"))
    PaymentLedger.apply(order, Decimal("-50"))
    assert order.paid_amount == Decimal("0.00")
    assert order.payment_status == PaymentStatus.PENDING


def test_decrease_is_rejected_without_mutation():
    order = Order(order_number="ORD-T", total_amount=Decimal("800.00"), paid_amount=Decimal("500.00"))
    with pytest.raises(ValidationError):
        PaymentLedger.apply(order, Decimal("100.00"))
    assert order.paid_amount == Decimal("500.00")


def test_non_numeric_amount_is_rejected():
    order = Order(order_number="ORD-T", total_amount=Decimal("800.00"), paid_amount=Decimal("0.00"))
    with pytest.raises(ValidationError):
        PaymentLedger.apply(order, "lots")


@pytest.mark.django_db
def test_record_payment_partial_then_full(make_order, actor, reception_user):
    order = make_order()

    order = PaymentLedger.record_payment(order_id=order.id, amount=Decimal("300.00"), method="card", actor=actor(reception_user))
    assert order.payment_status == PaymentStatus.PARTIAL
    assert order.payment_method == "card"

    order = PaymentLedger.record_payment(order_id=order.id, amount=Decimal("800.00"), method=None, actor=actor(reception_user))
    order.refresh_from_db()
    assert order.paid_amount == Decimal("800.00")
    assert order.payment_status == PaymentStatus.PAID

    events = list_audit_events(entity_type="Order", entity_id=order.id, event_code="order.payment_recorded")
    assert events.count() == 2


@pytest.mark.django_db
def test_record_payment_forbidden_for_doctor(make_order, actor, doctor_user):
    order = make_order()
    with pytest.raises(AuthorizationError):
        PaymentLedger.record_payment(order_id=order.id, amount=Decimal("1"), method=None, actor=actor(doctor_user))


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", "sNaN"])
def test_non_finite_amount_is_rejected(amount):
    order = Order(order_number="ORD-T", total_amount=Decimal("800.00"), paid_amount=Decimal("0.00"))

    with pytest.raises(ValidationError) as exc:
        PaymentLedger.plan(order, amount)

    assert "paid_amount" in exc.value.detail
    assert order.paid_amount == Decimal("0.00")


@pytest.mark.django_db
def test_record_payment_with_nan_changes_nothing(make_order, actor, reception_user):
    order = make_order()

    with pytest.raises(ValidationError):
        PaymentLedger.record_payment(order_id=order.id, amount="NaN", method=None, actor=actor(reception_user))

    order.refresh_from_db()
    assert order.paid_amount == Decimal("0.00")
    assert order.payment_status == PaymentStatus.PENDING
