# lab_core/billing/services.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from django.db import transaction
from rest_framework.exceptions import ValidationError

from lab_core.audit.services import AuditService
from lab_core.common import permissions as gate
from lab_core.orders.models import Order, PaymentMethod, PaymentStatus
from lab_core.orders.selectors import get_order_for_update

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def to_money(value: Any, field: str = "paid_amount") -> Decimal:
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidOperation
        return amount.quantize(CENTS)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: "A valid number is required."})


def payment_status_for(paid_amount: Decimal, total_amount: Decimal) -> str:
    """
    paid    iff paid == total and total > 0
    partial iff 0 < paid < total
    pending otherwise
    """
    paid = paid_amount or ZERO
    total = total_amount or ZERO
    if total > ZERO and paid == total:
        return PaymentStatus.PAID
    if ZERO < paid < total:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


class PaymentLedger:
    """
    Keeps paid_amount/payment_status consistent with total_amount.

    - amounts outside [0, total] are clamped, not rejected
    - payment_status is recomputed, never set directly
    - lowering an already recorded amount is rejected (no refunds)
    """

    @staticmethod
    def clamp(amount: Decimal, total_amount: Decimal) -> Decimal:
        total = total_amount or ZERO
        return max(ZERO, min(amount, total)).quantize(CENTS)

    @staticmethod
    def plan(order: Order, new_paid_amount: Any) -> Decimal:
        """
        Validate a requested paid amount against the order without writing.
        Returns the clamped amount that apply() would store.
        """
        requested = to_money(new_paid_amount)
        clamped = PaymentLedger.clamp(requested, order.total_amount)

        current = order.paid_amount or ZERO
        if clamped < current:
            logger.warning(
                "Rejected paid amount decrease on order %s (%s -> %s)", order.order_number, current, clamped
            )
            raise ValidationError({"paid_amount": "Refunds are not supported; the paid amount cannot decrease."})

        if clamped != requested:
            logger.info("Clamped paid amount on order %s from %s to %s", order.order_number, requested, clamped)

        return clamped

    @staticmethod
    def apply(order: Order, new_paid_amount: Any, method: str | None = None) -> list[str]:
        """
        Mutate the order in memory. Returns the changed field names for save(update_fields=...).
        """
        amount = PaymentLedger.plan(order, new_paid_amount)

        if method is not None and method not in PaymentMethod.values:
            raise ValidationError({"payment_method": f"Unknown payment method '{method}'."})

        order.paid_amount = amount
        order.payment_status = payment_status_for(amount, order.total_amount)
        fields = ["paid_amount", "payment_status"]

        if method:
            order.payment_method = method
            fields.append("payment_method")

        return fields

    @staticmethod
    @transaction.atomic
    def record_payment(*, order_id, amount: Any, method: str | None, actor) -> Order:
        gate.require(actor, gate.PAYMENT_RECORD, message="Insufficient permissions to record payments.")

        order = get_order_for_update(order_id)
        previous = order.paid_amount

        fields = PaymentLedger.apply(order, amount, method)
        order.save(update_fields=[*fields, "updated_at"])

        AuditService.log(
            event_code="order.payment_recorded",
            entity_type="Order",
            entity_id=order.id,
            actor_user_id=actor.user_id,
            metadata={
                "from": str(previous),
                "to": str(order.paid_amount),
                "payment_status": order.payment_status,
                "payment_method": order.payment_method,
            },
        )
        logger.info(
            "Payment recorded on order %s: %s/%s (%s)",
            order.order_number,
            order.paid_amount,
            order.total_amount,
            order.payment_status,
        )
        return order
