# lab_core/orders/services.py
from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models.functions import Length
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from lab_core.audit.services import AuditService
from lab_core.billing.services import PaymentLedger
from lab_core.catalog.selectors import resolve_packages, resolve_tests, snapshot_total
from lab_core.common import permissions as gate
from lab_core.common.api.exceptions import InvalidTransition
from lab_core.iam.models import Role
from lab_core.orders.models import Order, OrderPriority, OrderStatus, PaymentMethod
from lab_core.orders.selectors import get_order_for_update
from lab_core.orders.transitions import DELETABLE_STATUSES, can_transition
from lab_core.patients.services import PatientService

logger = logging.getLogger(__name__)

# updatable without a state-machine check
EDITABLE_FIELDS = frozenset({"priority", "sample_collection_date", "expected_report_date", "notes", "payment_method"})


def _resolve_doctor(doctor_user_id):
    User = get_user_model()
    doctor = (
        User.objects.filter(id=doctor_user_id, lab_profile__role=Role.DOCTOR, lab_profile__is_active=True)
        .first()
    )
    if doctor is None:
        raise NotFound("Doctor not found.")
    return doctor


def _validate_fields(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError({k: "This field cannot be updated." for k in sorted(unknown)})

    if "priority" in fields and fields["priority"] not in OrderPriority.values:
        raise ValidationError({"priority": f"Unknown priority '{fields['priority']}'."})

    if "payment_method" in fields and fields["payment_method"] not in PaymentMethod.values:
        raise ValidationError({"payment_method": f"Unknown payment method '{fields['payment_method']}'."})

    if "notes" in fields and fields["notes"] is None:
        fields = {**fields, "notes": ""}

    return fields


def _check_transition(order: Order, requested: str | None) -> bool:
    """
    Returns True when requested is a real change that the state machine allows.
    """
    if requested is None or requested == order.order_status:
        return False

    if requested not in OrderStatus.values:
        raise ValidationError({"order_status": f"Unknown order status '{requested}'."})

    if not can_transition(order.order_status, requested):
        logger.warning(
            "Rejected transition on order %s: %s -> %s", order.order_number, order.order_status, requested
        )
        raise InvalidTransition(order.order_status, requested)

    return True


class OrderService:
    """
    Write-model operations for lab orders.
    - create with price snapshot + sequential order number
    - status transitions along the order state machine
    - field/payment updates applied in one save
    - delete while pending/cancelled
    """

    @staticmethod
    def _next_order_number_locked() -> str:
        prefix = getattr(settings, "LAB_ORDER_NUMBER_PREFIX", "ORD")
        day = f"{prefix}{timezone.localdate().strftime('%Y%m%d')}"

        latest = (
            Order.objects.select_for_update()
            .filter(order_number__startswith=day)
            .order_by(Length("order_number").desc(), "-order_number")
            .first()
        )

        if not latest:
            return f"{day}0001"

        m = re.match(rf"{re.escape(day)}(\d{{4,}})$", latest.order_number.strip())
        if not m:
            n = Order.objects.filter(order_number__startswith=day).count() + 1
            return f"{day}{n:04d}"

        n = int(m.group(1)) + 1
        return f"{day}{n:04d}"

    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        actor,
        patient_user_id,
        test_ids: Iterable = (),
        package_ids: Iterable = (),
        doctor_user_id=None,
        priority: str | None = None,
        notes: str = "",
        payment_method: str | None = None,
        sample_collection_date=None,
        expected_report_date=None,
    ) -> Order:
        gate.require(actor, gate.ORDER_CREATE, message="Insufficient permissions to create orders.")

        test_ids = list(test_ids or [])
        package_ids = list(package_ids or [])
        if not test_ids and not package_ids:
            raise ValidationError({"detail": "At least one test or package must be selected"})

        fields = _validate_fields(
            {
                "priority": priority or OrderPriority.NORMAL,
                "payment_method": payment_method or PaymentMethod.CASH,
            }
        )

        tests = resolve_tests(test_ids)
        packages = resolve_packages(package_ids)
        doctor = _resolve_doctor(doctor_user_id) if doctor_user_id else None

        patient = PatientService.resolve_or_provision(user_id=patient_user_id)

        order = Order.objects.create(
            order_number=OrderService._next_order_number_locked(),
            patient=patient,
            doctor=doctor,
            total_amount=snapshot_total(tests, packages),
            priority=fields["priority"],
            payment_method=fields["payment_method"],
            notes=notes or "",
            sample_collection_date=sample_collection_date,
            expected_report_date=expected_report_date,
            created_by_id=actor.user_id,
        )
        if tests:
            order.tests.set(tests)
        if packages:
            order.packages.set(packages)

        AuditService.log(
            event_code="order.created",
            entity_type="Order",
            entity_id=order.id,
            actor_user_id=actor.user_id,
            metadata={
                "order_number": order.order_number,
                "total_amount": str(order.total_amount),
                "tests": [str(t.id) for t in tests],
                "packages": [str(p.id) for p in packages],
            },
        )
        logger.info(
            "Order %s created for patient %s (total %s)",
            order.order_number,
            patient.patient_code,
            order.total_amount,
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_order(
        *,
        order_id,
        actor,
        status: str | None = None,
        fields: dict[str, Any] | None = None,
        paid_amount: Any = None,
    ) -> Order:
        """
        Composite update. Role, transition, field values and payment amount
        are all validated before anything is written; then one save.
        """
        gate.require(actor, gate.ORDER_UPDATE, message="Insufficient permissions to update orders.")
        if paid_amount is not None:
            gate.require(actor, gate.PAYMENT_RECORD, message="Insufficient permissions to record payments.")

        order = get_order_for_update(order_id)
        fields = _validate_fields(dict(fields or {}))

        previous_status = order.order_status
        previous_paid = order.paid_amount
        status_changed = _check_transition(order, status)

        update_fields: set[str] = set()

        if paid_amount is not None:
            update_fields.update(PaymentLedger.apply(order, paid_amount, fields.get("payment_method")))

        if status_changed:
            order.order_status = status
            update_fields.add("order_status")
            if status == OrderStatus.COMPLETED:
                order.completed_at = timezone.now()
                update_fields.add("completed_at")

        for k, v in fields.items():
            setattr(order, k, v)
            update_fields.add(k)

        if not update_fields:
            return order

        order.save(update_fields=[*sorted(update_fields), "updated_at"])

        if status_changed:
            AuditService.log(
                event_code="order.status_changed",
                entity_type="Order",
                entity_id=order.id,
                actor_user_id=actor.user_id,
                metadata={"from": previous_status, "to": order.order_status},
            )
            logger.info("Order %s status %s -> %s", order.order_number, previous_status, order.order_status)

        if paid_amount is not None:
            AuditService.log(
                event_code="order.payment_recorded",
                entity_type="Order",
                entity_id=order.id,
                actor_user_id=actor.user_id,
                metadata={
                    "from": str(previous_paid),
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

        if fields:
            AuditService.log(
                event_code="order.updated",
                entity_type="Order",
                entity_id=order.id,
                actor_user_id=actor.user_id,
                metadata={"fields": sorted(fields)},
            )

        return order

    @staticmethod
    def transition_status(*, order_id, requested_status: str, actor) -> Order:
        return OrderService.update_order(order_id=order_id, actor=actor, status=requested_status)

    @staticmethod
    def update_fields(*, order_id, fields: dict[str, Any], actor) -> Order:
        return OrderService.update_order(order_id=order_id, actor=actor, fields=fields)

    @staticmethod
    @transaction.atomic
    def delete_order(*, order_id, actor) -> None:
        gate.require(actor, gate.ORDER_DELETE, message="Only admins can delete orders.")

        order = get_order_for_update(order_id)
        if order.order_status not in DELETABLE_STATUSES:
            raise ValidationError({"detail": "Only pending or cancelled orders can be deleted"})

        order_number = order.order_number
        entity_id = order.id
        order.delete()

        AuditService.log(
            event_code="order.deleted",
            entity_type="Order",
            entity_id=entity_id,
            actor_user_id=actor.user_id,
            metadata={"order_number": order_number},
        )
        logger.info("Order %s deleted", order_number)
