# lab_core/orders/selectors.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from lab_core.catalog.models import LabTest
from lab_core.iam.models import Role
from lab_core.orders.models import Order


def _base_qs() -> QuerySet[Order]:
    return Order.objects.select_related("patient", "doctor", "created_by").prefetch_related(
        "tests", "packages", "packages__tests"
    )


def get_order_or_404(order_id) -> Order:
    try:
        return _base_qs().get(id=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Order not found.")


def get_order_for_update(order_id) -> Order:
    """
    Row-locked load for write paths. Must be called inside transaction.atomic.
    """
    try:
        return Order.objects.select_for_update().get(id=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Order not found.")


def orders_visible_to(actor) -> QuerySet[Order]:
    qs = _base_qs().order_by("-created_at")
    if actor.role == Role.PATIENT:
        qs = qs.filter(patient__user_id=actor.user_id)
    return qs


def is_order_owner(order: Order, actor) -> bool:
    return order.patient.user_id == actor.user_id


def order_test_ids(order: Order) -> set:
    """
    The order's test set: direct tests plus tests of its packages.
    """
    ids = set(order.tests.values_list("id", flat=True))
    ids.update(
        LabTest.objects.filter(packages__orders=order).values_list("id", flat=True)
    )
    return ids


def order_tests(order: Order) -> list[LabTest]:
    return list(LabTest.objects.filter(id__in=order_test_ids(order)).order_by("code"))
