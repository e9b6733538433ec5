# lab_core/lab/selectors.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from lab_core.iam.models import Role
from lab_core.lab.models import LabResult


def _base_qs() -> QuerySet[LabResult]:
    return LabResult.objects.select_related("order", "test", "patient", "technician", "verified_by")


def get_result_or_404(result_id) -> LabResult:
    try:
        return _base_qs().get(id=result_id)
    except (LabResult.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Result not found.")


def get_result_for_update(result_id) -> LabResult:
    try:
        return LabResult.objects.select_for_update().get(id=result_id)
    except (LabResult.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Result not found.")


def results_visible_to(actor) -> QuerySet[LabResult]:
    qs = _base_qs().order_by("-created_at")
    if actor.role == Role.PATIENT:
        qs = qs.filter(patient__user_id=actor.user_id)
    return qs


def results_for_order(order_id) -> QuerySet[LabResult]:
    return _base_qs().filter(order_id=order_id).order_by("test__code")


def is_result_owner(result: LabResult, actor) -> bool:
    """
    Technicians own the results they submitted; patients own results about them.
    """
    if actor.role == Role.PATIENT:
        return result.patient.user_id == actor.user_id
    return result.technician_id == actor.user_id
