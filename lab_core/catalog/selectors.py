# lab_core/catalog/selectors.py
from __future__ import annotations

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import NotFound

from lab_core.catalog.models import LabTest, TestPackage


def _unique(ids: Iterable) -> list:
    seen = []
    for i in ids or []:
        if i not in seen:
            seen.append(i)
    return seen


def resolve_tests(test_ids: Iterable[UUID]) -> list[LabTest]:
    """
    Resolve every id or raise NotFound. Duplicates are collapsed.
    """
    ids = _unique(test_ids)
    if not ids:
        return []
    try:
        found = list(LabTest.objects.filter(id__in=ids))
    except DjangoValidationError:
        raise NotFound("One or more tests not found.")
    if len(found) != len(ids):
        raise NotFound("One or more tests not found.")
    return found


def resolve_packages(package_ids: Iterable[UUID]) -> list[TestPackage]:
    ids = _unique(package_ids)
    if not ids:
        return []
    try:
        found = list(TestPackage.objects.filter(id__in=ids).prefetch_related("tests"))
    except DjangoValidationError:
        raise NotFound("One or more packages not found.")
    if len(found) != len(ids):
        raise NotFound("One or more packages not found.")
    return found


def snapshot_total(tests: Iterable[LabTest], packages: Iterable[TestPackage]) -> Decimal:
    """
    Sum of current catalog prices. Captured once at order creation.
    """
    total = Decimal("0.00")
    for t in tests:
        total += t.price or Decimal("0.00")
    for p in packages:
        total += p.package_price or Decimal("0.00")
    return total.quantize(Decimal("0.01"))


def get_test_or_404(test_id) -> LabTest:
    try:
        return LabTest.objects.get(id=test_id)
    except (LabTest.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Test not found.")
