# lab_core/lab/filters.py
from __future__ import annotations

import django_filters
from django.db.models import Q

from lab_core.lab.models import LabResult, OverallStatus


class LabResultFilter(django_filters.FilterSet):
    order = django_filters.UUIDFilter(field_name="order_id")
    test = django_filters.UUIDFilter(field_name="test_id")
    patient = django_filters.UUIDFilter(field_name="patient_id")
    technician = django_filters.NumberFilter(field_name="technician_id")
    overall_status = django_filters.ChoiceFilter(choices=OverallStatus.choices)
    is_verified = django_filters.BooleanFilter()
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = LabResult
        fields = ["order", "test", "patient", "technician", "overall_status", "is_verified"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order__order_number__icontains=value)
            | Q(test__code__icontains=value)
            | Q(test__name__icontains=value)
            | Q(patient__patient_code__icontains=value)
        )
