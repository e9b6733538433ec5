# lab_core/orders/filters.py
from __future__ import annotations

import django_filters
from django.db.models import Q

from lab_core.orders.models import Order, OrderPriority, OrderStatus, PaymentStatus


class OrderFilter(django_filters.FilterSet):
    order_status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_status = django_filters.ChoiceFilter(choices=PaymentStatus.choices)
    priority = django_filters.ChoiceFilter(choices=OrderPriority.choices)
    patient = django_filters.UUIDFilter(field_name="patient_id")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Order
        fields = ["order_status", "payment_status", "priority", "patient"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(patient__patient_code__icontains=value)
            | Q(patient__first_name__icontains=value)
            | Q(patient__last_name__icontains=value)
        )
