# lab_core/orders/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from lab_core.catalog.api.serializers import LabTestSummarySerializer, TestPackageSummarySerializer
from lab_core.orders.models import Order, OrderPriority, OrderStatus, PaymentMethod
from lab_core.patients.api.serializers import PatientSummarySerializer


class OrderCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField(help_text="User id of the patient identity.")
    doctor = serializers.IntegerField(required=False, allow_null=True, help_text="User id of the referring doctor.")
    tests = serializers.ListField(child=serializers.UUIDField(), default=list)
    packages = serializers.ListField(child=serializers.UUIDField(), default=list)
    priority = serializers.ChoiceField(choices=OrderPriority.choices, default=OrderPriority.NORMAL)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    notes = serializers.CharField(allow_blank=True, default="")
    sample_collection_date = serializers.DateTimeField(required=False, allow_null=True)
    expected_report_date = serializers.DateTimeField(required=False, allow_null=True)


class OrderUpdateSerializer(serializers.Serializer):
    order_status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=OrderPriority.choices, required=False)
    sample_collection_date = serializers.DateTimeField(required=False, allow_null=True)
    expected_report_date = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    # Any magnitude is accepted; the ledger clamps into [0, total].
    paid_amount = serializers.DecimalField(max_digits=None, decimal_places=None, required=False)


class OrderSerializer(serializers.ModelSerializer):
    patient_detail = PatientSummarySerializer(source="patient", read_only=True)
    tests = LabTestSummarySerializer(many=True, read_only=True)
    packages = TestPackageSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "patient",
            "patient_detail",
            "doctor",
            "tests",
            "packages",
            "total_amount",
            "paid_amount",
            "payment_status",
            "payment_method",
            "order_status",
            "priority",
            "sample_collection_date",
            "expected_report_date",
            "completed_at",
            "notes",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
