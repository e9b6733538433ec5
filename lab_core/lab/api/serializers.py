# lab_core/lab/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from lab_core.catalog.api.serializers import LabTestSummarySerializer
from lab_core.lab.models import LabResult, OverallStatus, ResultFlag


class ResultRowSerializer(serializers.Serializer):
    parameter = serializers.CharField(max_length=255, allow_blank=True, default="")
    value = serializers.CharField(max_length=255, allow_blank=True, default="")
    unit = serializers.CharField(max_length=64, allow_blank=True, default="")
    normal_range = serializers.CharField(max_length=128, allow_blank=True, default="")
    flag = serializers.ChoiceField(choices=ResultFlag.choices, default=ResultFlag.NORMAL)


class ResultSubmitSerializer(serializers.Serializer):
    order = serializers.UUIDField()
    test = serializers.UUIDField()
    result_data = ResultRowSerializer(many=True, allow_empty=True)
    overall_status = serializers.ChoiceField(choices=OverallStatus.choices, default=OverallStatus.NORMAL)
    comments = serializers.CharField(max_length=1000, allow_blank=True, default="")
    report_url = serializers.URLField(max_length=500, required=False, allow_blank=True, allow_null=True)


class ResultUpdateSerializer(serializers.Serializer):
    result_data = ResultRowSerializer(many=True, required=False, allow_empty=True)
    overall_status = serializers.ChoiceField(choices=OverallStatus.choices, required=False)
    comments = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    report_url = serializers.URLField(max_length=500, required=False, allow_blank=True, allow_null=True)
    is_verified = serializers.BooleanField(required=False)


class LabResultSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    test_detail = LabTestSummarySerializer(source="test", read_only=True)

    class Meta:
        model = LabResult
        fields = [
            "id",
            "order",
            "order_number",
            "test",
            "test_detail",
            "patient",
            "technician",
            "result_data",
            "overall_status",
            "comments",
            "report_url",
            "reported_at",
            "is_verified",
            "verified_by",
            "verified_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
