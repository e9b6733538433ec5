from __future__ import annotations

from rest_framework import serializers

from lab_core.catalog.models import LabTest, TestPackage


class LabTestSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = LabTest
        fields = ["id", "code", "name", "price", "unit", "normal_range"]


class TestPackageSummarySerializer(serializers.ModelSerializer):
    tests = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = TestPackage
        fields = ["id", "package_code", "package_name", "package_price", "tests"]
