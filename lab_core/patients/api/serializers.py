from __future__ import annotations

from rest_framework import serializers

from lab_core.patients.models import Patient


class PatientSummarySerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            "id",
            "user",
            "patient_code",
            "full_name",
            "email",
            "phone",
            "date_of_birth",
            "gender",
        ]
