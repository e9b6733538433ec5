# lab_core/lab/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q

from lab_core.catalog.models import LabTest
from lab_core.common.models import UUIDModel
from lab_core.orders.models import Order
from lab_core.patients.models import Patient


class ResultFlag(models.TextChoices):
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    LOW = "low", "Low"
    CRITICAL = "critical", "Critical"


class OverallStatus(models.TextChoices):
    NORMAL = "normal", "Normal"
    ABNORMAL = "abnormal", "Abnormal"
    CRITICAL = "critical", "Critical"


class LabResult(UUIDModel):
    """
    Measured outcome for exactly one test within one order.

    result_data is an ordered list of rows:
        {"parameter": str, "value": str, "unit": str, "normal_range": str, "flag": ResultFlag}

    Once verified, content fields are immutable to everyone but admins.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="results")
    test = models.ForeignKey(LabTest, on_delete=models.PROTECT, related_name="results")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="lab_results")
    technician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="submitted_lab_results",
    )

    result_data = models.JSONField(default=list)
    overall_status = models.CharField(max_length=16, choices=OverallStatus.choices, default=OverallStatus.NORMAL)
    comments = models.CharField(max_length=1000, blank=True)
    report_url = models.URLField(max_length=500, blank=True)
    reported_at = models.DateTimeField()

    is_verified = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="verified_lab_results",
    )
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "lab_result"
        constraints = [
            models.UniqueConstraint(fields=["order", "test"], name="uq_lab_result_order_test"),
            models.CheckConstraint(
                check=(
                    Q(is_verified=True, verified_at__isnull=False, verified_by__isnull=False)
                    | Q(is_verified=False, verified_at__isnull=True, verified_by__isnull=True)
                ),
                name="ck_lab_result_verification_stamps",
            ),
        ]
        indexes = [
            models.Index(fields=["patient", "created_at"], name="lab_result_patient_idx"),
            models.Index(fields=["is_verified", "created_at"], name="lab_result_verified_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}:{self.test_id}"
