# lab_core/orders/models.py
from django.conf import settings
from django.db import models
from django.db.models import F, Q

from lab_core.catalog.models import LabTest, TestPackage
from lab_core.common.models import UUIDModel
from lab_core.patients.models import Patient


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PARTIAL = "partial", "Partial"
    PAID = "paid", "Paid"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    ONLINE = "online", "Online"


class OrderPriority(models.TextChoices):
    NORMAL = "normal", "Normal"
    URGENT = "urgent", "Urgent"
    STAT = "stat", "Stat"


class Order(UUIDModel):
    """
    A request for one or more tests/packages tied to one patient.

    total_amount is a price snapshot taken at creation; payment_status is
    always derived from (paid_amount, total_amount) by the payment ledger.
    """
    order_number = models.CharField(max_length=32, unique=True)

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="orders")
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referred_lab_orders",
    )
    tests = models.ManyToManyField(LabTest, blank=True, related_name="orders")
    packages = models.ManyToManyField(TestPackage, blank=True, related_name="orders")

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.CASH)

    order_status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    priority = models.CharField(max_length=16, choices=OrderPriority.choices, default=OrderPriority.NORMAL)

    sample_collection_date = models.DateTimeField(null=True, blank=True)
    expected_report_date = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_lab_orders",
    )

    class Meta:
        db_table = "orders_order"
        constraints = [
            models.CheckConstraint(check=Q(paid_amount__gte=0), name="ck_order_paid_non_negative"),
            models.CheckConstraint(check=Q(paid_amount__lte=F("total_amount")), name="ck_order_paid_le_total"),
        ]
        indexes = [
            models.Index(fields=["order_status", "created_at"], name="orders_status_created_idx"),
            models.Index(fields=["patient", "created_at"], name="orders_patient_created_idx"),
        ]

    def __str__(self) -> str:
        return self.order_number
