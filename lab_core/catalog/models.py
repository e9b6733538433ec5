# lab_core/catalog/models.py
from django.db import models
from django.db.models import Q

from lab_core.common.models import UUIDModel


class LabTest(UUIDModel):
    """
    Orderable lab test. Read-only price source at order creation.
    """
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=32, blank=True)
    normal_range = models.CharField(max_length=128, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_lab_test"
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(check=Q(price__gte=0), name="ck_lab_test_price_non_negative"),
        ]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class TestPackage(UUIDModel):
    """
    Bundle of tests sold at package_price (usually below original_price).
    """
    package_code = models.CharField(max_length=32, unique=True)
    package_name = models.CharField(max_length=255)
    tests = models.ManyToManyField(LabTest, related_name="packages")
    original_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    package_price = models.DecimalField(max_digits=12, decimal_places=2)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_test_package"
        ordering = ["package_code"]
        constraints = [
            models.CheckConstraint(check=Q(package_price__gte=0), name="ck_test_package_price_non_negative"),
        ]

    def save(self, *args, **kwargs):
        self.package_code = (self.package_code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.package_code} - {self.package_name}"
