# lab_core/patients/models.py
from django.conf import settings
from django.db import models

from lab_core.common.models import UUIDModel


class Gender(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class Patient(UUIDModel):
    """
    Clinical profile linked 1:1 to a user identity.
    May be auto-provisioned with placeholder demographics at order creation.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="patient_profile")

    # human-readable sequential code, e.g. PAT000001
    patient_code = models.CharField(max_length=32, unique=True)

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=8, choices=Gender.choices, default=Gender.OTHER)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["last_name", "first_name"], name="patients_name_idx"),
            models.Index(fields=["phone"], name="patients_phone_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name} ({self.patient_code})"
