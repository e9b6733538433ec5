# lab_core/iam/models.py
import uuid
from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    RECEPTION = "reception", "Reception"
    LAB_TECH = "lab_tech", "Lab Technician"
    DOCTOR = "doctor", "Doctor"
    PATIENT = "patient", "Patient"


class UserProfile(models.Model):
    """
    Lab profile anchored to Django's AUTH_USER_MODEL.
    Carries the single role the identity subsystem assigned to the user.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="lab_profile")
    role = models.CharField(max_length=16, choices=Role.choices, db_index=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_user_profile"
        indexes = [
            models.Index(fields=["role", "is_active"], name="iam_profile_role_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user.username} ({self.role})"
