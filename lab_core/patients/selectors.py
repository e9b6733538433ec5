# lab_core/patients/selectors.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound

from lab_core.patients.models import Patient


def get_user_or_404(user_id):
    User = get_user_model()
    try:
        return User.objects.get(id=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFound("Patient not found.")


def patient_for_user(user_id) -> Patient | None:
    return Patient.objects.filter(user_id=user_id).first()
