# lab_core/patients/services.py
from __future__ import annotations

import datetime
import logging
import re

from django.conf import settings
from django.db import transaction

from lab_core.patients.models import Gender, Patient
from lab_core.patients.selectors import get_user_or_404, patient_for_user

logger = logging.getLogger(__name__)

PLACEHOLDER_DATE_OF_BIRTH = datetime.date(1990, 1, 1)
PLACEHOLDER_GENDER = Gender.OTHER


class PatientService:
    @staticmethod
    def _prefix() -> str:
        return getattr(settings, "LAB_PATIENT_CODE_PREFIX", "PAT")

    @staticmethod
    def _next_patient_code_locked() -> str:
        prefix = PatientService._prefix()
        latest = (
            Patient.objects.select_for_update()
            .filter(patient_code__startswith=prefix)
            .order_by("-patient_code")
            .first()
        )

        if not latest:
            return f"{prefix}000001"

        m = re.match(rf"{re.escape(prefix)}(\d{{6}})$", latest.patient_code.strip())
        if not m:
            return f"{prefix}{Patient.objects.count() + 1:06d}"

        n = int(m.group(1)) + 1
        return f"{prefix}{n:06d}"

    @staticmethod
    @transaction.atomic
    def resolve_or_provision(*, user_id) -> Patient:
        """
        Return the clinical profile for a patient identity.

        If the identity has none yet, a minimal profile with placeholder
        date of birth and gender is created instead of failing.
        Unknown user id -> NotFound.
        """
        user = get_user_or_404(user_id)

        patient = patient_for_user(user.id)
        if patient is not None:
            return patient

        patient = Patient.objects.create(
            user=user,
            patient_code=PatientService._next_patient_code_locked(),
            first_name=(user.first_name or user.username or "Patient")[:150],
            last_name=(user.last_name or "")[:150],
            email=user.email or "",
            date_of_birth=PLACEHOLDER_DATE_OF_BIRTH,
            gender=PLACEHOLDER_GENDER,
        )
        logger.info("Provisioned placeholder patient profile %s for user %s", patient.patient_code, user.id)
        return patient
