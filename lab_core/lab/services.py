# lab_core/lab/services.py
from __future__ import annotations

import logging
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from lab_core.audit.services import AuditService
from lab_core.catalog.selectors import get_test_or_404
from lab_core.common import permissions as gate
from lab_core.common.api.exceptions import AuthorizationError
from lab_core.iam.models import Role
from lab_core.lab.models import LabResult, OverallStatus, ResultFlag
from lab_core.lab.selectors import get_result_for_update, is_result_owner
from lab_core.orders.models import OrderStatus
from lab_core.orders.selectors import get_order_for_update, order_test_ids

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("result_data", "overall_status", "comments", "report_url")
COMMENTS_MAX_LENGTH = 1000


def validate_result_rows(rows: Any) -> list[dict]:
    """
    Non-empty list; every row needs a non-blank parameter and value.
    Row order is preserved.
    """
    if not isinstance(rows, (list, tuple)) or not rows:
        raise ValidationError({"result_data": "At least one result parameter is required"})

    cleaned: list[dict] = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValidationError({"result_data": "Each result parameter must have parameter and value fields"})

        parameter = str(row.get("parameter") or "").strip()
        raw_value = row.get("value")
        value = "" if raw_value is None else str(raw_value).strip()
        if not parameter or not value:
            raise ValidationError({"result_data": "Each result parameter must have parameter and value fields"})

        flag = row.get("flag") or ResultFlag.NORMAL
        if flag not in ResultFlag.values:
            raise ValidationError({"result_data": f"Unknown flag '{flag}'."})

        cleaned.append(
            {
                "parameter": parameter,
                "value": value,
                "unit": str(row.get("unit") or ""),
                "normal_range": str(row.get("normal_range") or ""),
                "flag": str(flag),
            }
        )
    return cleaned


def _validate_content(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}

    if "result_data" in fields:
        out["result_data"] = validate_result_rows(fields["result_data"])

    if "overall_status" in fields:
        status = fields["overall_status"] or OverallStatus.NORMAL
        if status not in OverallStatus.values:
            raise ValidationError({"overall_status": f"Unknown overall status '{status}'."})
        out["overall_status"] = status

    if "comments" in fields:
        comments = fields["comments"] or ""
        if len(comments) > COMMENTS_MAX_LENGTH:
            raise ValidationError({"comments": f"Ensure this field has no more than {COMMENTS_MAX_LENGTH} characters."})
        out["comments"] = comments

    if "report_url" in fields:
        url = fields["report_url"] or ""
        if url:
            try:
                URLValidator()(url)
            except DjangoValidationError:
                raise ValidationError({"report_url": "Enter a valid URL."})
        out["report_url"] = url

    return out


def _edit_denied_message(actor, result: LabResult) -> str:
    if actor.role == Role.LAB_TECH:
        if result.is_verified:
            return "Cannot modify verified results"
        return "Can only modify your own results"
    if actor.role == Role.DOCTOR:
        return "Doctors can only verify/unverify results"
    return "Insufficient permissions to update results"


def _verify_denied_message(actor) -> str:
    if actor.role == Role.LAB_TECH:
        return "Lab technicians cannot verify results"
    return "Insufficient permissions to update results"


class ResultService:
    """
    Write-model operations for lab results.
    - submit: upsert keyed by (order, test), backed by a unique constraint
    - update: role matrix (tech edits own unverified, doctor verifies, admin both)
    - delete: admin only, unverified only
    """

    @staticmethod
    def _overwrite(result: LabResult, content: dict[str, Any], actor) -> LabResult:
        if result.is_verified:
            gate.require(
                actor,
                gate.RESULT_SUBMIT,
                gate.ResourceState(is_owner=is_result_owner(result, actor), is_verified=True),
                message="Cannot modify verified results",
            )

        for k, v in content.items():
            setattr(result, k, v)
        result.technician_id = actor.user_id
        result.reported_at = timezone.now()
        result.save(update_fields=[*content.keys(), "technician", "reported_at", "updated_at"])

        AuditService.log(
            event_code="result.updated",
            entity_type="LabResult",
            entity_id=result.id,
            actor_user_id=actor.user_id,
            metadata={"via": "submit", "fields": sorted(content)},
        )
        logger.info("Result for order %s test %s resubmitted", result.order_id, result.test_id)
        return result

    @staticmethod
    @transaction.atomic
    def submit_result(
        *,
        order_id,
        test_id,
        result_data: Any,
        actor,
        overall_status: str | None = None,
        comments: str = "",
        report_url: str | None = None,
    ) -> tuple[LabResult, bool]:
        """
        Returns (result, created). Resubmitting for the same (order, test)
        overwrites content in place and leaves verification untouched.
        """
        gate.require(actor, gate.RESULT_SUBMIT, message="Insufficient permissions to submit results.")

        order = get_order_for_update(order_id)
        test = get_test_or_404(test_id)

        if order.order_status != OrderStatus.IN_PROGRESS:
            raise ValidationError({"detail": "Results can only be added to orders in progress"})

        if test.id not in order_test_ids(order):
            raise ValidationError({"detail": "Test is not part of this order"})

        content = _validate_content(
            {
                "result_data": result_data,
                "overall_status": overall_status,
                "comments": comments,
                "report_url": report_url,
            }
        )

        existing = LabResult.objects.select_for_update().filter(order=order, test=test).first()
        if existing is not None:
            return ResultService._overwrite(existing, content, actor), False

        try:
            with transaction.atomic():
                result = LabResult.objects.create(
                    order=order,
                    test=test,
                    patient_id=order.patient_id,
                    technician_id=actor.user_id,
                    reported_at=timezone.now(),
                    is_verified=False,
                    **content,
                )
        except IntegrityError:
            # concurrent submit for the same pair won the insert
            existing = LabResult.objects.select_for_update().get(order=order, test=test)
            return ResultService._overwrite(existing, content, actor), False

        AuditService.log(
            event_code="result.submitted",
            entity_type="LabResult",
            entity_id=result.id,
            actor_user_id=actor.user_id,
            metadata={"order_id": str(order.id), "test_id": str(test.id)},
        )
        logger.info("Result submitted for order %s test %s", order.order_number, test.code)
        return result, True

    @staticmethod
    @transaction.atomic
    def update_result(*, result_id, fields: dict[str, Any], actor) -> LabResult:
        """
        Whole-request semantics: every rule is checked before anything is written.
        """
        fields = dict(fields or {})
        wants_verify = "is_verified" in fields
        content_keys = [k for k in fields if k in CONTENT_FIELDS]
        unknown = set(fields) - set(CONTENT_FIELDS) - {"is_verified"}
        if unknown:
            raise ValidationError({k: "This field cannot be updated." for k in sorted(unknown)})
        if not wants_verify and not content_keys:
            raise ValidationError({"detail": "No updatable fields supplied."})

        if actor.role not in (Role.ADMIN, Role.LAB_TECH, Role.DOCTOR):
            raise AuthorizationError("Insufficient permissions to update results")

        result = get_result_for_update(result_id)
        state = gate.ResourceState(is_owner=is_result_owner(result, actor), is_verified=result.is_verified)

        if content_keys or actor.role == Role.LAB_TECH:
            gate.require(actor, gate.RESULT_EDIT, state, message=_edit_denied_message(actor, result))
        if wants_verify:
            gate.require(actor, gate.RESULT_VERIFY, state, message=_verify_denied_message(actor))

        content = _validate_content({k: fields[k] for k in content_keys})

        is_verified = fields.get("is_verified")
        if wants_verify and not isinstance(is_verified, bool):
            raise ValidationError({"is_verified": "Must be a boolean."})

        was_verified = result.is_verified
        update_fields = set(content)
        for k, v in content.items():
            setattr(result, k, v)

        if wants_verify and is_verified != was_verified:
            result.is_verified = is_verified
            if is_verified:
                result.verified_by_id = actor.user_id
                result.verified_at = timezone.now()
            else:
                result.verified_by = None
                result.verified_at = None
            update_fields.update({"is_verified", "verified_by", "verified_at"})

        if not update_fields:
            return result

        result.save(update_fields=[*sorted(update_fields), "updated_at"])

        if content:
            AuditService.log(
                event_code="result.updated",
                entity_type="LabResult",
                entity_id=result.id,
                actor_user_id=actor.user_id,
                metadata={"fields": sorted(content)},
            )
        if "is_verified" in update_fields:
            AuditService.log(
                event_code="result.verified" if result.is_verified else "result.unverified",
                entity_type="LabResult",
                entity_id=result.id,
                actor_user_id=actor.user_id,
                metadata={},
            )
            logger.info(
                "Result %s %s by user %s",
                result.id,
                "verified" if result.is_verified else "unverified",
                actor.user_id,
            )
        return result

    @staticmethod
    @transaction.atomic
    def delete_result(*, result_id, actor) -> None:
        gate.require(actor, gate.RESULT_DELETE, message="Only admins can delete results")

        result = get_result_for_update(result_id)
        if result.is_verified:
            raise ValidationError({"detail": "Cannot delete verified results"})

        entity_id = result.id
        order_id = result.order_id
        result.delete()

        AuditService.log(
            event_code="result.deleted",
            entity_type="LabResult",
            entity_id=entity_id,
            actor_user_id=actor.user_id,
            metadata={"order_id": str(order_id)},
        )
        logger.info("Result %s deleted", entity_id)
