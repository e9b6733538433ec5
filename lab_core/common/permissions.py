# lab_core/common/permissions.py

from __future__ import annotations

from dataclasses import dataclass

from lab_core.common.api.exceptions import AuthorizationError
from lab_core.iam.models import Role

ROLE_ADMIN = Role.ADMIN.value
ROLE_RECEPTION = Role.RECEPTION.value
ROLE_LAB_TECH = Role.LAB_TECH.value
ROLE_DOCTOR = Role.DOCTOR.value
ROLE_PATIENT = Role.PATIENT.value

ALL_ROLES = frozenset({ROLE_ADMIN, ROLE_RECEPTION, ROLE_LAB_TECH, ROLE_DOCTOR, ROLE_PATIENT})
STAFF_ROLES = frozenset({ROLE_ADMIN, ROLE_RECEPTION, ROLE_LAB_TECH, ROLE_DOCTOR})

# Actions
ORDER_CREATE = "order.create"
ORDER_UPDATE = "order.update"
ORDER_DELETE = "order.delete"
ORDER_VIEW = "order.view"
PAYMENT_RECORD = "payment.record"
RESULT_SUBMIT = "result.submit"
RESULT_EDIT = "result.edit"
RESULT_VERIFY = "result.verify"
RESULT_DELETE = "result.delete"
RESULT_VIEW = "result.view"
REPORT_VIEW = "report.view"


# action -> roles allowed (admin bypasses)
ALLOWED_ROLES_PER_ACTION: dict[str, frozenset[str]] = {
    ORDER_CREATE: frozenset({ROLE_ADMIN, ROLE_RECEPTION, ROLE_DOCTOR}),
    ORDER_UPDATE: frozenset({ROLE_ADMIN, ROLE_RECEPTION, ROLE_LAB_TECH}),
    ORDER_DELETE: frozenset({ROLE_ADMIN}),
    ORDER_VIEW: ALL_ROLES,
    PAYMENT_RECORD: frozenset({ROLE_ADMIN, ROLE_RECEPTION, ROLE_LAB_TECH}),
    RESULT_SUBMIT: frozenset({ROLE_ADMIN, ROLE_LAB_TECH}),
    RESULT_EDIT: frozenset({ROLE_ADMIN, ROLE_LAB_TECH}),
    RESULT_VERIFY: frozenset({ROLE_ADMIN, ROLE_DOCTOR}),
    RESULT_DELETE: frozenset({ROLE_ADMIN}),
    RESULT_VIEW: ALL_ROLES,
    REPORT_VIEW: ALL_ROLES,
}


@dataclass(frozen=True)
class ResourceState:
    """
    Facts about the target resource that some rules depend on.

    is_owner: the actor is the resource's owner (technician of a result,
              patient of an order/result).
    is_verified: the result is verified.
    """
    is_owner: bool = False
    is_verified: bool = False


def _state_allows(role: str, action: str, state: ResourceState | None) -> bool:
    # lab_tech may only edit their own unverified results
    if action == RESULT_EDIT and role == ROLE_LAB_TECH:
        return state is not None and state.is_owner and not state.is_verified

    # lab_tech cannot overwrite a verified result via resubmission
    if action == RESULT_SUBMIT and role == ROLE_LAB_TECH:
        return state is None or not state.is_verified

    # patients see only their own records
    if role == ROLE_PATIENT and action in (ORDER_VIEW, RESULT_VIEW, REPORT_VIEW):
        return state is None or state.is_owner

    return True


def is_allowed(role: str, action: str, state: ResourceState | None = None) -> bool:
    """
    Single authorization predicate for every lifecycle operation.

    Unknown actions and unknown roles are denied.
    """
    if role == ROLE_ADMIN:
        return action in ALLOWED_ROLES_PER_ACTION

    allowed = ALLOWED_ROLES_PER_ACTION.get(action)
    if allowed is None or role not in allowed:
        return False

    return _state_allows(role, action, state)


def require(actor, action: str, state: ResourceState | None = None, message: str | None = None) -> None:
    """
    Raise AuthorizationError unless actor may perform action.
    """
    if not is_allowed(actor.role, action, state):
        raise AuthorizationError(message or AuthorizationError.default_detail)
