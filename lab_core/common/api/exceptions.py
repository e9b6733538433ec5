# lab_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.conf import settings
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Honors an inbound X-Request-Id header.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid and request is not None:
        rid = (request.headers.get("X-Request-Id") or "").strip()[:64] or None
        if rid:
            setattr(request, "request_id", rid)
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope for the lab API.
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


class ConflictError(APIException):
    """
    409 Conflict. Raised (or mapped from IntegrityError) on storage-layer
    uniqueness violations.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class AuthorizationError(PermissionDenied):
    """
    403. Role not permitted for the action, or ownership violation.
    """
    default_detail = "You do not have permission to perform this action."
    default_code = "permission_denied"


class InvalidTransition(ValidationError):
    """
    400. Requested order status is not an allowed successor of the current one.
    """
    default_code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            {"detail": f"Cannot change status from {current} to {requested}"},
            code=self.default_code,
        )


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, InvalidTransition):
        return "invalid_transition"
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, (Http404, NotFound)):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def _flatten_message(data: Any) -> str | None:
    # {"detail": ["msg"]} / {"detail": "msg"}
    if isinstance(data, list) and len(data) == 1:
        return str(data[0])
    if isinstance(data, str):
        return data
    return None


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    if isinstance(exc, IntegrityError):
        logger.warning("Storage constraint violated: %s", exc)
        exc = ConflictError("The request conflicts with an existing record.")

    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        rid = ensure_request_id(request)
        logger.exception("Unhandled error (request_id=%s)", rid, exc_info=exc)
        details = {"exception": exc.__class__.__name__} if settings.DEBUG else None
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=details,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    data = response.data

    # Message + details rules:
    # 1) {"detail": "..."} only -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) ["..."] -> message=item, details=None
    # 4) Otherwise -> message="Request failed.", details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        raw = data.get("detail")
        message = _flatten_message(raw) or str(raw)
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    else:
        flat = _flatten_message(data)
        if flat is not None:
            message = flat
            details = None

    if http_status >= 500:
        logger.error("API error %s (%s): %s", http_status, code, message)

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
