# lab_core/reports/services.py
"""Report context assembly.

Reads committed order + result state and shapes it for a rendering
collaborator (PDF/HTML). Never mutates or repairs lifecycle state.
"""

from __future__ import annotations

from typing import Any

from lab_core.common import permissions as gate
from lab_core.lab.selectors import results_for_order
from lab_core.orders.models import OrderStatus
from lab_core.orders.selectors import get_order_or_404, is_order_owner, order_tests


def _iso(v) -> str | None:
    return v.isoformat() if v else None


def _person(user) -> dict[str, Any] | None:
    if user is None:
        return None
    name = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return {"id": user.id, "name": name or user.get_username(), "email": user.email or ""}


def _patient_block(patient) -> dict[str, Any]:
    return {
        "id": str(patient.id),
        "patient_code": patient.patient_code,
        "full_name": patient.full_name,
        "email": patient.email,
        "phone": patient.phone,
        "date_of_birth": _iso(patient.date_of_birth),
        "gender": patient.gender,
    }


def _order_block(order) -> dict[str, Any]:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "order_status": order.order_status,
        "priority": order.priority,
        "doctor": _person(order.doctor),
        "total_amount": str(order.total_amount),
        "paid_amount": str(order.paid_amount),
        "payment_status": order.payment_status,
        "sample_collection_date": _iso(order.sample_collection_date),
        "expected_report_date": _iso(order.expected_report_date),
        "completed_at": _iso(order.completed_at),
        "created_at": _iso(order.created_at),
        "notes": order.notes,
    }


def _result_block(result) -> dict[str, Any]:
    return {
        "id": str(result.id),
        "rows": list(result.result_data or []),
        "overall_status": result.overall_status,
        "comments": result.comments,
        "report_url": result.report_url or None,
        "reported_at": _iso(result.reported_at),
        "technician": _person(result.technician),
        "is_verified": result.is_verified,
        "verified_by": _person(result.verified_by),
        "verified_at": _iso(result.verified_at),
    }


class ReportAssembler:
    @staticmethod
    def build(*, order_id, actor) -> dict[str, Any]:
        """
        Returns:
            {
              "order": {...},
              "patient": {...},
              "tests": [{"id", "code", "name", "unit", "normal_range", "result": {...} | None}],
              "summary": {"total_tests", "results_submitted", "verified", "pending_verification", "is_final"},
            }
        """
        order = get_order_or_404(order_id)
        gate.require(actor, gate.REPORT_VIEW, gate.ResourceState(is_owner=is_order_owner(order, actor)))

        by_test = {r.test_id: r for r in results_for_order(order.id)}

        tests: list[dict[str, Any]] = []
        for t in order_tests(order):
            result = by_test.get(t.id)
            tests.append(
                {
                    "id": str(t.id),
                    "code": t.code,
                    "name": t.name,
                    "unit": t.unit,
                    "normal_range": t.normal_range,
                    "result": _result_block(result) if result else None,
                }
            )

        submitted = [x["result"] for x in tests if x["result"] is not None]
        verified = sum(1 for r in submitted if r["is_verified"])

        return {
            "order": _order_block(order),
            "patient": _patient_block(order.patient),
            "tests": tests,
            "summary": {
                "total_tests": len(tests),
                "results_submitted": len(submitted),
                "verified": verified,
                "pending_verification": len(submitted) - verified,
                "is_final": (
                    order.order_status == OrderStatus.COMPLETED
                    and bool(tests)
                    and verified == len(tests)
                ),
            },
        }
