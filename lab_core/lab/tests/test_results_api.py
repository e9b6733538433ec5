# lab_core/lab/tests/test_results_api.py
import pytest

from lab_core.lab.models import LabResult
from lab_core.tests.helpers import error, rows

pytestmark = pytest.mark.django_db


def _submit(client, order, test, data=None, **extra):
    return client.post(
        "/api/v1/lab/results/",
        {"order": str(order.id), "test": str(test.id), "result_data": data if data is not None else rows(), **extra},
        format="json",
    )


def test_submit_201_then_resubmit_200(client_for, make_order, lab_tech_user, cbc):
    order = make_order(status="in_progress")
    c = client_for(lab_tech_user)

    r1 = _submit(c, order, cbc)
    assert r1.status_code == 201, r1.data
    assert r1.data["is_verified"] is False
    assert r1.data["order_number"] == order.order_number

    r2 = _submit(c, order, cbc, rows(("Hemoglobin", "9.9")), overall_status="abnormal")
    assert r2.status_code == 200, r2.data
    assert r2.data["id"] == r1.data["id"]
    assert r2.data["overall_status"] == "abnormal"
    assert LabResult.objects.count() == 1


def test_submit_on_pending_order_is_400(client_for, make_order, lab_tech_user, cbc):
    order = make_order()
    r = _submit(client_for(lab_tech_user), order, cbc)
    assert r.status_code == 400
    assert error(r)["message"] == "Results can only be added to orders in progress"


def test_submit_with_empty_rows_is_400(client_for, make_order, lab_tech_user, cbc):
    order = make_order(status="in_progress")
    r = _submit(client_for(lab_tech_user), order, cbc, [])
    assert r.status_code == 400
    assert LabResult.objects.count() == 0


def test_submit_with_blank_value_is_400(client_for, make_order, lab_tech_user, cbc):
    order = make_order(status="in_progress")
    r = _submit(client_for(lab_tech_user), order, cbc, [{"parameter": "Hb", "value": ""}])
    assert r.status_code == 400
    assert "result_data" in error(r)["details"]


def test_doctor_cannot_submit(client_for, make_order, doctor_user, cbc):
    order = make_order(status="in_progress")
    assert _submit(client_for(doctor_user), order, cbc).status_code == 403


def test_verification_workflow_over_http(client_for, make_order, lab_tech_user, doctor_user, cbc):
    order = make_order(status="in_progress")
    rid = _submit(client_for(lab_tech_user), order, cbc).data["id"]

    r = client_for(doctor_user).patch(f"/api/v1/lab/results/{rid}/", {"is_verified": True}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["is_verified"] is True
    assert r.data["verified_by"] == doctor_user.id
    assert r.data["verified_at"]

    r = client_for(lab_tech_user).patch(f"/api/v1/lab/results/{rid}/", {"comments": "edit"}, format="json")
    assert r.status_code == 403
    assert error(r)["message"] == "Cannot modify verified results"


def test_doctor_patch_with_data_is_403_and_nothing_changes(client_for, make_order, lab_tech_user, doctor_user, cbc):
    order = make_order(status="in_progress")
    rid = _submit(client_for(lab_tech_user), order, cbc).data["id"]

    r = client_for(doctor_user).patch(
        f"/api/v1/lab/results/{rid}/",
        {"is_verified": True, "overall_status": "critical"},
        format="json",
    )
    assert r.status_code == 403

    obj = LabResult.objects.get(id=rid)
    assert obj.is_verified is False
    assert obj.overall_status == "normal"


def test_empty_patch_is_400(client_for, make_order, lab_tech_user, cbc):
    order = make_order(status="in_progress")
    rid = _submit(client_for(lab_tech_user), order, cbc).data["id"]
    r = client_for(lab_tech_user).patch(f"/api/v1/lab/results/{rid}/", {}, format="json")
    assert r.status_code == 400


def test_delete_result(client_for, make_order, lab_tech_user, admin_user, cbc):
    order = make_order(status="in_progress")
    rid = _submit(client_for(lab_tech_user), order, cbc).data["id"]

    assert client_for(lab_tech_user).delete(f"/api/v1/lab/results/{rid}/").status_code == 403
    assert client_for(admin_user).delete(f"/api/v1/lab/results/{rid}/").status_code == 204
    assert client_for(admin_user).get(f"/api/v1/lab/results/{rid}/").status_code == 404


def test_list_filters_and_patient_visibility(
    client_for, make_order, lab_tech_user, doctor_user, patient_user, other_patient_user, cbc, lft
):
    mine = make_order(status="in_progress")
    theirs = make_order(status="in_progress", patient=other_patient_user)
    tech = client_for(lab_tech_user)

    a = _submit(tech, mine, cbc).data["id"]
    _submit(tech, mine, lft)
    _submit(tech, theirs, cbc)
    client_for(doctor_user).patch(f"/api/v1/lab/results/{a}/", {"is_verified": True}, format="json")

    staff = client_for(doctor_user)
    assert staff.get("/api/v1/lab/results/").data["count"] == 3
    assert staff.get(f"/api/v1/lab/results/?order={mine.id}").data["count"] == 2
    assert staff.get("/api/v1/lab/results/?is_verified=true").data["count"] == 1
    assert staff.get(f"/api/v1/lab/results/?test={cbc.id}").data["count"] == 2
    assert staff.get(f"/api/v1/lab/results/?technician={lab_tech_user.id}").data["count"] == 3

    pc = client_for(patient_user)
    r = pc.get("/api/v1/lab/results/")
    assert r.data["count"] == 2
    assert {row["order"] for row in r.data["results"]} == {mine.id}

    other_result = LabResult.objects.get(order=theirs)
    assert pc.get(f"/api/v1/lab/results/{other_result.id}/").status_code == 403
