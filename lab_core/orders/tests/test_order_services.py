from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from lab_core.audit.selectors import list_audit_events
from lab_core.common.api.exceptions import AuthorizationError, InvalidTransition
from lab_core.orders.models import Order, OrderStatus, PaymentStatus
from lab_core.orders.services import OrderService
from lab_core.patients.models import Patient

pytestmark = pytest.mark.django_db


def test_create_order_snapshots_total_and_initial_state(actor, reception_user, patient_user, cbc, lft):
    order = OrderService.create_order(
        actor=actor(reception_user),
        patient_user_id=patient_user.id,
        test_ids=[cbc.id, lft.id],
    )

    assert order.total_amount == Decimal("800.00")
    assert order.order_status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.paid_amount == Decimal("0.00")
    assert order.created_by_id == reception_user.id
    assert set(order.tests.values_list("id", flat=True)) == {cbc.id, lft.id}

    events = list_audit_events(entity_type="Order", entity_id=order.id, event_code="order.created")
    assert events.count() == 1


def test_total_is_not_recomputed_when_catalog_price_changes(make_order, cbc):
    order = make_order()
    cbc.price = Decimal("999.00")
    cbc.save()

    order.refresh_from_db()
    assert order.total_amount == Decimal("800.00")


def test_package_price_is_added_and_duplicates_collapse(actor, reception_user, patient_user, cbc, thyroid_package):
    order = OrderService.create_order(
        actor=actor(reception_user),
        patient_user_id=patient_user.id,
        test_ids=[cbc.id, cbc.id],
        package_ids=[thyroid_package.id],
    )
    assert order.total_amount == Decimal("650.00")


def test_order_number_is_sequential_per_day(make_order):
    first = make_order()
    second = make_order()

    day = timezone.localdate().strftime("%Y%m%d")
    assert first.order_number == f"ORD{day}0001"
    assert second.order_number == f"ORD{day}0002"


def test_order_number_sequence_grows_past_four_digits(make_order):
    day = timezone.localdate().strftime("%Y%m%d")
    seeded = make_order()
    Order.objects.filter(id=seeded.id).update(order_number=f"ORD{day}9999")

    assert make_order().order_number == f"ORD{day}10000"
    assert make_order().order_number == f"ORD{day}10001"


def test_create_requires_tests_or_packages(actor, reception_user, patient_user):
    with pytest.raises(ValidationError) as exc:
        OrderService.create_order(actor=actor(reception_user), patient_user_id=patient_user.id)
    assert "At least one test or package must be selected" in str(exc.value.detail)
    assert Order.objects.count() == 0


@pytest.mark.parametrize("role_fixture", ["lab_tech_user", "patient_user"])
def test_create_forbidden_roles(request, actor, role_fixture, patient_user, cbc):
    user = request.getfixturevalue(role_fixture)
    with pytest.raises(AuthorizationError):
        OrderService.create_order(actor=actor(user), patient_user_id=patient_user.id, test_ids=[cbc.id])


def test_doctor_can_create_and_be_referenced(actor, doctor_user, patient_user, cbc):
    order = OrderService.create_order(
        actor=actor(doctor_user),
        patient_user_id=patient_user.id,
        doctor_user_id=doctor_user.id,
        test_ids=[cbc.id],
    )
    assert order.doctor_id == doctor_user.id


def test_unknown_test_or_patient_or_doctor_is_not_found(actor, reception_user, patient_user, lab_tech_user, cbc):
    import uuid

    a = actor(reception_user)
    with pytest.raises(NotFound):
        OrderService.create_order(actor=a, patient_user_id=patient_user.id, test_ids=[uuid.uuid4()])
    with pytest.raises(NotFound):
        OrderService.create_order(actor=a, patient_user_id=patient_user.id, package_ids=[uuid.uuid4()])
    with pytest.raises(NotFound):
        OrderService.create_order(actor=a, patient_user_id=987654, test_ids=[cbc.id])
    with pytest.raises(NotFound):
        OrderService.create_order(
            actor=a, patient_user_id=patient_user.id, doctor_user_id=lab_tech_user.id, test_ids=[cbc.id]
        )
    assert Order.objects.count() == 0


def test_create_provisions_placeholder_patient_profile(actor, reception_user, patient_user, cbc):
    assert not Patient.objects.filter(user=patient_user).exists()

    order = OrderService.create_order(actor=actor(reception_user), patient_user_id=patient_user.id, test_ids=[cbc.id])

    p = order.patient
    assert p.user_id == patient_user.id
    assert p.patient_code == "PAT000001"
    assert str(p.date_of_birth) == "1990-01-01"
    assert p.gender == "other"
    assert p.first_name == "Pat"
    assert p.email == "pat@example.com"


def test_transition_happy_path_stamps_completed_at(make_order, actor, reception_user, lab_tech_user):
    order = make_order()

    order = OrderService.transition_status(order_id=order.id, requested_status="confirmed", actor=actor(reception_user))
    assert order.order_status == OrderStatus.CONFIRMED

    order = OrderService.transition_status(order_id=order.id, requested_status="in_progress", actor=actor(lab_tech_user))
    assert order.completed_at is None

    order = OrderService.transition_status(order_id=order.id, requested_status="completed", actor=actor(lab_tech_user))
    assert order.order_status == OrderStatus.COMPLETED
    assert order.completed_at is not None

    changes = list_audit_events(entity_type="Order", entity_id=order.id, event_code="order.status_changed")
    assert changes.count() == 3


def test_invalid_transition_names_both_states_and_changes_nothing(make_order, actor, reception_user):
    order = make_order(status="confirmed")

    with pytest.raises(InvalidTransition) as exc:
        OrderService.transition_status(order_id=order.id, requested_status="completed", actor=actor(reception_user))

    assert exc.value.current == "confirmed"
    assert exc.value.requested == "completed"
    assert "Cannot change status from confirmed to completed" in str(exc.value.detail)

    order.refresh_from_db()
    assert order.order_status == OrderStatus.CONFIRMED


def test_same_status_is_a_noop(make_order, actor, reception_user):
    order = make_order(status="completed")
    out = OrderService.transition_status(order_id=order.id, requested_status="completed", actor=actor(reception_user))
    assert out.order_status == OrderStatus.COMPLETED


def test_doctor_cannot_drive_status(make_order, actor, doctor_user):
    order = make_order()
    with pytest.raises(AuthorizationError):
        OrderService.transition_status(order_id=order.id, requested_status="confirmed", actor=actor(doctor_user))


def test_update_fields(make_order, actor, reception_user):
    order = make_order()
    order = OrderService.update_fields(
        order_id=order.id,
        fields={"priority": "stat", "notes": "fasting", "payment_method": "card"},
        actor=actor(reception_user),
    )
    assert order.priority == "stat"
    assert order.notes == "fasting"
    assert order.payment_method == "card"


def test_update_fields_rejects_unknown_field(make_order, actor, reception_user):
    order = make_order()
    with pytest.raises(ValidationError):
        OrderService.update_fields(order_id=order.id, fields={"total_amount": "1"}, actor=actor(reception_user))


def test_composite_update_is_all_or_nothing(make_order, actor, reception_user):
    order = make_order(status="confirmed")

    with pytest.raises(InvalidTransition):
        OrderService.update_order(
            order_id=order.id,
            actor=actor(reception_user),
            status="completed",
            fields={"notes": "should not stick"},
            paid_amount=Decimal("800.00"),
        )

    order.refresh_from_db()
    assert order.notes == ""
    assert order.paid_amount == Decimal("0.00")
    assert order.order_status == OrderStatus.CONFIRMED


def test_composite_update_applies_status_fields_and_payment(make_order, actor, reception_user):
    order = make_order(status="confirmed")

    order = OrderService.update_order(
        order_id=order.id,
        actor=actor(reception_user),
        status="in_progress",
        fields={"priority": "urgent"},
        paid_amount=Decimal("300.00"),
    )
    assert order.order_status == OrderStatus.IN_PROGRESS
    assert order.priority == "urgent"
    assert order.payment_status == PaymentStatus.PARTIAL


@pytest.mark.parametrize("status", ["pending", "cancelled"])
def test_admin_deletes_pending_or_cancelled(make_order, actor, admin_user, status):
    order = make_order(status=status)
    OrderService.delete_order(order_id=order.id, actor=actor(admin_user))
    assert not Order.objects.filter(id=order.id).exists()


@pytest.mark.parametrize("status", ["confirmed", "in_progress", "completed"])
def test_delete_rejected_outside_pending_or_cancelled(make_order, actor, admin_user, status):
    order = make_order(status=status)
    with pytest.raises(ValidationError) as exc:
        OrderService.delete_order(order_id=order.id, actor=actor(admin_user))
    assert "Only pending or cancelled orders can be deleted" in str(exc.value.detail)
    assert Order.objects.filter(id=order.id).exists()


def test_non_admin_cannot_delete(make_order, actor, reception_user):
    order = make_order()
    with pytest.raises(AuthorizationError):
        OrderService.delete_order(order_id=order.id, actor=actor(reception_user))
