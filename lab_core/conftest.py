# lab_core/conftest.py
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from lab_core.catalog.models import LabTest, TestPackage
from lab_core.iam.actor import actor_from_user
from lab_core.iam.models import Role, UserProfile
from lab_core.orders.models import Order


@pytest.fixture
def make_user(db):
    """
    Factory: user + lab profile with the given role.
    """
    User = get_user_model()

    def _make(username: str, role: str | None, **extra):
        user = User.objects.create_user(username=username, password="testpass", is_active=True, **extra)
        if role:
            UserProfile.objects.create(user=user, role=role, is_active=True)
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin1", Role.ADMIN)


@pytest.fixture
def reception_user(make_user):
    return make_user("reception1", Role.RECEPTION)


@pytest.fixture
def lab_tech_user(make_user):
    return make_user("tech1", Role.LAB_TECH)


@pytest.fixture
def other_lab_tech_user(make_user):
    return make_user("tech2", Role.LAB_TECH)


@pytest.fixture
def doctor_user(make_user):
    return make_user("doctor1", Role.DOCTOR, first_name="Greg", last_name="House")


@pytest.fixture
def patient_user(make_user):
    return make_user("patient1", Role.PATIENT, first_name="Pat", last_name="Smith", email="pat@example.com")


@pytest.fixture
def other_patient_user(make_user):
    return make_user("patient2", Role.PATIENT, first_name="Olive", last_name="Other")


@pytest.fixture
def actor():
    """
    actor(user) -> Actor
    """
    return actor_from_user


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c

    return _client


@pytest.fixture
def cbc(db):
    return LabTest.objects.create(code="cbc", name="Complete Blood Count", price=Decimal("500.00"), unit="")


@pytest.fixture
def lft(db):
    return LabTest.objects.create(code="LFT", name="Liver Function Test", price=Decimal("300.00"))


@pytest.fixture
def tsh(db):
    return LabTest.objects.create(code="TSH", name="Thyroid Stimulating Hormone", price=Decimal("200.00"), unit="mIU/L")


@pytest.fixture
def thyroid_package(db, tsh):
    pkg = TestPackage.objects.create(
        package_code="thy",
        package_name="Thyroid Panel",
        original_price=Decimal("200.00"),
        package_price=Decimal("150.00"),
    )
    pkg.tests.add(tsh)
    return pkg


@pytest.fixture
def make_order(db, admin_user, patient_user, cbc, lft):
    """
    Factory: order for patient_user with CBC + LFT (total 800.00),
    optionally forced into a given status.
    """
    from lab_core.orders.services import OrderService

    def _make(status: str | None = None, tests=None, packages=None, patient=None):
        order = OrderService.create_order(
            actor=actor_from_user(admin_user),
            patient_user_id=(patient or patient_user).id,
            test_ids=[t.id for t in (tests if tests is not None else [cbc, lft])],
            package_ids=[p.id for p in (packages or [])],
        )
        if status:
            Order.objects.filter(id=order.id).update(order_status=status)
            order.refresh_from_db()
        return order

    return _make
