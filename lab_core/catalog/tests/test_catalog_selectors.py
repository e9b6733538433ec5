import uuid
from decimal import Decimal

import pytest
from rest_framework.exceptions import NotFound

from lab_core.catalog.selectors import resolve_packages, resolve_tests, snapshot_total

pytestmark = pytest.mark.django_db


def test_codes_are_upper_cased(cbc, thyroid_package):
    assert cbc.code == "CBC"
    assert thyroid_package.package_code == "THY"


def test_resolve_tests_collapses_duplicates(cbc, lft):
    found = resolve_tests([cbc.id, lft.id, cbc.id])
    assert {t.id for t in found} == {cbc.id, lft.id}


def test_resolve_raises_not_found_on_missing_id(cbc):
    with pytest.raises(NotFound):
        resolve_tests([cbc.id, uuid.uuid4()])
    with pytest.raises(NotFound):
        resolve_packages([uuid.uuid4()])


def test_snapshot_total_uses_package_price(cbc, thyroid_package):
    assert snapshot_total([cbc], [thyroid_package]) == Decimal("650.00")
    assert snapshot_total([], []) == Decimal("0.00")
