import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework.exceptions import NotAuthenticated

from lab_core.common.api.exceptions import AuthorizationError
from lab_core.iam.actor import Actor, actor_from_user
from lab_core.iam.models import UserProfile

pytestmark = pytest.mark.django_db


def test_actor_carries_profile_role(lab_tech_user):
    a = actor_from_user(lab_tech_user)
    assert a == Actor(user_id=lab_tech_user.id, role="lab_tech")
    assert not a.is_admin


def test_superuser_is_admin():
    su = get_user_model().objects.create_superuser(username="root", password="x", email="root@example.com")
    assert actor_from_user(su).role == "admin"


def test_anonymous_is_not_authenticated():
    with pytest.raises(NotAuthenticated):
        actor_from_user(AnonymousUser())


def test_missing_or_inactive_profile_is_forbidden(make_user, reception_user):
    with pytest.raises(AuthorizationError):
        actor_from_user(make_user("nobody", None))

    UserProfile.objects.filter(user=reception_user).update(is_active=False)
    reception_user.refresh_from_db()
    with pytest.raises(AuthorizationError):
        actor_from_user(get_user_model().objects.get(id=reception_user.id))
