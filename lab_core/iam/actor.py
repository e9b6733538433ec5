# lab_core/iam/actor.py
from __future__ import annotations

from dataclasses import dataclass

from rest_framework.exceptions import NotAuthenticated

from lab_core.common.api.exceptions import AuthorizationError
from lab_core.iam.models import Role, UserProfile


@dataclass(frozen=True)
class Actor:
    """
    Who is performing an operation. Resolved once at the API edge and
    passed explicitly into every service call.
    """
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def actor_from_user(user) -> Actor:
    """
    Resolve an Actor from a Django user.

    - unauthenticated -> NotAuthenticated (401)
    - superuser -> admin
    - no active profile -> AuthorizationError (403)
    """
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()

    if getattr(user, "is_superuser", False):
        return Actor(user_id=user.id, role=Role.ADMIN)

    try:
        profile = user.lab_profile
    except UserProfile.DoesNotExist:
        raise AuthorizationError("No lab role is assigned to this user.")

    if not profile.is_active:
        raise AuthorizationError("This user's lab access is disabled.")

    return Actor(user_id=user.id, role=str(profile.role))


def actor_from_request(request) -> Actor:
    cached = getattr(request, "_lab_actor", None)
    if cached is not None:
        return cached
    actor = actor_from_user(getattr(request, "user", None))
    setattr(request, "_lab_actor", actor)
    return actor
