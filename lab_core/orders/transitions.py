# lab_core/orders/transitions.py
"""
Order status state machine.

    pending     -> confirmed | cancelled
    confirmed   -> in_progress | cancelled
    in_progress -> completed | cancelled
    completed   (terminal)
    cancelled   (terminal)
"""
from __future__ import annotations

from lab_core.orders.models import OrderStatus

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# only these may be deleted
DELETABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED})


def allowed_successors(current: str) -> frozenset[str]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def can_transition(current: str, requested: str) -> bool:
    return requested in allowed_successors(current)


def is_terminal(status: str) -> bool:
    return status in ALLOWED_TRANSITIONS and not ALLOWED_TRANSITIONS[status]
