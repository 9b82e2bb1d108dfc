"""
Order status state machine.

    pending --> accepted --> completed
       |           |
       +-----------+--> cancelled / rejected

completed, cancelled and rejected are terminal. Every status write goes
through ``apply_transition``, which re-checks legality against the stored
status inside a conditional UPDATE, so two admins racing on the same
order cannot both win.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError
from django.utils import timezone

from canteen.realtime import UPDATE, publish_change
from .models import Order

logger = logging.getLogger(__name__)

PENDING = 'pending'
ACCEPTED = 'accepted'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
REJECTED = 'rejected'

ALL_STATUSES = frozenset(value for value, _ in Order.STATUS_CHOICES)
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED, REJECTED})

TRANSITIONS = {
    PENDING: frozenset({ACCEPTED, CANCELLED, REJECTED}),
    ACCEPTED: frozenset({COMPLETED, CANCELLED, REJECTED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
    REJECTED: frozenset(),
}


@dataclass(frozen=True)
class TransitionResult:
    accepted: bool
    current: Optional[str] = None
    target: Optional[str] = None
    reason: Optional[str] = None
    # Set when the order itself could not be found or read
    not_found: bool = False
    error: bool = False

    def __bool__(self):
        return self.accepted


def allowed_targets(current):
    return TRANSITIONS.get(current, frozenset())


def check_transition(current, target) -> TransitionResult:
    """Pure legality check, no database access"""
    if target not in ALL_STATUSES:
        return TransitionResult(False, current, target, reason=f'Unknown status: {target}')
    if current in TERMINAL_STATUSES:
        return TransitionResult(False, current, target, reason=f'Order is already {current}')
    if target == current:
        return TransitionResult(False, current, target, reason=f'Order is already {current}')
    if target not in allowed_targets(current):
        return TransitionResult(False, current, target, reason=f'Cannot move order from {current} to {target}')
    return TransitionResult(True, current, target)


def apply_transition(order_id, target) -> TransitionResult:
    """
    Move an order to a new status if the move is legal right now

    Args:
        order_id: Order primary key
        target: Desired status

    Returns:
        TransitionResult; rejected when the move is illegal or another writer
        changed the status first
    """
    try:
        current = Order.objects.filter(pk=order_id).values_list('status', flat=True).first()
    except DatabaseError as exc:
        logger.error('Error reading order %s: %s', order_id, exc)
        return TransitionResult(False, target=target, reason=str(exc), error=True)

    if current is None:
        return TransitionResult(False, target=target, reason='Order not found', not_found=True)

    verdict = check_transition(current, target)
    if not verdict:
        return verdict

    try:
        # Compare-and-set: only succeeds if nobody moved the order meanwhile
        updated = Order.objects.filter(pk=order_id, status=current).update(
            status=target,
            updated_at=timezone.now()
        )
    except DatabaseError as exc:
        logger.error('Error updating order status for %s: %s', order_id, exc)
        return TransitionResult(False, current, target, reason=str(exc), error=True)

    if not updated:
        return TransitionResult(False, current, target, reason='Order status changed concurrently, refresh and retry')

    logger.info('Order %s: %s -> %s', order_id, current, target)
    publish_change('orders', UPDATE, order_id)
    return TransitionResult(True, current, target)
