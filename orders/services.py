import logging
from collections import Counter

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from canteen.realtime import INSERT, DELETE, ChangeFeed, publish_change
from canteen.results import Result
from .models import Order
from .numbering import next_order_number
from .state import apply_transition, ACCEPTED, PENDING, COMPLETED

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ('cash', 'card')
DEFAULT_PAYMENT_METHOD = 'upi'


def normalize_payment_method(value):
    """'cash' and 'card' pass through; anything else is paid by UPI"""
    value = (value or '').strip().lower()
    return value if value in PAYMENT_METHODS else DEFAULT_PAYMENT_METHOD


def purchaser_id(user):
    if user is None or not user.is_authenticated:
        return settings.GUEST_USER_ID
    return str(user.pk)


def create_order(cart, *, user, room_number, contact_number, payment_method,
                 special_instructions=None, customer_name=None) -> Result:
    """
    Turn the cart into a pending order

    Args:
        cart: The session Cart; cleared only once the order is stored
        user: Purchaser, or None/AnonymousUser for a guest
        room_number: Delivery room
        contact_number: E-mail address or 10-digit phone number
        payment_method: cash, card or upi (anything else becomes upi)
        special_instructions: Optional kitchen note
        customer_name: Required for guests; registered users default to their profile name

    Returns:
        Result with the created Order, or a failure leaving the cart as it was
    """
    if not cart:
        return Result.fail('Your cart is empty')

    items = cart.snapshot()
    total = sum(entry['price'] * entry['quantity'] for entry in items)
    if not customer_name and user is not None and user.is_authenticated:
        profile = getattr(user, 'profile', None)
        customer_name = profile.full_name if profile is not None else ''

    try:
        with transaction.atomic():
            order = Order.objects.create(
                order_number=next_order_number(),
                user_id=purchaser_id(user),
                customer_name=customer_name or '',
                items=items,
                total_amount=total,
                room_number=room_number,
                contact_number=contact_number,
                payment_method=normalize_payment_method(payment_method),
                status=PENDING,
                payment_status='pending',
                special_instructions=special_instructions or None
            )
            publish_change('orders', INSERT, order.pk)
    except IntegrityError as exc:
        logger.error('Order number clash while placing order: %s', exc)
        return Result.fail('Failed to place order, please try again')
    except DatabaseError as exc:
        logger.error('Error placing order: %s', exc)
        return Result.fail('Failed to place order')

    cart.clear()
    logger.info('Order %s placed for %s: %s items, total %s',
                order.order_number, order.user_id, len(items), total)
    return Result.ok(order)


def get_user_orders(user_id, status=None) -> Result:
    try:
        orders = Order.objects.filter(user_id=str(user_id))
        if status:
            orders = orders.filter(status=status)
        return Result.ok(list(orders.order_by('-placed_at')))
    except DatabaseError as exc:
        logger.error('Error fetching orders for %s: %s', user_id, exc)
        return Result.fail(str(exc))


def get_all_orders() -> Result:
    try:
        return Result.ok(list(Order.objects.order_by('-placed_at')))
    except DatabaseError as exc:
        logger.error('Error fetching orders: %s', exc)
        return Result.fail(str(exc))


def update_order_status(order_id, status) -> Result:
    """
    Move an order along the status machine

    The result carries ``not_found`` for a missing order and ``conflict``
    when the move is illegal from the stored status.
    """
    outcome = apply_transition(order_id, status)
    if outcome:
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            # Deleted between the status write and the re-read
            logger.warning('Order %s vanished after moving to %s', order_id, status)
            return Result.fail('Order not found', not_found=True)
        return Result.ok(order)
    if outcome.not_found:
        return Result.fail(outcome.reason, not_found=True)
    if outcome.error:
        return Result.fail(outcome.reason)
    logger.warning('Rejected status change for %s: %s', order_id, outcome.reason)
    return Result.fail(outcome.reason, conflict=True, current=outcome.current)


def accept_all_pending() -> Result:
    """Accept every pending order; returns the ids that were actually moved"""
    try:
        pending = list(Order.objects.filter(status=PENDING).values_list('pk', flat=True))
    except DatabaseError as exc:
        logger.error('Error fetching pending orders: %s', exc)
        return Result.fail(str(exc))

    accepted = []
    for order_id in pending:
        # An order another admin just rejected is skipped, not forced
        if apply_transition(order_id, ACCEPTED):
            accepted.append(order_id)
    logger.info('Accepted %s of %s pending orders', len(accepted), len(pending))
    return Result.ok(accepted)


def delete_order(order_id, user) -> Result:
    """Remove an order from its owner's history"""
    try:
        order = Order.objects.filter(pk=order_id).first()
        if order is None or order.user_id != purchaser_id(user) or order.is_guest_order:
            return Result.fail('Order not found', not_found=True)
        with transaction.atomic():
            order.delete()
            publish_change('orders', DELETE, order_id)
    except DatabaseError as exc:
        logger.error('Error deleting order %s: %s', order_id, exc)
        return Result.fail(str(exc))
    logger.info('Order %s deleted by its owner', order_id)
    return Result.ok()


def order_stats() -> Result:
    try:
        rows = list(Order.objects.values('status', 'total_amount', 'placed_at'))
    except DatabaseError as exc:
        logger.error('Error fetching order stats: %s', exc)
        return Result.fail(str(exc))

    counts = Counter(row['status'] for row in rows)
    today = timezone.localdate()
    return Result.ok({
        'total': len(rows),
        'by_status': {value: counts.get(value, 0) for value, _ in Order.STATUS_CHOICES},
        'revenue': sum(row['total_amount'] for row in rows if row['status'] == COMPLETED),
        'today': sum(1 for row in rows if timezone.localtime(row['placed_at']).date() == today),
    })


def subscribe_to_orders(callback, feed=None):
    """
    Follow the order board

    Every insert, status change or delete triggers a full re-fetch; the
    callback receives the complete list, newest first.

    Args:
        callback: Called from the listener thread with a list of Orders
        feed: ChangeFeed to use, defaults to one built from settings

    Returns:
        Subscription; close() it to stop listening
    """
    feed = feed or ChangeFeed()

    def on_change(change):
        result = get_all_orders()
        if not result:
            logger.warning('Skipping refresh after %s: %s', change.event, result.error)
            return
        callback(result.value)

    return feed.subscribe('orders', on_change)
