import uuid
import logging
from django.db import DatabaseError
from django.db.models import Q

from ..models import CartClearingEvent

logger = logging.getLogger(__name__)


def mark_cart_for_clearing(reference, order=None):
    """Best-effort: a failure here is logged and never reaches the caller."""
    try:
        event, created = CartClearingEvent.objects.get_or_create(
            order_reference=reference, defaults={'order': order},
        )
    except DatabaseError as e:
        logger.warning("CART — could not store clearing marker for %s: %s", reference, e)
        return None
    if created:
        logger.info("CART — clearing marker stored for %s", reference)
    return event


def check_cart_clearing(reference):
    lookup = Q(order_reference=reference) | Q(order__order_number=reference)
    try:
        lookup |= Q(order_id=uuid.UUID(str(reference)))
    except ValueError:
        pass

    try:
        event = CartClearingEvent.objects.filter(lookup).first()
    except DatabaseError as e:
        logger.warning("CART — clearing check failed for %s: %s", reference, e)
        return {'shouldClear': False, 'clearingEvent': None, 'warning': 'Could not check cart clearing status'}

    if event is None:
        return {'shouldClear': False, 'clearingEvent': None}
    return {
        'shouldClear': True,
        'clearingEvent': {
            'orderReference': event.order_reference,
            'orderId': str(event.order_id) if event.order_id else None,
            'createdAt': event.created_at.isoformat(),
        },
    }
