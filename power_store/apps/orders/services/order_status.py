import uuid
import logging
from django.db.models import Q

from ..models import Order
from .exceptions import InvalidStatusTransition
from .notifications import send_status_email

logger = logging.getLogger(__name__)


def find_order(reference):
    """Look an order up by UUID or order number."""
    lookup = Q(order_number=reference)
    try:
        lookup |= Q(id=uuid.UUID(str(reference)))
    except ValueError:
        pass
    return Order.objects.filter(lookup).prefetch_related('items').first()


def change_status(order, status):
    if status == order.status:
        return order
    if status not in Order.Status.values or not order.can_transition_to(status):
        raise InvalidStatusTransition(order.status, status)
    previous = order.status
    order.status = status
    order.save(update_fields=['status', 'updated_at'])
    logger.info("STATUS — %s: %s → %s", order.order_number, previous, status)
    return order


def change_status_and_notify(order, status, notify=True):
    """Apply the transition first; the email reflects the stored status."""
    change_status(order, status)
    if not notify:
        return order, None
    return order, send_status_email(order)
