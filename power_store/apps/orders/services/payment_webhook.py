import logging
from decimal import Decimal, InvalidOperation
from django.db import IntegrityError, transaction

from ..models import Order, OrderItem, PaymentSession, generate_order_number
from . import liqpay
from .cart_clearing import mark_cart_for_clearing
from .exceptions import OrderValidationError, PaymentNotSuccessfulError
from .notifications import send_order_emails
from .order_creator import build_items, order_fields
from .product_refs import resolve_lines_lenient

logger = logging.getLogger(__name__)

SUCCESS = 'success'
UNKNOWN_CUSTOMER = {'name': 'Unknown Customer', 'email': 'unknown@example.com'}
MAX_SAVE_ATTEMPTS = 3


class CallbackResult:
    def __init__(self, order, message, created=False):
        self.order = order
        self.message = message
        self.created = created

    def as_dict(self):
        return {'success': True, 'orderId': str(self.order.id), 'message': self.message}


def handle_callback(data, signature):
    """
    Process one LiqPay server callback.

    Raises OrderValidationError for missing fields, InvalidSignatureError for a
    bad signature and PaymentNotSuccessfulError for any status but success.
    """
    if not data or not signature:
        raise OrderValidationError('Missing data or signature')

    # Step 1 — authenticate before touching the database
    liqpay.verify(data, signature)
    payload = liqpay.decode_data(data)
    reference = payload.get('order_id')
    status = payload.get('status')
    logger.info("LIQPAY — callback for %s, status %s", reference, status)

    session = PaymentSession.objects.filter(order_reference=reference).first() if reference else None

    if status != SUCCESS:
        if session:
            session.status = PaymentSession.Status.FAILED
            session.save(update_fields=['status', 'updated_at'])
        raise PaymentNotSuccessfulError(status, reference)

    # Step 2 — redelivery or order created up front
    existing = Order.objects.filter(payment_reference=reference).first() if reference else None
    if existing:
        return _confirm_existing(existing, session)

    # Step 3 — materialise the order
    if session:
        order = _create_from_session(session, reference)
    else:
        logger.warning("LIQPAY — no payment session for %s, creating fallback order", reference)
        order = _create_fallback(payload, reference)
    if order is None:
        return CallbackResult(Order.objects.get(payment_reference=reference), 'Order already exists')

    # Step 4 — side effects
    send_order_emails(order)
    if session:
        session.status = PaymentSession.Status.COMPLETED
        session.order = order
        session.save(update_fields=['status', 'order', 'updated_at'])
    if reference:
        mark_cart_for_clearing(reference, order)

    logger.info("LIQPAY — order %s created for %s", order.order_number, reference)
    return CallbackResult(order, 'Order created successfully', created=True)


def _confirm_existing(order, session):
    if order.status != Order.Status.PENDING:
        logger.info("LIQPAY — order %s already exists (%s), skipping", order.order_number, order.status)
        return CallbackResult(order, 'Order already exists')

    order.status = Order.Status.PAID
    order.payment_status = SUCCESS
    order.save(update_fields=['status', 'payment_status', 'updated_at'])
    if session:
        session.status = PaymentSession.Status.COMPLETED
        session.order = order
        session.save(update_fields=['status', 'order', 'updated_at'])
    mark_cart_for_clearing(order.payment_reference, order)
    logger.info("LIQPAY — order %s marked paid", order.order_number)
    return CallbackResult(order, 'Payment confirmed')


def _save(order, rows):
    """
    Write order + items atomically. Returns None if a concurrent delivery won.

    An IntegrityError with no order stored under the payment reference is an
    order number clash, so the save is retried with a fresh number.
    """
    for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                order.save()
                OrderItem.objects.bulk_create(rows)
            return order
        except IntegrityError:
            if order.payment_reference and Order.objects.filter(payment_reference=order.payment_reference).exists():
                logger.info("LIQPAY — order for %s was created concurrently", order.payment_reference)
                return None
            if attempt == MAX_SAVE_ATTEMPTS:
                raise
            logger.warning("LIQPAY — order number %s taken, retrying", order.order_number)
            order.order_number = generate_order_number()


def _create_from_session(session, reference):
    items = session.items or []
    # Payment is already captured: unusable lines are kept without a product.
    product_ids = resolve_lines_lenient(items)
    order = Order(
        payment_method=Order.PaymentMethod.ONLINE,
        payment_reference=reference,
        payment_status=SUCCESS,
        status=Order.Status.PAID,
        **order_fields(session.customer_data or {})
    )
    rows = build_items(order, items, product_ids)
    order.total_amount = sum((row.price for row in rows), Decimal('0')) if rows else session.total_amount
    return _save(order, rows)


def _create_fallback(payload, reference):
    try:
        amount = Decimal(str(payload.get('amount') or 0)).quantize(Decimal('0.01'))
    except InvalidOperation:
        amount = Decimal('0.00')
    order = Order(
        payment_method=Order.PaymentMethod.ONLINE,
        payment_reference=reference,
        payment_status=SUCCESS,
        status=Order.Status.PAID,
        total_amount=amount,
        **order_fields(UNKNOWN_CUSTOMER)
    )
    rows = [OrderItem(
        order=order,
        product=None,
        product_name=payload.get('description') or 'Payment {}'.format(reference or ''),
        product_price=amount,
        quantity=1,
        price=amount,
    )]
    return _save(order, rows)
