import logging
from decimal import Decimal
from django.db import transaction

from ..models import Order, OrderItem, PaymentSession, generate_order_number
from . import liqpay
from .cart_clearing import mark_cart_for_clearing
from .notifications import send_order_emails
from .product_refs import resolve_lines

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


class OrderCreationResult:
    def __init__(self, order, message, payment=None):
        self.order = order
        self.message = message
        self.payment = payment

    def as_dict(self):
        data = {
            'success': True,
            'orderId': str(self.order.id),
            'orderNumber': self.order.order_number,
            'paymentMethod': self.order.payment_method,
            'status': self.order.status,
            'message': self.message,
            'totalAmount': float(self.order.total_amount),
        }
        if self.payment:
            data['payment'] = self.payment
        return data


def order_fields(customer):
    """Order model kwargs from a normalised customer dict."""
    return {
        'customer_name': customer.get('name') or '',
        'customer_email': customer.get('email') or '',
        'customer_phone': customer.get('phone') or '',
        'city': customer.get('city') or '',
        'branch': customer.get('branch') or '',
        'customer_address': customer.get('address') or '',
    }


def build_items(order, items, product_ids):
    """Unsaved OrderItem rows; line price is quantity × unit price."""
    rows = []
    for item, product_id in zip(items, product_ids):
        unit_price = Decimal(str(item['price'])).quantize(TWO_PLACES)
        quantity = int(item['quantity'])
        rows.append(OrderItem(
            order=order,
            product_id=product_id,
            product_name=item.get('name') or 'Unknown product',
            product_price=unit_price,
            quantity=quantity,
            price=unit_price * quantity,
        ))
    return rows


def items_snapshot(items):
    return [
        {
            'id': item.get('id'),
            'name': item.get('name'),
            'price': float(item['price']),
            'quantity': int(item['quantity']),
            'image': item.get('image') or '',
        }
        for item in items
    ]


def create_order(customer, items, total_amount):
    """
    Validate product references, then write the order and its items atomically.

    Raises ProductReferenceError before any write when a line cannot be used.
    """
    payment_method = customer['payment_method']
    logger.info("ORDER — %s, %d lines, %s payment", customer.get('email'), len(items), payment_method)

    # Step 1 — every line must point at an existing product
    product_ids = resolve_lines(items)

    # Step 2 — write order + items + payment session in one transaction
    online = payment_method == Order.PaymentMethod.ONLINE
    number = generate_order_number()
    with transaction.atomic():
        order = Order(
            order_number=number,
            payment_method=payment_method,
            payment_reference=number if online else None,
            status=Order.Status.PENDING if online else Order.Status.CONFIRMED,
            **order_fields(customer)
        )
        rows = build_items(order, items, product_ids)
        order.total_amount = sum((row.price for row in rows), Decimal('0'))
        order.save()
        OrderItem.objects.bulk_create(rows)
        if online:
            PaymentSession.objects.create(
                order_reference=number,
                order=order,
                customer_data=customer,
                items=items_snapshot(items),
                total_amount=order.total_amount,
            )

    if total_amount is not None and Decimal(str(total_amount)).quantize(TWO_PLACES) != order.total_amount:
        logger.warning("ORDER — %s client total %s differs from computed %s",
                       number, total_amount, order.total_amount)
    logger.info("ORDER — %s created (%s, %s)", number, order.status, order.total_amount)

    # Step 3 — side effects, none of which may fail the request
    send_order_emails(order)

    if not online:
        return OrderCreationResult(order, 'Order confirmed, payment on delivery')

    mark_cart_for_clearing(number, order)
    payment = liqpay.checkout_payload(number, order.total_amount, 'Замовлення №{}'.format(number))
    return OrderCreationResult(order, 'Order created, awaiting payment', payment=payment)


def create_payment_session(customer, items, total_amount):
    """Store a checkout snapshot under a fresh gateway id; the webhook creates the order."""
    reference = liqpay.new_order_reference()
    amount = sum(
        (Decimal(str(item['price'])) * int(item['quantity']) for item in items), Decimal('0')
    ).quantize(TWO_PLACES)
    if total_amount is not None and Decimal(str(total_amount)).quantize(TWO_PLACES) != amount:
        logger.warning("LIQPAY — %s client total %s differs from computed %s", reference, total_amount, amount)

    session = PaymentSession.objects.create(
        order_reference=reference,
        customer_data=customer,
        items=items_snapshot(items),
        total_amount=amount,
    )
    logger.info("LIQPAY — session %s stored (%s)", reference, amount)
    return session, liqpay.checkout_payload(reference, amount)
