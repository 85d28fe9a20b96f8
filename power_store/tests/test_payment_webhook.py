from datetime import datetime
from decimal import Decimal
from unittest import mock

import pytest

from apps.orders.models import Order, OrderItem, PaymentSession, CartClearingEvent
from apps.orders.services import liqpay

pytestmark = pytest.mark.django_db

URL = '/api/payment/liqpay-callback'


@pytest.fixture
def session(power_bank, cable):
    return PaymentSession.objects.create(
        order_reference='liqpay_1700000000000_abc123xyz',
        customer_data={
            'name': 'Олена Петренко',
            'email': 'olena@example.com',
            'phone': '+380501112233',
            'city': 'Львів',
            'branch': 'Відділення №1',
        },
        items=[
            {'id': str(power_bank.id), 'name': power_bank.name, 'price': 1200.0, 'quantity': 1},
            {'id': str(cable.id), 'name': cable.name, 'price': 250.0, 'quantity': 2},
        ],
        total_amount=Decimal('1700.00'),
    )


def _success(reference, amount=1700):
    return {'order_id': reference, 'status': 'success', 'amount': amount, 'currency': 'UAH'}


def test_signature_helpers_agree():
    data = liqpay.encode_data({'order_id': 'x'})
    signature = liqpay.sign(data)
    liqpay.verify(data, signature)
    assert liqpay.decode_data(data) == {'order_id': 'x'}


def test_bad_signature_is_rejected_without_writes(api_client, session, make_callback):
    body = make_callback(_success(session.order_reference), private_key='someone-else')

    response = api_client.post(URL, body)

    assert response.status_code == 400
    assert Order.objects.count() == 0
    session.refresh_from_db()
    assert session.status == PaymentSession.Status.PENDING


def test_missing_fields_are_rejected(api_client):
    response = api_client.post(URL, {'data': 'abc'})

    assert response.status_code == 400
    assert response.json()['success'] is False


def test_failed_payment_marks_session(api_client, session, make_callback):
    body = make_callback({'order_id': session.order_reference, 'status': 'failure'})

    response = api_client.post(URL, body)

    assert response.status_code == 400
    assert Order.objects.count() == 0
    session.refresh_from_db()
    assert session.status == PaymentSession.Status.FAILED


def test_session_becomes_paid_order(api_client, session, make_callback, email_api):
    response = api_client.post(URL, make_callback(_success(session.order_reference)))

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True

    order = Order.objects.get()
    assert str(order.id) == body['orderId']
    assert order.status == Order.Status.PAID
    assert order.payment_reference == session.order_reference
    assert order.customer_name == 'Олена Петренко'
    assert order.total_amount == Decimal('1700.00')
    assert order.items.count() == 2

    session.refresh_from_db()
    assert session.status == PaymentSession.Status.COMPLETED
    assert session.order_id == order.id
    assert CartClearingEvent.objects.filter(order_reference=session.order_reference).exists()
    assert email_api.call_count == 2


def test_redelivery_creates_one_order(api_client, session, make_callback):
    body = make_callback(_success(session.order_reference))

    first = api_client.post(URL, body)
    second = api_client.post(URL, body)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()['message'] == 'Order already exists'
    assert second.json()['orderId'] == first.json()['orderId']
    assert Order.objects.count() == 1
    assert OrderItem.objects.count() == 2


def test_order_number_clash_is_retried_with_new_number(api_client, session, make_callback):
    moment = datetime(2026, 10, 19, 12, 0, 0)
    Order.objects.create(
        order_number='ORD-20261019-120000-0042',
        customer_name='Інший покупець',
        customer_email='other@example.com',
    )

    with mock.patch('apps.orders.models.timezone.localtime', return_value=moment), \
            mock.patch('apps.orders.models.random.randint', side_effect=[42, 43]):
        response = api_client.post(URL, make_callback(_success(session.order_reference)))

    assert response.status_code == 200
    assert response.json()['message'] != 'Order already exists'
    order = Order.objects.get(payment_reference=session.order_reference)
    assert order.order_number == 'ORD-20261019-120000-0043'
    assert order.items.count() == 2


def test_unknown_snapshot_product_is_kept_without_product(api_client, session, make_callback):
    session.items = session.items + [{'id': 'gone', 'name': 'Discontinued', 'price': 99.0, 'quantity': 1}]
    session.save()

    response = api_client.post(URL, make_callback(_success(session.order_reference)))

    assert response.status_code == 200
    orphan = OrderItem.objects.get(product_name='Discontinued')
    assert orphan.product_id is None
    assert orphan.price == Decimal('99.00')


def test_pending_online_order_is_marked_paid(api_client, make_order_payload, power_bank, make_callback):
    created = api_client.post(
        '/api/order/create',
        make_order_payload(
            [{'id': str(power_bank.id), 'name': power_bank.name, 'price': 1200, 'quantity': 1}],
            payment_method='online',
        ),
        format='json',
    ).json()

    response = api_client.post(URL, make_callback(_success(created['orderNumber'], 1200)))

    assert response.status_code == 200
    assert response.json()['orderId'] == created['orderId']
    order = Order.objects.get()
    assert order.status == Order.Status.PAID
    assert PaymentSession.objects.get().status == PaymentSession.Status.COMPLETED


def test_missing_session_creates_fallback_order(api_client, make_callback):
    response = api_client.post(URL, make_callback(_success('liqpay_orphan', 499.5)))

    assert response.status_code == 200
    order = Order.objects.get()
    assert order.customer_name == 'Unknown Customer'
    assert order.customer_email == 'unknown@example.com'
    assert order.status == Order.Status.PAID
    assert order.total_amount == Decimal('499.50')
    item = order.items.get()
    assert item.product_id is None


def test_payment_session_endpoint_returns_signed_checkout(api_client, power_bank, make_order_payload):
    payload = make_order_payload(
        [{'id': str(power_bank.id), 'name': power_bank.name, 'price': 1200, 'quantity': 2}],
        payment_method='online',
    )

    response = api_client.post('/api/payment/liqpay-session', payload, format='json')

    assert response.status_code == 200
    body = response.json()
    assert body['orderId'].startswith('liqpay_')
    assert body['signature'] == liqpay.sign(body['data'])
    decoded = liqpay.decode_data(body['data'])
    assert decoded['amount'] == '2400.00'
    assert decoded['order_id'] == body['orderId']
    session = PaymentSession.objects.get(order_reference=body['orderId'])
    assert session.total_amount == Decimal('2400.00')
    assert Order.objects.count() == 0
