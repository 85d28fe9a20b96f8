from decimal import Decimal

import pytest
import requests

from apps.orders.models import Order, OrderItem, PaymentSession, CartClearingEvent

pytestmark = pytest.mark.django_db

URL = '/api/order/create'


def _line(product, quantity, price=None):
    return {
        'id': str(product.id),
        'name': product.name,
        'price': float(price if price is not None else product.price),
        'quantity': quantity,
    }


def test_cash_on_delivery_order_is_confirmed(api_client, make_order_payload, power_bank, cable, email_api):
    payload = make_order_payload([_line(power_bank, 2), _line(cable, 3)])

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['status'] == 'confirmed'
    assert body['paymentMethod'] == 'cash_on_delivery'
    assert 'payment' not in body

    order = Order.objects.get()
    assert order.status == Order.Status.CONFIRMED
    assert order.branch == 'Відділення №5'
    assert order.total_amount == Decimal('3150.00')

    items = {item.product_id: item for item in order.items.all()}
    assert len(items) == 2
    assert items[power_bank.id].price == Decimal('2400.00')
    assert items[cable.id].price == Decimal('750.00')
    for item in items.values():
        assert item.price == item.quantity * item.product_price

    # customer confirmation + admin notification
    assert email_api.call_count == 2


def test_cod_alias_is_normalised(api_client, make_order_payload, power_bank):
    response = api_client.post(URL, make_order_payload([_line(power_bank, 1)], payment_method='cod'), format='json')

    assert response.status_code == 200
    assert Order.objects.get().payment_method == Order.PaymentMethod.CASH_ON_DELIVERY


def test_unknown_product_rejects_whole_order(api_client, make_order_payload, power_bank):
    missing = {'id': '7d1f5a52-8a44-4c1b-9a0a-6b8f6a3f0c11', 'name': 'Ghost', 'price': 10, 'quantity': 1}
    payload = make_order_payload([_line(power_bank, 1), missing])

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 400
    body = response.json()
    assert body['success'] is False
    assert body['details']['itemIndex'] == 1
    assert body['details']['itemName'] == 'Ghost'
    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0


def test_unresolvable_reference_is_rejected(api_client, make_order_payload, power_bank):
    payload = make_order_payload([{'id': 'not-a-product', 'name': 'Odd', 'price': 10, 'quantity': 1}])

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 400
    assert Order.objects.count() == 0


@pytest.mark.parametrize('reference', ['²', '٤٢'])
def test_non_ascii_digit_reference_is_rejected(api_client, make_order_payload, power_bank, reference):
    payload = make_order_payload([{'id': reference, 'name': 'Odd', 'price': 10, 'quantity': 1}])

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 400
    assert Order.objects.count() == 0


def test_legacy_numeric_id_is_mapped(api_client, make_order_payload, power_bank, settings):
    settings.LEGACY_PRODUCT_IDS = {42: str(power_bank.id)}
    payload = make_order_payload([{'id': 42, 'name': power_bank.name, 'price': 1200, 'quantity': 1}])

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 200
    assert OrderItem.objects.get().product_id == power_bank.id


def test_empty_items_is_rejected(api_client, make_order_payload, email_api):
    response = api_client.post(URL, make_order_payload([]), format='json')

    assert response.status_code == 400
    assert 'items' in response.json()['details']
    assert Order.objects.count() == 0
    email_api.assert_not_called()


def test_missing_email_is_rejected(api_client, make_order_payload, power_bank, email_api):
    payload = make_order_payload([_line(power_bank, 1)])
    del payload['customerData']['email']

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 400
    assert 'customerData' in response.json()['details']
    assert Order.objects.count() == 0
    email_api.assert_not_called()


def test_non_numeric_total_is_rejected(api_client, make_order_payload, power_bank):
    payload = make_order_payload([_line(power_bank, 1)])
    payload['totalAmount'] = 'lots'

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 400
    assert Order.objects.count() == 0


def test_unknown_payment_method_is_rejected(api_client, make_order_payload, power_bank):
    response = api_client.post(URL, make_order_payload([_line(power_bank, 1)], payment_method='barter'), format='json')

    assert response.status_code == 400
    assert Order.objects.count() == 0


def test_name_is_built_from_first_and_last_name(api_client, make_order_payload, power_bank):
    payload = make_order_payload([_line(power_bank, 1)], name='', firstName='Іван', lastName='Франко')

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 200
    assert Order.objects.get().customer_name == 'Іван Франко'


def test_online_order_waits_for_payment(api_client, make_order_payload, power_bank, email_api):
    response = api_client.post(URL, make_order_payload([_line(power_bank, 1)], payment_method='liqpay'), format='json')

    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'pending'
    assert body['payment']['signature']
    assert body['payment']['checkoutUrl']

    order = Order.objects.get()
    assert order.payment_reference == order.order_number
    session = PaymentSession.objects.get()
    assert session.order_reference == order.order_number
    assert session.order_id == order.id
    assert CartClearingEvent.objects.filter(order_reference=order.order_number).exists()
    assert email_api.call_count == 2


def test_email_failure_does_not_fail_order(api_client, make_order_payload, power_bank, email_api):
    email_api.return_value.raise_for_status.side_effect = requests.HTTPError('500')

    response = api_client.post(URL, make_order_payload([_line(power_bank, 1)]), format='json')

    assert response.status_code == 200
    assert Order.objects.get().status == Order.Status.CONFIRMED


def test_stored_total_is_sum_of_lines(api_client, make_order_payload, power_bank):
    payload = make_order_payload([_line(power_bank, 2)])
    payload['totalAmount'] = 1.0

    response = api_client.post(URL, payload, format='json')

    assert response.status_code == 200
    assert response.json()['totalAmount'] == 2400.0
