import json
import base64
import hashlib
from decimal import Decimal
from unittest import mock

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.catalog.models import Category, Product, CAPACITY_KEY

LIQPAY_PRIVATE_KEY = 'test-private-key'


@pytest.fixture(autouse=True)
def _settings(settings):
    settings.LIQPAY_PUBLIC_KEY = 'test-public-key'
    settings.LIQPAY_PRIVATE_KEY = LIQPAY_PRIVATE_KEY
    settings.RESEND_API_KEY = 'test-resend-key'
    settings.ADMIN_ORDER_EMAIL = 'orders@example.com'
    settings.SITE_URL = 'https://shop.example.com'
    settings.NOVA_POSHTA_API_KEY = 'test-np-key'
    settings.LEGACY_PRODUCT_IDS = {}
    return settings


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def email_api():
    """Every outbound email succeeds unless a test says otherwise."""
    with mock.patch('apps.orders.services.notifications.requests.post') as post:
        post.return_value.json.return_value = {'id': 'email-123'}
        post.return_value.raise_for_status.return_value = None
        yield post


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def categories(db):
    return (
        Category.objects.create(id=Category.POWER_BANKS, name='Портативні батареї', slug='power-banks'),
        Category.objects.create(id=Category.CHARGERS_CABLES, name='Зарядки та кабелі', slug='chargers-cables'),
    )


@pytest.fixture
def power_bank(categories):
    return Product.objects.create(
        external_id='1001-a',
        name='Xiaomi Power Bank 20000',
        price=Decimal('1200.00'),
        quantity=5,
        brand='Xiaomi',
        category=categories[0],
        image_url='https://img.example.com/a.jpg',
        characteristics={CAPACITY_KEY: 20000},
    )


@pytest.fixture
def cable(categories):
    return Product.objects.create(
        external_id='2002-b',
        name='Baseus cable Type-C',
        price=Decimal('250.00'),
        quantity=10,
        brand='Baseus',
        category=categories[1],
        image_url='https://img.example.com/b.jpg',
    )


def liqpay_callback(payload, private_key=LIQPAY_PRIVATE_KEY):
    """Form body the gateway would post for a payload."""
    data = base64.b64encode(json.dumps(payload).encode('utf-8')).decode('ascii')
    digest = hashlib.sha1('{0}{1}{0}'.format(private_key, data).encode('utf-8')).digest()
    return {'data': data, 'signature': base64.b64encode(digest).decode('ascii')}


@pytest.fixture
def make_callback():
    return liqpay_callback


def order_payload(items, payment_method='cash_on_delivery', **customer):
    data = {
        'name': 'Олена Петренко',
        'email': 'olena@example.com',
        'phone': '+380501112233',
        'city': 'Київ',
        'warehouse': 'Відділення №5',
        'paymentMethod': payment_method,
    }
    data.update(customer)
    total = sum(Decimal(str(i['price'])) * i['quantity'] for i in items)
    return {'customerData': data, 'items': items, 'totalAmount': float(total)}


@pytest.fixture
def make_order_payload():
    return order_payload
