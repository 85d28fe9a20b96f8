import json
import time
import uuid
import base64
import hashlib
import hmac
import logging
from decimal import Decimal
from django.conf import settings

from .exceptions import InvalidSignatureError

logger = logging.getLogger(__name__)

API_VERSION = 3


def new_order_reference():
    """Gateway order id for a checkout started without an order: liqpay_<timestamp>_<random>."""
    return 'liqpay_{}_{}'.format(int(time.time() * 1000), uuid.uuid4().hex[:9])


def encode_data(params):
    return base64.b64encode(json.dumps(params).encode('utf-8')).decode('ascii')


def decode_data(data):
    try:
        return json.loads(base64.b64decode(data).decode('utf-8'))
    except (ValueError, UnicodeDecodeError) as e:
        raise InvalidSignatureError("Callback data is not valid base64 JSON: {}".format(e)) from e


def sign(data, private_key=None):
    """base64(sha1(private_key + data + private_key))"""
    private_key = private_key if private_key is not None else settings.LIQPAY_PRIVATE_KEY
    digest = hashlib.sha1('{0}{1}{0}'.format(private_key, data).encode('utf-8')).digest()
    return base64.b64encode(digest).decode('ascii')


def verify(data, signature):
    if not hmac.compare_digest(sign(data), signature or ''):
        logger.warning("LIQPAY — signature mismatch")
        raise InvalidSignatureError("Invalid signature")


def checkout_payload(order_reference, amount, description=None):
    """Signed data for the LiqPay checkout form."""
    params = {
        'version': API_VERSION,
        'public_key': settings.LIQPAY_PUBLIC_KEY,
        'action': 'pay',
        'amount': str(Decimal(amount).quantize(Decimal('0.01'))),
        'currency': settings.LIQPAY_CURRENCY,
        'description': description or 'Замовлення #{}'.format(order_reference),
        'order_id': order_reference,
        'result_url': '{}/order-success?orderId={}'.format(settings.SITE_URL, order_reference),
        'server_url': '{}/api/payment/liqpay-callback'.format(settings.SITE_URL),
        'language': 'uk',
    }
    data = encode_data(params)
    logger.info("LIQPAY — checkout prepared for %s (%s %s)", order_reference, params['amount'], params['currency'])
    return {
        'data': data,
        'signature': sign(data),
        'checkoutUrl': settings.LIQPAY_CHECKOUT_URL,
        'publicKey': settings.LIQPAY_PUBLIC_KEY,
    }
