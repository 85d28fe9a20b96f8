import logging
import requests
from django.conf import settings
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

# Customer-facing status names.
STATUS_DISPLAY = {
    'pending': 'Очікує оплати',
    'confirmed': 'Підтверджено',
    'paid': 'Оплачено',
    'shipped': 'Відправлено',
    'delivered': 'Доставлено',
    'cancelled': 'Скасовано',
}

PAYMENT_DISPLAY = {
    'online': 'Онлайн оплата',
    'cash_on_delivery': 'Накладений платіж',
}


class EmailResult:
    def __init__(self, success, message_id=None, error=None):
        self.success = success
        self.message_id = message_id
        self.error = error

    def as_dict(self):
        return {'success': self.success, 'messageId': self.message_id, 'error': self.error}


class EmailSender:
    """Thin client for the Resend transactional email API."""

    def __init__(self, api_key=None, api_url=None, sender=None, timeout=None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.sender = sender or settings.ORDER_EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_REQUEST_TIMEOUT

    def send(self, to, subject, html, text=None):
        recipients = [to] if isinstance(to, str) else list(to)
        if not self.api_key:
            logger.warning("EMAIL — RESEND_API_KEY is not configured, skipping %r", subject)
            return EmailResult(success=False, error='Email API key is not configured')
        if not any(recipients):
            return EmailResult(success=False, error='No recipients')

        payload = {'from': self.sender, 'to': recipients, 'subject': subject, 'html': html}
        if text:
            payload['text'] = text
        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers={'Authorization': 'Bearer {}'.format(self.api_key)},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("EMAIL — failed to send %r to %s: %s", subject, recipients, e)
            return EmailResult(success=False, error=str(e))

        logger.info("EMAIL — sent %r to %s (id %s)", subject, recipients, body.get('id'))
        return EmailResult(success=True, message_id=body.get('id'))


def _context(order):
    items = list(order.items.select_related('product'))
    return {
        'order': order,
        'items': items,
        'status_display': STATUS_DISPLAY.get(order.status, order.status),
        'payment_display': PAYMENT_DISPLAY.get(order.payment_method, order.payment_method),
        'site_url': settings.SITE_URL,
        'status_url': '{}/order-status?orderNumber={}'.format(settings.SITE_URL, order.order_number),
    }


def _render(name, context):
    return (
        render_to_string('orders/emails/{}.html'.format(name), context),
        render_to_string('orders/emails/{}.txt'.format(name), context),
    )


def send_customer_confirmation(order, sender=None):
    html, text = _render('customer_confirmation', _context(order))
    subject = 'Ваше замовлення №{} успішно прийняте'.format(order.order_number)
    return (sender or EmailSender()).send(order.customer_email, subject, html, text)


def send_admin_notification(order, sender=None):
    if not settings.ADMIN_ORDER_EMAIL:
        logger.info("EMAIL — ADMIN_ORDER_EMAIL not set, skipping admin notification")
        return EmailResult(success=False, error='Admin email is not configured')
    html, text = _render('admin_notification', _context(order))
    subject = 'НОВЕ ЗАМОВЛЕННЯ #{}'.format(order.order_number)
    return (sender or EmailSender()).send(settings.ADMIN_ORDER_EMAIL, subject, html, text)


def send_order_emails(order, sender=None):
    """Send the customer and admin messages independently of each other."""
    sender = sender or EmailSender()
    results = {}
    for key, send in (('customer', send_customer_confirmation), ('admin', send_admin_notification)):
        try:
            results[key] = send(order, sender)
        except Exception as e:
            logger.exception("EMAIL — %s email for %s failed: %s", key, order.order_number, e)
            results[key] = EmailResult(success=False, error=str(e))
    return results


def send_status_email(order, sender=None):
    context = _context(order)
    html, text = _render('status_change', context)
    subject = 'Статус замовлення №{} змінено на "{}"'.format(order.order_number, context['status_display'])
    return (sender or EmailSender()).send(order.customer_email, subject, html, text)
