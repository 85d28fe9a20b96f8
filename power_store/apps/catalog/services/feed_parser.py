import logging
import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

USER_AGENT = 'PowerStore-Product-Importer/1.0'


class FeedImportError(Exception):
    pass


class FeedItem:
    """One <offer> of the supplier feed, before validation."""

    def __init__(self, external_id, name, description='', price=None, pictures=None,
                 vendor='', vendor_code='', quantity=0, category_code=None, params=None):
        self.external_id = external_id
        self.name = name
        self.description = description
        self.price = price
        self.pictures = pictures or []
        self.vendor = vendor
        self.vendor_code = vendor_code
        self.quantity = quantity
        self.category_code = category_code
        self.params = params or {}

    def __repr__(self):
        return '<FeedItem {} {!r}>'.format(self.external_id, self.name)


def fetch_feed(url=None, timeout=None):
    url = url or settings.SUPPLIER_FEED_URL
    timeout = timeout or settings.FEED_REQUEST_TIMEOUT
    logger.info("FEED — fetching %s", url)
    try:
        response = requests.get(
            url,
            headers={'User-Agent': USER_AGENT, 'Accept': 'application/xml, text/xml, */*'},
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedImportError("Failed to fetch XML feed: {}".format(e)) from e
    logger.info("FEED — fetched %d bytes", len(response.content))
    return response.content


def _text(element, *tags):
    for tag in tags:
        child = element.find(tag)
        if child is not None and child.text and child.text.strip():
            return child.text.strip()
    return ''


def _to_decimal(value):
    if not value:
        return None
    try:
        number = Decimal(str(value).replace(',', '.').strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _to_int(value):
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    if not number.is_finite():
        return 0
    try:
        return int(number)
    except (InvalidOperation, ValueError):
        return 0


def _parse_params(element):
    params = {}
    for param in element.findall('param'):
        name = (param.get('name') or '').strip()
        value = (param.text or '').strip()
        if not name or not value:
            continue
        if name in params:
            existing = params[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                params[name] = [existing, value]
        else:
            params[name] = value
    return params


def _parse_item(element):
    external_id = (element.get('id') or _text(element, 'id', 'code')).strip()
    pictures = [
        (node.text or '').strip()
        for node in element.findall('picture') + element.findall('image')
        if node.text and node.text.strip()
    ]
    price_text = _text(element, 'priceuah', 'price') or _text(element, 'prices/price/value')
    return FeedItem(
        external_id=external_id,
        name=_text(element, 'name', 'model'),
        description=_text(element, 'description'),
        price=_to_decimal(price_text),
        pictures=pictures,
        vendor=_text(element, 'vendor', 'brand'),
        vendor_code=_text(element, 'vendorCode'),
        quantity=_to_int(_text(element, 'quantity', 'stock_quantity', 'quantity_in_stock') or 0),
        category_code=_text(element, 'categoryId', 'category') or None,
        params=_parse_params(element),
    )


def parse_feed(content):
    """Parse raw feed bytes into FeedItem objects. Raises FeedImportError on bad XML."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise FeedImportError("Invalid XML feed: {}".format(e)) from e

    elements = root.findall('.//offer') or root.findall('.//item')
    if not elements:
        raise FeedImportError("Invalid XML structure: no offers found")

    items = [_parse_item(el) for el in elements]
    logger.info("FEED — parsed %d items", len(items))
    return items
