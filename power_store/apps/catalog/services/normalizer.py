import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..models import (
    Category, CAPACITY_KEY, INPUT_CONNECTOR_KEY, OUTPUT_CONNECTOR_KEY, CABLE_LENGTH_KEY,
)

logger = logging.getLogger(__name__)

# Supplier category code → canonical category id. Anything else is not sold here.
CATEGORY_MAP = {
    1: Category.POWER_BANKS,
    3: Category.POWER_BANKS,
    14: Category.CHARGERS_CABLES,
    16: Category.CHARGERS_CABLES,
}

CANONICAL_CATEGORIES = {
    Category.POWER_BANKS: ('Портативні батареї', 'power-banks'),
    Category.CHARGERS_CABLES: ('Зарядки та кабелі', 'chargers-cables'),
}

# Order matters: the micro/mini patterns must win over the bare USB one.
CONNECTOR_ALIASES = [
    (re.compile(r'\b(type[\s_-]?c|usb[\s_-]?c)\b', re.IGNORECASE), 'Type-C'),
    (re.compile(r'\blightning\b', re.IGNORECASE), 'Lightning'),
    (re.compile(r'\bmicro[\s_-]?usb\b', re.IGNORECASE), 'Micro-USB'),
    (re.compile(r'\bmini[\s_-]?usb\b', re.IGNORECASE), 'Mini-USB'),
    (re.compile(r'\b(usb[\s_-]?a|usb)\b', re.IGNORECASE), 'USB-A'),
]

_NUMBER_RE = re.compile(r'\d+(?:[.,]\d+)?')
_DIGIT_GAP_RE = re.compile(r'(?<=\d)\s(?=\d{3}\b)')
_BRAND_RE = re.compile(r'([A-Za-zА-Яа-яІіЇїЄєҐґ]+)')


def map_category(code):
    """Return the canonical category id for a supplier code, or None."""
    try:
        return CATEGORY_MAP.get(int(str(code).strip()))
    except (TypeError, ValueError):
        return None


def _first_number(value):
    text = _DIGIT_GAP_RE.sub('', str(value))
    match = _NUMBER_RE.search(text)
    if not match:
        return None
    try:
        return Decimal(match.group(0).replace(',', '.'))
    except InvalidOperation:
        return None


def normalize_capacity(value):
    """'20 000 mAh' → 20000. Returns None when there is no number."""
    number = _first_number(value)
    if number is None:
        return None
    return int(number.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def normalize_cable_length(value):
    """'1,5 м' → '1.5', '1.0m' → '1'."""
    number = _first_number(value)
    if number is None:
        return None
    return format(number.normalize(), 'f')


def normalize_connector(value):
    raw = str(value).strip()
    if not raw:
        return raw
    for pattern, canonical in CONNECTOR_ALIASES:
        if pattern.search(raw):
            return canonical
    return raw.title()


def _apply(value, func):
    if isinstance(value, list):
        return [_apply(v, func) for v in value]
    result = func(value)
    return value if result is None else result


def normalize_characteristics(characteristics):
    """Normalise the characteristic values the storefront filters on."""
    normalized = dict(characteristics)
    if CAPACITY_KEY in normalized:
        normalized[CAPACITY_KEY] = _apply(normalized[CAPACITY_KEY], normalize_capacity)
    if CABLE_LENGTH_KEY in normalized:
        normalized[CABLE_LENGTH_KEY] = _apply(normalized[CABLE_LENGTH_KEY], normalize_cable_length)
    for key in (INPUT_CONNECTOR_KEY, OUTPUT_CONNECTOR_KEY):
        if key in normalized:
            normalized[key] = _apply(normalized[key], normalize_connector)
    return normalized


def extract_brand(name, vendor=None):
    if vendor and vendor.strip():
        return vendor.strip()
    words = (name or '').split()
    match = _BRAND_RE.match(words[0]) if words else None
    if match:
        return match.group(1)
    return 'Unknown'


def ensure_canonical_categories():
    for pk, (name, slug) in CANONICAL_CATEGORIES.items():
        Category.objects.update_or_create(id=pk, defaults={'name': name, 'slug': slug})
