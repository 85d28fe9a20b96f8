import uuid
import logging
from django.conf import settings

from apps.catalog.models import Product
from .exceptions import ProductReferenceError

logger = logging.getLogger(__name__)

UNRESOLVABLE = 'Product id cannot be resolved'
NOT_FOUND = 'Product not found'


def _is_plain_digits(value):
    # str.isdigit() also accepts superscripts and other scripts int() rejects.
    return value.isascii() and value.isdecimal()


def resolve_reference(reference):
    """
    Map a cart reference to a product UUID string.

    UUID strings are used as-is; integers (or digit strings) go through the
    LEGACY_PRODUCT_IDS table. Returns None for anything else.
    """
    if reference is None or isinstance(reference, bool):
        return None
    if isinstance(reference, int) or (isinstance(reference, str) and _is_plain_digits(reference.strip())):
        mapped = settings.LEGACY_PRODUCT_IDS.get(int(reference)) or settings.LEGACY_PRODUCT_IDS.get(str(reference).strip())
        return str(mapped) if mapped else None
    try:
        return str(uuid.UUID(str(reference).strip()))
    except ValueError:
        return None


def resolve_lines(items):
    """
    Resolve and verify every line before anything is written.

    Returns one product UUID string per line, or raises ProductReferenceError
    for the first line that cannot be used.
    """
    resolved = []
    for index, item in enumerate(items):
        product_id = resolve_reference(item.get('id'))
        if product_id is None:
            raise ProductReferenceError(index, item.get('name'), item.get('id'), UNRESOLVABLE)
        resolved.append(product_id)

    existing = {str(pk) for pk in Product.objects.filter(id__in=resolved).values_list('id', flat=True)}
    for index, product_id in enumerate(resolved):
        if product_id not in existing:
            raise ProductReferenceError(index, items[index].get('name'), items[index].get('id'), NOT_FOUND)

    logger.info("PRODUCTS — %d cart lines resolved", len(resolved))
    return resolved


def resolve_lines_lenient(items):
    """Like resolve_lines, but unusable lines map to None instead of raising."""
    candidates = [resolve_reference(item.get('id')) for item in items]
    existing = {
        str(pk) for pk in
        Product.objects.filter(id__in=[c for c in candidates if c]).values_list('id', flat=True)
    }
    resolved = []
    for item, product_id in zip(items, candidates):
        if product_id not in existing:
            logger.warning("PRODUCTS — no product for %r (%s), keeping line without product",
                           item.get('id'), item.get('name'))
            product_id = None
        resolved.append(product_id)
    return resolved
