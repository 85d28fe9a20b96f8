import logging
from functools import reduce
import operator

from django.db.models import Q

from ..models import Category, Product
from .normalizer import CATEGORY_MAP, ensure_canonical_categories
from .product_catalog import invalidate_catalog

logger = logging.getLogger(__name__)

PLACEHOLDER_WORDS = [
    'test', 'dummy', 'placeholder', 'example', 'sample',
    'тест', 'приклад', 'заглушка', 'образец',
]


def fake_products():
    """Products that did not come from the feed or carry placeholder names."""
    placeholder = reduce(operator.or_, [Q(name__icontains=word) for word in PLACEHOLDER_WORDS])
    return Product.objects.filter(Q(external_id__isnull=True) | Q(external_id='') | placeholder)


def preview_fake_products():
    return list(fake_products().values('id', 'name', 'external_id'))


def cleanup_fake_products():
    _, per_model = fake_products().delete()
    deleted = per_model.get(Product._meta.label, 0)
    logger.info("CLEANUP — deleted %d fake products", deleted)
    if deleted:
        invalidate_catalog()
    return deleted


def remap_raw_categories():
    """Move products still pointing at raw supplier category codes into the canonical buckets."""
    ensure_canonical_categories()
    counts = {}
    for raw_code, canonical in CATEGORY_MAP.items():
        updated = Product.objects.filter(category_id=raw_code).update(category_id=canonical)
        if updated:
            logger.info("CATEGORIES — %d products moved %d → %d", updated, raw_code, canonical)
        counts[str(raw_code)] = updated
    total = sum(counts.values())
    if total:
        invalidate_catalog()
    return {
        'updated': total,
        'byCode': counts,
        'categories': {
            str(c.id): c.products.count()
            for c in Category.objects.filter(id__in=set(CATEGORY_MAP.values()))
        },
    }
