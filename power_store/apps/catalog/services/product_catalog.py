import uuid
import logging
import threading
from django.conf import settings
from django.core.cache import cache

from ..models import Product
from .product_filter import ProductFilterStore

logger = logging.getLogger(__name__)

CACHE_KEY = 'catalog_products_v1'

_store = None
_store_lock = threading.Lock()


def serialize_product(product):
    """Shape a Product the way the storefront consumes it."""
    return {
        'id': str(product.id),
        'external_id': product.external_id,
        'name': product.name,
        'description': product.description,
        'price': float(product.price),
        'image': product.image_url,
        'images': product.images or ([product.image_url] if product.image_url else []),
        'brand': product.brand,
        'vendorCode': product.vendor_code,
        'category': product.category.name if product.category_id else '',
        'categoryId': str(product.category_id) if product.category_id else '',
        'inStock': product.in_stock,
        'stockQuantity': product.quantity,
        'characteristics': product.characteristics or {},
        'created_at': product.created_at.isoformat() if product.created_at else None,
        'updated_at': product.updated_at.isoformat() if product.updated_at else None,
    }


def get_snapshot():
    """Return the cached {'version', 'products'} snapshot, building it on a miss."""
    cached = cache.get(CACHE_KEY)
    if cached:
        logger.debug("CATALOG — snapshot loaded from cache")
        return cached
    logger.info("CATALOG — cache miss, loading products...")
    products = [
        serialize_product(p)
        for p in Product.objects.filter(is_active=True).select_related('category')
    ]
    snapshot = {'version': uuid.uuid4().hex, 'products': products}
    cache.set(CACHE_KEY, snapshot, settings.CATALOG_CACHE_TTL)
    logger.info("CATALOG — %d products cached for %ds", len(products), settings.CATALOG_CACHE_TTL)
    return snapshot


def invalidate_catalog():
    cache.delete(CACHE_KEY)


def filter_store():
    """Process-wide filter store, reloaded whenever the snapshot changes."""
    global _store
    snapshot = get_snapshot()
    with _store_lock:
        if _store is None:
            _store = ProductFilterStore()
        if _store.version != snapshot['version']:
            _store.set_products(snapshot['products'], version=snapshot['version'])
        return _store
