import json
import logging
import threading

from ..models import CAPACITY_KEY, INPUT_CONNECTOR_KEY, OUTPUT_CONNECTOR_KEY, CABLE_LENGTH_KEY

logger = logging.getLogger(__name__)

PAGE_SIZE = 50

# Storefront slugs the category links use, mapped to canonical category ids.
CATEGORY_SLUGS = {
    'power-banks': '1001',
    'powerbanks': '1001',
    'chargers-cables': '1002',
    'cables': '1002',
}


def _to_float(value):
    if value is None or value == '':
        return None
    try:
        return float(str(value).replace(',', '.'))
    except (TypeError, ValueError):
        return None


def _split(value):
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [v.strip() for v in str(value).split(',') if v.strip()]


def _values(value):
    if isinstance(value, list):
        return [str(v) for v in value]
    if value is None or value == '':
        return []
    return [str(value)]


class FilterParams:
    """The filter criteria the storefront can combine. All criteria are ANDed."""

    def __init__(self, category_ids=None, brand_ids=None, search='', in_stock_only=False,
                 min_price=None, max_price=None, min_capacity=None, max_capacity=None,
                 input_connector='', output_connector='', cable_length=''):
        self.category_ids = [str(c) for c in (category_ids or [])]
        self.brand_ids = list(brand_ids or [])
        self.search = (search or '').strip()
        self.in_stock_only = bool(in_stock_only)
        self.min_price = min_price
        self.max_price = max_price
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.input_connector = input_connector or ''
        self.output_connector = output_connector or ''
        self.cable_length = cable_length or ''

    @classmethod
    def from_query_params(cls, params):
        category_ids = _split(params.get('categoryIds'))
        category = params.get('category')
        if category:
            category_ids.append(CATEGORY_SLUGS.get(category, category))
        return cls(
            category_ids=category_ids,
            brand_ids=_split(params.get('brandIds')),
            search=params.get('search', ''),
            in_stock_only=str(params.get('inStockOnly', '')).lower() in ('1', 'true', 'yes'),
            min_price=_to_float(params.get('minPrice')),
            max_price=_to_float(params.get('maxPrice')),
            min_capacity=_to_float(params.get('minCapacity')),
            max_capacity=_to_float(params.get('maxCapacity')),
            input_connector=params.get('inputConnector', ''),
            output_connector=params.get('outputConnector', ''),
            cable_length=params.get('cableLength', ''),
        )

    def as_dict(self):
        return {
            'categoryIds': self.category_ids,
            'brandIds': self.brand_ids,
            'search': self.search,
            'inStockOnly': self.in_stock_only,
            'minPrice': self.min_price,
            'maxPrice': self.max_price,
            'minCapacity': self.min_capacity,
            'maxCapacity': self.max_capacity,
            'inputConnector': self.input_connector,
            'outputConnector': self.output_connector,
            'cableLength': self.cable_length,
        }

    def cache_key(self):
        return json.dumps(self.as_dict(), sort_keys=True, ensure_ascii=False)

    @property
    def capacity_bounded(self):
        return self.min_capacity is not None or self.max_capacity is not None


def product_capacity(product):
    values = _values((product.get('characteristics') or {}).get(CAPACITY_KEY))
    for value in values:
        number = _to_float(value)
        if number is not None:
            return number
    return 0


def matches(product, filters):
    """True when a product dict satisfies every active criterion."""
    if filters.category_ids and str(product.get('categoryId', '')) not in filters.category_ids:
        return False

    if filters.brand_ids:
        brands = {b.lower() for b in filters.brand_ids}
        if (product.get('brand') or '').lower() not in brands:
            return False

    if filters.in_stock_only and not product.get('inStock'):
        return False

    price = _to_float(product.get('price'))
    if filters.min_price is not None and (price is None or price < filters.min_price):
        return False
    if filters.max_price is not None and (price is None or price > filters.max_price):
        return False

    if filters.capacity_bounded:
        capacity = product_capacity(product)
        if capacity <= 0:
            return False
        if filters.min_capacity is not None and capacity < filters.min_capacity:
            return False
        if filters.max_capacity is not None and capacity > filters.max_capacity:
            return False

    characteristics = product.get('characteristics') or {}
    if filters.input_connector and filters.input_connector not in _values(characteristics.get(INPUT_CONNECTOR_KEY)):
        return False
    if filters.output_connector and filters.output_connector not in _values(characteristics.get(OUTPUT_CONNECTOR_KEY)):
        return False
    if filters.cable_length and filters.cable_length not in _values(characteristics.get(CABLE_LENGTH_KEY)):
        return False

    if filters.search:
        needle = filters.search.lower()
        haystack = ' '.join([
            product.get('name') or '',
            product.get('description') or '',
            product.get('brand') or '',
        ]).lower()
        if needle not in haystack:
            return False

    return True


def paginate(products, page=1, limit=PAGE_SIZE):
    page = max(int(page or 1), 1)
    limit = max(int(limit or PAGE_SIZE), 1)
    start = (page - 1) * limit
    return {
        'products': products[start:start + limit],
        'total': len(products),
        'page': page,
        'limit': limit,
        'hasMore': start + limit < len(products),
    }


class ProductFilterStore:
    """
    Holds the full product list and the currently active filter.

    Re-applying the filter that produced the current result returns the
    same list without recomputing it.
    """

    def __init__(self, products=None, page_size=PAGE_SIZE):
        self.page_size = page_size
        self.version = None
        self.products = []
        self.filtered = []
        self.active_filters = FilterParams()
        self.last_filter_key = None
        self.current_page = 1
        self._lock = threading.Lock()
        if products is not None:
            self.set_products(products)

    def set_products(self, products, version=None):
        with self._lock:
            self.products = list(products)
            self.version = version
            self.filtered = list(self.products)
            self.active_filters = FilterParams()
            self.last_filter_key = None
            self.current_page = 1
        logger.debug("FILTER — store loaded with %d products", len(self.products))

    def apply_filters(self, filters):
        key = filters.cache_key()
        with self._lock:
            if key == self.last_filter_key:
                return self.filtered
            self.filtered = [p for p in self.products if matches(p, filters)]
            self.active_filters = filters
            self.last_filter_key = key
            self.current_page = 1
            logger.debug("FILTER — %d of %d products match", len(self.filtered), len(self.products))
            return self.filtered

    def clear_filters(self):
        return self.apply_filters(FilterParams())

    def visible_products(self):
        return self.filtered[:self.current_page * self.page_size]

    @property
    def has_more(self):
        return self.current_page * self.page_size < len(self.filtered)

    def load_more(self):
        if self.has_more:
            self.current_page += 1
        return self.visible_products()

    def search(self, filters, page=1, limit=PAGE_SIZE):
        """Apply the filter (memoised) and return one page of the result."""
        results = self.apply_filters(filters)
        return paginate(results, page, limit)
