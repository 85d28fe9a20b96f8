import json
import hashlib
import logging
import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
CITY_LIMIT = 20


class DeliveryServiceError(Exception):
    pass


def format_city(city):
    """'<type> <city>, <area>', without the type when it repeats the name."""
    kind = city.get('SettlementTypeDescription') or ''
    name = city.get('Description') or ''
    area = city.get('AreaDescription') or ''
    if kind and kind != name:
        return '{} {}, {}'.format(kind, name, area)
    return '{}, {}'.format(name, area)


def format_warehouse(warehouse):
    return '№{}: {}'.format(warehouse.get('Number', ''), warehouse.get('ShortAddress') or warehouse.get('Description', ''))


class NovaPoshtaClient:
    """Address lookups against the Nova Poshta JSON API, cached per query."""

    def __init__(self, api_key=None, api_url=None, timeout=10, cache_ttl=None):
        self.api_key = api_key if api_key is not None else settings.NOVA_POSHTA_API_KEY
        self.api_url = api_url or settings.NOVA_POSHTA_API_URL
        self.timeout = timeout
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.DELIVERY_CACHE_TTL

    def _call(self, model_name, method, properties):
        key = 'novaposhta:{}'.format(hashlib.md5(
            json.dumps([model_name, method, properties], sort_keys=True).encode('utf-8')
        ).hexdigest())
        cached = cache.get(key)
        if cached is not None:
            logger.debug("DELIVERY — %s.%s served from cache", model_name, method)
            return cached

        try:
            response = requests.post(
                self.api_url,
                json={
                    'apiKey': self.api_key,
                    'modelName': model_name,
                    'calledMethod': method,
                    'methodProperties': properties,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("DELIVERY — %s.%s failed: %s", model_name, method, e)
            raise DeliveryServiceError("Delivery service is unavailable") from e

        if not body.get('success'):
            logger.error("DELIVERY — %s.%s errors: %s", model_name, method, body.get('errors'))
            raise DeliveryServiceError('; '.join(body.get('errors') or []) or "Delivery service error")

        data = body.get('data') or []
        cache.set(key, data, self.cache_ttl)
        return data

    def search_cities(self, query, limit=CITY_LIMIT):
        query = (query or '').strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        cities = self._call('Address', 'getCities', {'FindByString': query, 'Limit': str(limit)})
        return [
            {'ref': city.get('Ref'), 'name': city.get('Description'), 'label': format_city(city)}
            for city in cities[:limit]
        ]

    def warehouses(self, city_ref, warehouse_type=None):
        if not city_ref:
            return []
        properties = {'CityRef': city_ref}
        if warehouse_type:
            properties['TypeOfWarehouseRef'] = warehouse_type
        return [
            {
                'ref': w.get('Ref'),
                'number': w.get('Number'),
                'description': w.get('Description'),
                'label': format_warehouse(w),
            }
            for w in self._call('Address', 'getWarehouses', properties)
        ]
