import logging
from django.db.models import Count
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.decorators import api_view

from .models import Category, Product, ImportLog, INPUT_CONNECTOR_KEY, OUTPUT_CONNECTOR_KEY, CABLE_LENGTH_KEY
from .serializers import ProductSerializer
from .services.feed_importer import FeedImporter
from .services.maintenance import preview_fake_products, cleanup_fake_products, remap_raw_categories
from .services.product_catalog import filter_store, serialize_product, invalidate_catalog
from .services.product_filter import FilterParams, PAGE_SIZE

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


def _positive_int(value, default, upper=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    return min(number, upper) if upper else number


# ─────────────────────────────────────────
#  Product listing
# ─────────────────────────────────────────
class ProductListView(APIView):

    def get(self, request):
        filters = FilterParams.from_query_params(request.query_params)
        page = _positive_int(request.query_params.get('page'), 1)
        limit = _positive_int(request.query_params.get('limit'), PAGE_SIZE, MAX_PAGE_SIZE)

        logger.info("PRODUCTS — filters: %s | page %d, limit %d", filters.cache_key(), page, limit)
        result = filter_store().search(filters, page=page, limit=limit)
        return Response({'success': True, **result})

    def post(self, request):
        serializer = ProductSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'success': False, 'error': 'Invalid product data', 'details': serializer.errors}, status=400)
        product = serializer.save()
        invalidate_catalog()
        logger.info("PRODUCTS — created %s (%s)", product.id, product.name)
        return Response({'success': True, 'product': serialize_product(product)}, status=201)


class ProductDetailView(APIView):

    def get(self, request, product_id):
        product = Product.objects.select_related('category').filter(id=product_id).first()
        if not product:
            return Response({'success': False, 'error': 'Product not found'}, status=404)
        return Response({'success': True, 'product': serialize_product(product)})


# ─────────────────────────────────────────
#  Catalogue helpers
# ─────────────────────────────────────────
@api_view(['GET'])
def categories(request):
    rows = Category.objects.annotate(product_count=Count('products')).order_by('id')
    return Response({
        'success': True,
        'categories': [
            {
                'id': str(c.id),
                'name': c.name,
                'slug': c.slug,
                'parentId': str(c.parent_id) if c.parent_id else None,
                'productCount': c.product_count,
            }
            for c in rows
        ],
    })


@api_view(['GET'])
def brands(request):
    names = (
        Product.objects.filter(is_active=True)
        .exclude(brand='')
        .values_list('brand', flat=True)
        .distinct()
    )
    return Response({'success': True, 'brands': sorted(set(names), key=str.lower)})


def _collect(values, into):
    if isinstance(values, list):
        for v in values:
            _collect(v, into)
    elif values not in (None, ''):
        into.add(str(values))


def _length_key(value):
    try:
        return (0, float(value))
    except ValueError:
        return (1, value)


@api_view(['GET'])
def filter_options(request):
    category_id = request.query_params.get('categoryId')
    if not category_id:
        return Response({'success': False, 'error': 'categoryId is required'}, status=400)
    try:
        category_id = int(category_id)
    except ValueError:
        return Response({'success': False, 'error': 'categoryId must be an integer'}, status=400)

    inputs, outputs, lengths = set(), set(), set()
    rows = Product.objects.filter(category_id=category_id, is_active=True).values_list('characteristics', flat=True)
    for characteristics in rows:
        characteristics = characteristics or {}
        _collect(characteristics.get(INPUT_CONNECTOR_KEY), inputs)
        _collect(characteristics.get(OUTPUT_CONNECTOR_KEY), outputs)
        _collect(characteristics.get(CABLE_LENGTH_KEY), lengths)

    return Response({
        'success': True,
        'inputConnectors': sorted(inputs),
        'outputConnectors': sorted(outputs),
        'cableLengths': sorted(lengths, key=_length_key),
    })


# ─────────────────────────────────────────
#  Feed import
# ─────────────────────────────────────────
class ImportView(APIView):

    def post(self, request):
        # Always the configured feed; only the management command takes --url.
        result = FeedImporter().run()
        if not result.success:
            return Response({'success': False, 'error': result.error}, status=500)
        return Response({
            'success': True,
            'message': 'Import completed',
            'stats': result.as_dict(),
        })

    def get(self, request):
        products = Product.objects.all()
        logs = ImportLog.objects.all()[:10]
        return Response({
            'success': True,
            'stats': {
                'total': products.count(),
                'withExternalId': products.filter(external_id__isnull=False).count(),
                'inStock': products.filter(quantity__gt=0).count(),
                'withImages': products.exclude(image_url='').count(),
            },
            'recentImports': [
                {
                    'success': log.success,
                    'imported': log.imported,
                    'updated': log.updated,
                    'deleted': log.deleted,
                    'skipped': log.skipped,
                    'errors': log.errors,
                    'total': log.total_processed,
                    'error': log.error_message,
                    'createdAt': log.created_at.isoformat(),
                }
                for log in logs
            ],
        })


class CleanupView(APIView):

    def get(self, request):
        candidates = preview_fake_products()
        return Response({
            'success': True,
            'count': len(candidates),
            'products': [{**p, 'id': str(p['id'])} for p in candidates],
        })

    def post(self, request):
        deleted = cleanup_fake_products()
        return Response({'success': True, 'deleted': deleted})


@api_view(['POST'])
def update_categories(request):
    result = remap_raw_categories()
    return Response({'success': True, **result})
