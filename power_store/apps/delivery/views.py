import logging
from rest_framework.response import Response
from rest_framework.decorators import api_view

from .services.nova_poshta import NovaPoshtaClient, DeliveryServiceError

logger = logging.getLogger(__name__)


@api_view(['GET'])
def cities(request):
    try:
        results = NovaPoshtaClient().search_cities(request.query_params.get('q', ''))
    except DeliveryServiceError as e:
        return Response({'success': False, 'error': str(e)}, status=502)
    return Response({'success': True, 'cities': results})


@api_view(['GET'])
def warehouses(request):
    city_ref = request.query_params.get('cityRef')
    if not city_ref:
        return Response({'success': False, 'error': 'cityRef is required'}, status=400)
    try:
        results = NovaPoshtaClient().warehouses(city_ref, request.query_params.get('type'))
    except DeliveryServiceError as e:
        return Response({'success': False, 'error': str(e)}, status=502)
    return Response({'success': True, 'warehouses': results})
