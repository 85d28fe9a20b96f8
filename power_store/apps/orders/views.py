import logging
from django.db import DatabaseError
from django.db.models import Count, Sum
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.decorators import api_view

from .models import Order
from .serializers import OrderCreateSerializer, OrderSerializer, StatusEmailSerializer
from .services.cart_clearing import check_cart_clearing
from .services.exceptions import (
    OrderValidationError, ProductReferenceError, InvalidSignatureError,
    PaymentNotSuccessfulError, InvalidStatusTransition,
)
from .services.order_creator import create_order, create_payment_session
from .services.order_status import find_order, change_status_and_notify
from .services.payment_webhook import handle_callback

logger = logging.getLogger(__name__)


def _validation_error(serializer):
    return Response({'success': False, 'error': 'Validation failed', 'details': serializer.errors}, status=400)


# ─────────────────────────────────────────
#  Checkout
# ─────────────────────────────────────────
class OrderCreateView(APIView):

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            logger.info("ORDER — rejected: %s", serializer.errors)
            return _validation_error(serializer)

        data = serializer.validated_data
        try:
            result = create_order(data['customerData'], data['items'], data['totalAmount'])
        except ProductReferenceError as e:
            logger.warning("ORDER — %s", e)
            return Response({'success': False, 'error': str(e), 'details': e.as_details()}, status=400)
        except DatabaseError as e:
            logger.exception("ORDER — database error: %s", e)
            return Response({'success': False, 'error': 'Failed to create order'}, status=500)

        return Response(result.as_dict())


class PaymentSessionView(APIView):

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return _validation_error(serializer)

        data = serializer.validated_data
        try:
            session, payment = create_payment_session(data['customerData'], data['items'], data['totalAmount'])
        except DatabaseError as e:
            logger.exception("LIQPAY — could not store session: %s", e)
            return Response({'success': False, 'error': 'Failed to create payment session'}, status=500)

        return Response({'success': True, 'orderId': session.order_reference, **payment})


class LiqPayCallbackView(APIView):

    def post(self, request):
        try:
            result = handle_callback(request.data.get('data'), request.data.get('signature'))
        except OrderValidationError as e:
            return Response({'success': False, 'error': e.message}, status=400)
        except InvalidSignatureError as e:
            return Response({'success': False, 'error': str(e)}, status=400)
        except PaymentNotSuccessfulError as e:
            logger.info("LIQPAY — payment %s not successful: %s", e.order_reference, e.status)
            return Response({'success': False, 'error': 'Payment not successful', 'status': e.status}, status=400)
        except DatabaseError as e:
            logger.exception("LIQPAY — database error: %s", e)
            return Response({'success': False, 'error': 'Failed to process callback'}, status=500)

        return Response(result.as_dict())


@api_view(['GET'])
def cart_clearing(request):
    reference = request.query_params.get('orderId')
    if not reference:
        return Response({'success': False, 'error': 'orderId is required'}, status=400)
    return Response({'success': True, **check_cart_clearing(reference)})


# ─────────────────────────────────────────
#  Order management
# ─────────────────────────────────────────
@api_view(['POST'])
def send_status_email_view(request):
    serializer = StatusEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return _validation_error(serializer)

    order = find_order(serializer.validated_data['orderId'])
    if not order:
        return Response({'success': False, 'error': 'Order not found'}, status=404)
    return _apply_status(order, serializer.validated_data['status'], notify=True)


def _apply_status(order, status, notify):
    try:
        order, email = change_status_and_notify(order, status, notify=notify)
    except InvalidStatusTransition as e:
        return Response({'success': False, 'error': str(e)}, status=400)

    if email is not None and not email.success:
        return Response({
            'success': False,
            'error': 'Status updated but email failed: {}'.format(email.error),
            'status': order.status,
        }, status=500)

    return Response({
        'success': True,
        'orderId': str(order.id),
        'status': order.status,
        'emailSent': bool(email and email.success),
        'messageId': email.message_id if email else None,
    })


class OrderListView(APIView):

    def get(self, request):
        orders = Order.objects.prefetch_related('items__product')
        status = request.query_params.get('status')
        if status:
            orders = orders.filter(status=status)
        return Response({'success': True, 'orders': OrderSerializer(orders[:200], many=True).data})


class OrderDetailView(APIView):

    def get(self, request, reference):
        order = find_order(reference)
        if not order:
            return Response({'success': False, 'error': 'Order not found'}, status=404)
        return Response({'success': True, 'order': OrderSerializer(order).data})


class OrderStatusView(APIView):

    def patch(self, request, order_id):
        order = Order.objects.filter(id=order_id).first()
        if not order:
            return Response({'success': False, 'error': 'Order not found'}, status=404)
        status = request.data.get('status')
        if not status:
            return Response({'success': False, 'error': 'status is required'}, status=400)
        notify = request.data.get('notify', True)
        if isinstance(notify, str):
            notify = notify.lower() not in ('0', 'false', 'no')
        return _apply_status(order, status, notify=bool(notify))


@api_view(['GET'])
def stats(request):
    counts = dict(Order.objects.values_list('status').annotate(n=Count('id')).order_by())
    revenue = Order.objects.exclude(status=Order.Status.CANCELLED).aggregate(total=Sum('total_amount'))['total']
    return Response({
        'success': True,
        'totalOrders': sum(counts.values()),
        'byStatus': {status: counts.get(status, 0) for status in Order.Status.values},
        'revenue': float(revenue or 0),
    })
