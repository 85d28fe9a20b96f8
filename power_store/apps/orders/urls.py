from django.urls import path
from . import views

urlpatterns = [
    path('order/create', views.OrderCreateView.as_view(), name='order-create'),
    path('order/<str:reference>', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders', views.OrderListView.as_view(), name='order-list'),
    path('orders/<uuid:order_id>/status', views.OrderStatusView.as_view(), name='order-status'),
    path('payment/liqpay-session', views.PaymentSessionView.as_view(), name='liqpay-session'),
    path('payment/liqpay-callback', views.LiqPayCallbackView.as_view(), name='liqpay-callback'),
    path('check-cart-clearing', views.cart_clearing, name='check-cart-clearing'),
    path('send-status-email', views.send_status_email_view, name='send-status-email'),
    path('stats', views.stats, name='order-stats'),
]
