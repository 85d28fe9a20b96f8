from django.contrib import admin, messages

from .models import Order, OrderItem, PaymentSession, CartClearingEvent
from .services.notifications import send_status_email


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'product_name', 'product_price', 'quantity', 'price')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'customer_name', 'total_amount', 'payment_method', 'status', 'created_at')
    list_filter = ('status', 'payment_method', 'created_at')
    search_fields = ('order_number', 'customer_name', 'customer_email', 'customer_phone')
    readonly_fields = ('id', 'order_number', 'payment_reference', 'created_at', 'updated_at')
    inlines = [OrderItemInline]
    actions = ['resend_status_email']

    @admin.action(description='Re-send status email')
    def resend_status_email(self, request, queryset):
        sent = 0
        for order in queryset:
            result = send_status_email(order)
            if result.success:
                sent += 1
            else:
                self.message_user(request, '{}: {}'.format(order.order_number, result.error), messages.ERROR)
        if sent:
            self.message_user(request, 'Sent {} status email(s).'.format(sent), messages.SUCCESS)


@admin.register(PaymentSession)
class PaymentSessionAdmin(admin.ModelAdmin):
    list_display = ('order_reference', 'order', 'total_amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_reference',)


@admin.register(CartClearingEvent)
class CartClearingEventAdmin(admin.ModelAdmin):
    list_display = ('order_reference', 'order', 'created_at')
    search_fields = ('order_reference',)
