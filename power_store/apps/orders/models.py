import uuid
import random
from django.db import models
from django.utils import timezone


def generate_order_number():
    """ORD-YYYYMMDD-HHMMSS-XXXX, local time plus a random four-digit suffix."""
    now = timezone.localtime()
    return 'ORD-{}-{:04d}'.format(now.strftime('%Y%m%d-%H%M%S'), random.randint(0, 9999))


class Order(models.Model):
    """Customer purchase orders."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        PAID = 'paid', 'Paid'
        SHIPPED = 'shipped', 'Shipped'
        DELIVERED = 'delivered', 'Delivered'
        CANCELLED = 'cancelled', 'Cancelled'

    class PaymentMethod(models.TextChoices):
        ONLINE = 'online', 'Online'
        CASH_ON_DELIVERY = 'cash_on_delivery', 'Cash on delivery'

    # Delivered and cancelled are terminal.
    TRANSITIONS = {
        'pending': ('confirmed', 'paid', 'cancelled'),
        'confirmed': ('paid', 'shipped', 'cancelled'),
        'paid': ('shipped', 'cancelled'),
        'shipped': ('delivered', 'cancelled'),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, default=generate_order_number)
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=32, blank=True, default='')
    city = models.CharField(max_length=255, blank=True, default='')
    branch = models.CharField(max_length=255, blank=True, default='')
    customer_address = models.TextField(blank=True, default='')
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.ONLINE)
    payment_reference = models.CharField(max_length=64, unique=True, null=True, blank=True)
    payment_status = models.CharField(max_length=32, blank=True, default='')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders_order'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='orders_order_status_idx'),
            models.Index(fields=['created_at'], name='orders_order_created_at_idx'),
            models.Index(fields=['customer_email'], name='orders_order_email_idx'),
        ]

    def __str__(self):
        return "Order {} - {}".format(self.order_number, self.customer_name)

    def can_transition_to(self, status):
        return str(status) in self.TRANSITIONS.get(str(self.status), ())

    def items_total(self):
        return sum((item.price for item in self.items.all()), 0)


class OrderItem(models.Model):
    """Individual line items inside an order, priced at order time."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items',
    )
    product_name = models.CharField(max_length=500)
    product_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'orders_order_item'

    def __str__(self):
        return "{} x{}".format(self.product_name, self.quantity)


class PaymentSession(models.Model):
    """Snapshot of order intent stored before redirecting to the payment gateway."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'

    order_reference = models.CharField(max_length=64, unique=True)
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='payment_sessions')
    customer_data = models.JSONField(default=dict)
    items = models.JSONField(default=list)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders_payment_session'
        ordering = ['-created_at']

    def __str__(self):
        return "{} ({})".format(self.order_reference, self.status)


class CartClearingEvent(models.Model):
    """Tells the storefront it may empty the local cart for an order."""

    order_reference = models.CharField(max_length=64, unique=True)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, null=True, blank=True, related_name='cart_clearing_events')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'orders_cart_clearing_event'
        ordering = ['-created_at']

    def __str__(self):
        return self.order_reference
