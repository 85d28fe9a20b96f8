from rest_framework import serializers

from .models import Order, OrderItem

PAYMENT_METHODS = {
    'online': Order.PaymentMethod.ONLINE,
    'liqpay': Order.PaymentMethod.ONLINE,
    'cash_on_delivery': Order.PaymentMethod.CASH_ON_DELIVERY,
    'cod': Order.PaymentMethod.CASH_ON_DELIVERY,
}


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    firstName = serializers.CharField(required=False, allow_blank=True, max_length=120)
    lastName = serializers.CharField(required=False, allow_blank=True, max_length=120)
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    city = serializers.CharField(required=False, allow_blank=True, max_length=255)
    warehouse = serializers.CharField(required=False, allow_blank=True, max_length=255)
    branch = serializers.CharField(required=False, allow_blank=True, max_length=255)
    address = serializers.CharField(required=False, allow_blank=True)
    paymentMethod = serializers.CharField(required=False, default='online')

    def validate_paymentMethod(self, value):
        method = PAYMENT_METHODS.get(value.strip().lower())
        if method is None:
            raise serializers.ValidationError(
                'Payment method must be one of: {}'.format(', '.join(sorted(PAYMENT_METHODS)))
            )
        return method

    def validate(self, attrs):
        name = (attrs.get('name') or '').strip()
        if not name:
            name = ' '.join(
                part.strip() for part in (attrs.get('firstName'), attrs.get('lastName')) if part and part.strip()
            )
        if not name:
            raise serializers.ValidationError({'name': ['This field is required.']})
        return {
            'name': name,
            'email': attrs['email'],
            'phone': attrs.get('phone', ''),
            'city': attrs.get('city', ''),
            'branch': attrs.get('warehouse') or attrs.get('branch') or '',
            'address': attrs.get('address', ''),
            'payment_method': str(attrs['paymentMethod']),
        }


class CartItemSerializer(serializers.Serializer):
    id = serializers.JSONField()
    name = serializers.CharField(max_length=500)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1)
    image = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_id(self, value):
        if isinstance(value, bool) or not isinstance(value, (str, int)) or value == '':
            raise serializers.ValidationError('Product id must be a string or an integer')
        return value


class OrderCreateSerializer(serializers.Serializer):
    customerData = CustomerSerializer()
    items = CartItemSerializer(many=True, allow_empty=False)
    totalAmount = serializers.FloatField()


class StatusEmailSerializer(serializers.Serializer):
    orderId = serializers.CharField()
    status = serializers.ChoiceField(choices=Order.Status.choices)


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.SerializerMethodField()
    image = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ('id', 'productId', 'product_name', 'product_price', 'quantity', 'price', 'image')

    def get_productId(self, obj):
        return str(obj.product_id) if obj.product_id else None

    def get_image(self, obj):
        return obj.product.image_url if obj.product_id and obj.product else ''


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = (
            'id', 'order_number', 'customer_name', 'customer_email', 'customer_phone',
            'city', 'branch', 'customer_address', 'payment_method', 'payment_status',
            'total_amount', 'status', 'created_at', 'updated_at', 'items',
        )
