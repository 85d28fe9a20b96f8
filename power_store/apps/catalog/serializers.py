from rest_framework import serializers

from .models import Category, Product


class ProductSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True,
    )

    class Meta:
        model = Product
        fields = (
            'id', 'external_id', 'name', 'description', 'price', 'quantity', 'brand',
            'category', 'image_url', 'images', 'vendor_code', 'characteristics', 'is_active',
        )
        read_only_fields = ('id',)

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price must not be negative')
        return value

    def validate_characteristics(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Characteristics must be an object')
        return value
