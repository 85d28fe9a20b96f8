import uuid
from django.db import models


# Characteristic keys as they arrive from the supplier feed.
CAPACITY_KEY = 'Ємність акумулятора, mah'
INPUT_CONNECTOR_KEY = 'Вхід (Тип коннектора)'
OUTPUT_CONNECTOR_KEY = 'Вихід (Тип коннектора)'
CABLE_LENGTH_KEY = 'Довжина кабелю, м'


class Category(models.Model):
    """Product categories. Imports collapse supplier categories into two buckets."""

    POWER_BANKS = 1001
    CHARGERS_CABLES = 1002

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True, null=True, blank=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')

    class Meta:
        db_table = 'catalog_category'
        ordering = ['id']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Product(models.Model):
    """Products available for sale, mostly synced from the supplier feed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    external_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    name = models.CharField(max_length=500)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=0)
    brand = models.CharField(max_length=120, blank=True, default='')
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    image_url = models.URLField(max_length=1000, blank=True, default='')
    images = models.JSONField(default=list, blank=True)
    vendor_code = models.CharField(max_length=120, blank=True, default='')
    characteristics = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_product'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['brand'], name='catalog_product_brand_idx'),
            models.Index(fields=['quantity'], name='catalog_product_qty_idx'),
            models.Index(fields=['is_active'], name='catalog_product_active_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def in_stock(self):
        return self.quantity > 0


class ImportLog(models.Model):
    """Outcome of one supplier feed import run."""

    success = models.BooleanField(default=False)
    imported = models.PositiveIntegerField(default=0)
    updated = models.PositiveIntegerField(default=0)
    deleted = models.PositiveIntegerField(default=0)
    skipped = models.PositiveIntegerField(default=0)
    errors = models.PositiveIntegerField(default=0)
    total_processed = models.PositiveIntegerField(default=0)
    error_message = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'catalog_import_log'
        ordering = ['-created_at']

    def __str__(self):
        return "[{}] {}".format(self.created_at, 'ok' if self.success else 'failed')
