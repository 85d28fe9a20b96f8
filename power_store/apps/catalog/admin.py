from django.contrib import admin
from .models import Category, Product, ImportLog


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'slug', 'parent')
    search_fields = ('name', 'slug')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'brand', 'category', 'price', 'quantity', 'is_active', 'updated_at')
    list_filter = ('category', 'is_active', 'brand')
    search_fields = ('name', 'external_id', 'vendor_code')
    readonly_fields = ('id', 'created_at', 'updated_at')


@admin.register(ImportLog)
class ImportLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'success', 'imported', 'updated', 'deleted', 'skipped', 'errors')
    list_filter = ('success',)
    readonly_fields = (
        'success', 'imported', 'updated', 'deleted', 'skipped', 'errors',
        'total_processed', 'error_message', 'created_at',
    )
