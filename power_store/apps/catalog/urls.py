from django.urls import path
from . import views

urlpatterns = [
    path('products', views.ProductListView.as_view(), name='product-list'),
    path('products/cleanup', views.CleanupView.as_view(), name='product-cleanup'),
    path('products/update-categories', views.update_categories, name='product-update-categories'),
    path('products/<uuid:product_id>', views.ProductDetailView.as_view(), name='product-detail'),
    path('categories', views.categories, name='category-list'),
    path('brands', views.brands, name='brand-list'),
    path('filter-options', views.filter_options, name='filter-options'),
    path('import', views.ImportView.as_view(), name='feed-import'),
]
