from django.urls import path
from . import views

urlpatterns = [
    path('cities', views.cities, name='delivery-cities'),
    path('warehouses', views.warehouses, name='delivery-warehouses'),
]
