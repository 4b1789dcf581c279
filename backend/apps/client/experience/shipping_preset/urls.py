"""
Shipping Preset URLs for Keszler Storefront
===========================================
"""

from django.urls import path
from . import views

app_name = 'shipping_preset'

urlpatterns = [
    path('estimate', views.ShippingEstimateView.as_view(), name='estimate'),
    path('estimate/', views.ShippingEstimateView.as_view()),
]
