"""
Location URLs for Keszler Storefront
====================================
"""

from django.urls import path
from . import views

app_name = 'locations'

urlpatterns = [
    path('countries/', views.CountryListView.as_view(), name='country-list'),
    path('countries/<str:code>/', views.CountryDetailView.as_view(), name='country-detail'),
]
