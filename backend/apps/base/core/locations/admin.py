"""
Locations Admin Configuration for Keszler Storefront
====================================================
"""

from django.contrib import admin
from .models import Country


@admin.register(Country)
class CountryAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'code_alpha3', 'is_shipping_available', 'order', 'is_active']
    list_filter = ['is_active', 'is_shipping_available']
    search_fields = ['name', 'code']
    ordering = ['order', 'name']
