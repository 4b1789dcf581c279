"""
Sales Channel Admin Configuration for Keszler Storefront
========================================================
"""

from django.contrib import admin
from .models import SalesChannel


@admin.register(SalesChannel)
class SalesChannelAdmin(admin.ModelAdmin):
    list_display = [
        'name', 'currency', 'language', 'payment_method',
        'default_country', 'default_shipping_method', 'is_active'
    ]
    list_filter = ['is_active', 'currency']
    search_fields = ['name']
    raw_id_fields = ['default_country', 'default_shipping_method']
    readonly_fields = ['id', 'created_at', 'updated_at']
