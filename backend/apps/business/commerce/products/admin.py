"""
Products Admin Configuration for Keszler Storefront
===================================================
"""

from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        'name', 'sku', 'price', 'stock_quantity',
        'weight', 'requires_shipping', 'shipping_free', 'is_active'
    ]
    list_filter = ['is_active', 'requires_shipping', 'shipping_free']
    search_fields = ['name', 'sku']
    readonly_fields = ['id', 'created_at', 'updated_at']
