"""
Shipping Admin Configuration for Keszler Storefront
===================================================
"""

from django.contrib import admin
from .models import AvailabilityRule, ShippingMethod, ShippingRate


class ShippingRateInline(admin.TabularInline):
    model = ShippingRate
    extra = 1
    filter_horizontal = ['countries']


@admin.register(AvailabilityRule)
class AvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ['name', 'min_cart_total', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name']
    filter_horizontal = ['countries']


@admin.register(ShippingMethod)
class ShippingMethodAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'position', 'availability_rule', 'is_active']
    list_filter = ['is_active', 'sales_channels']
    search_fields = ['name', 'code']
    filter_horizontal = ['sales_channels']
    ordering = ['position', 'name']
    inlines = [ShippingRateInline]
