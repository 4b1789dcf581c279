"""
Shipping Preset Serializers for Keszler Storefront
==================================================
"""

from rest_framework import serializers


class ShippingEstimateQuerySerializer(serializers.Serializer):
    """Query parameters of the estimate endpoint."""
    countryIso = serializers.CharField(required=False, allow_blank=True, default='')
    zipcode = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_countryIso(self, value):
        return value.strip().upper()

    def validate_zipcode(self, value):
        return value.strip()


class ShippingEstimateResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    countryIso = serializers.CharField(required=False)
    zipcode = serializers.CharField(required=False)
    message = serializers.CharField(required=False)
