"""
Location Serializers for Keszler Storefront
===========================================
"""

from rest_framework import serializers
from .models import Country


class CountrySerializer(serializers.ModelSerializer):
    """Serializer for countries."""

    class Meta:
        model = Country
        fields = [
            'id', 'name', 'code', 'code_alpha3',
            'is_shipping_available'
        ]


class CountryListSerializer(serializers.ModelSerializer):
    """Destination choice; `is_selected` marks the ISO passed as `selected_iso`."""
    is_selected = serializers.SerializerMethodField()

    class Meta:
        model = Country
        fields = ['id', 'name', 'code', 'is_selected']

    def get_is_selected(self, obj) -> bool:
        return obj.code == self.context.get('selected_iso')
