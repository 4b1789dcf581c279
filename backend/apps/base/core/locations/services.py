"""
Location Services for Keszler Storefront
========================================
Country lookups shared by the shipping estimate and the context preset.
"""

from __future__ import annotations

from typing import Optional
from django.core.exceptions import ValidationError
import logging

from .models import Country

logger = logging.getLogger(__name__)


class CountryResolver:
    """
    Resolve a country record by identifier or ISO code.

    The identifier wins when both are given; an identifier that matches nothing
    falls through to the ISO lookup.
    """

    def resolve(self, country_id=None, iso: Optional[str] = None) -> Optional[Country]:
        country = None

        if country_id:
            country = self.by_id(country_id)

        if country is None and iso:
            country = self.by_iso(iso)

        return country

    def by_id(self, country_id) -> Optional[Country]:
        try:
            return Country.objects.filter(pk=country_id).first()
        except (ValidationError, ValueError):
            # Malformed UUID in configuration
            logger.warning(f"Ignoring malformed country id: {country_id!r}")
            return None

    def by_iso(self, iso: str) -> Optional[Country]:
        iso = (iso or '').strip().upper()
        if not iso:
            return None
        return Country.objects.filter(code=iso).first()

    def destinations(self, shipping_only: bool = False):
        """Active countries in display order."""
        countries = Country.objects.filter(is_active=True)
        if shipping_only:
            countries = countries.filter(is_shipping_available=True)
        return countries.order_by('order', 'name')
