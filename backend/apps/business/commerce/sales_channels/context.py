"""
Sales Channel Context for Keszler Storefront
============================================
Request-scoped pricing context: who buys, through which channel, shipped where.
Contexts are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, FrozenSet, Optional

if TYPE_CHECKING:
    from apps.base.core.locations.models import Country
    from apps.business.partners.shipping.models import ShippingMethod
    from .models import SalesChannel


class ContextOptions:
    """Option keys accepted by SalesChannelContextFactory.create()."""

    CURRENCY = 'currency'
    LANGUAGE = 'language'
    PAYMENT_METHOD = 'payment_method'
    COUNTRY_ID = 'country_id'
    SHIPPING_METHOD_ID = 'shipping_method_id'


@dataclass(frozen=True)
class Address:
    """Postal address used to derive a shipping location."""

    id: str
    country: 'Country'
    zipcode: str
    first_name: str = ''
    last_name: str = ''
    city: str = ''
    street: str = ''

    @property
    def country_id(self):
        return self.country.pk


@dataclass(frozen=True)
class ShippingLocation:
    """Destination of a delivery: always a country, sometimes a full address."""

    country: Optional['Country']
    address: Optional[Address] = None

    @classmethod
    def from_address(cls, address: Address) -> 'ShippingLocation':
        return cls(country=address.country, address=address)

    @classmethod
    def from_country(cls, country: Optional['Country']) -> 'ShippingLocation':
        return cls(country=country)

    @property
    def country_iso(self) -> str:
        if self.country is None:
            return ''
        return (self.country.code or '').upper()

    @property
    def zipcode(self) -> Optional[str]:
        return self.address.zipcode if self.address else None


@dataclass
class SalesChannelContext:
    """
    Pricing context for one storefront visitor (or one throwaway calculation).

    rule_ids holds the ids of the availability rules that currently match; the
    cart service reloads it on every recalculation.
    """

    token: str
    sales_channel: 'SalesChannel'
    currency: str
    language: str
    payment_method: str
    shipping_location: ShippingLocation
    shipping_method: Optional['ShippingMethod'] = None
    customer: Any = None
    rule_ids: FrozenSet = field(default_factory=frozenset)

    @property
    def sales_channel_id(self):
        return self.sales_channel.pk

    @property
    def is_guest(self) -> bool:
        return self.customer is None
