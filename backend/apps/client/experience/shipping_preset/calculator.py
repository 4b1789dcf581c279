"""
Per-Item Shipping Calculator for Keszler Storefront
===================================================
Estimates the shipping cost of a single product by pricing a throwaway
one-item cart shipped to the configured preset destination.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
import uuid
import logging

from django.core.exceptions import ValidationError

from apps.base.core.locations.models import Country
from apps.base.core.locations.services import CountryResolver
from apps.business.commerce.cart.domain import (
    PRODUCT_LINE_ITEM_TYPE,
    PRODUCT_NOT_FOUND_ERROR,
    DeliveryInformation,
    LineItem,
)
from apps.business.commerce.cart.services import CartService, get_cart_service
from apps.business.commerce.products.models import Product
from apps.business.commerce.sales_channels.context import ContextOptions, SalesChannelContext
from apps.business.commerce.sales_channels.services import SalesChannelContextFactory
from apps.business.partners.shipping.services import ShippingMethodValidator
from .conf import get_preset_config, normalize_country_iso, normalize_zipcode
from .guest import build_guest_location

logger = logging.getLogger(__name__)

TOKEN_PREFIX = 'shipping_preset_'


@dataclass(frozen=True)
class ProductReference:
    """
    A product known either completely or by id only.
    `product` is set for full references and None for id-only ones.
    """

    id: str
    product: Optional[Product] = None

    @property
    def is_loaded(self) -> bool:
        return self.product is not None

    @classmethod
    def of(cls, value: Any) -> Optional['ProductReference']:
        """
        Normalize a Product, a mapping with an 'id', or a bare id.
        Anything else gives None.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Product):
            return cls(id=str(value.pk), product=value)
        if isinstance(value, Mapping):
            value = value.get('id')
        if isinstance(value, uuid.UUID):
            return cls(id=str(value))
        if isinstance(value, str) and value.strip():
            return cls(id=value.strip())
        return None

    def load(self) -> Optional[Product]:
        if self.product is not None:
            return self.product if self.product.is_active else None
        try:
            return Product.objects.filter(pk=self.id, is_active=True).first()
        except (ValidationError, ValueError):
            return None


@dataclass(frozen=True)
class ShippingTarget:
    country: Country
    zipcode: str
    cache_key: str


class PerItemShippingCalculator:
    """
    Shipping cost estimates per product.

    Results are memoized per (product, sales channel, destination) for the
    lifetime of the instance; create one calculator per request.
    """

    def __init__(
        self,
        context_factory: Optional[SalesChannelContextFactory] = None,
        cart_service: Optional[CartService] = None,
        method_validator: Optional[ShippingMethodValidator] = None,
        country_resolver: Optional[CountryResolver] = None
    ):
        self.context_factory = context_factory or SalesChannelContextFactory()
        self.cart_service = cart_service or get_cart_service()
        self.method_validator = method_validator or ShippingMethodValidator()
        self.country_resolver = country_resolver or CountryResolver()
        self.cache: Dict[str, float] = {}

    def resolve_target(self, sales_channel_id, zipcode: Optional[str] = None) -> Optional[ShippingTarget]:
        """
        Destination configured for a sales channel.

        Args:
            sales_channel_id: SalesChannel primary key
            zipcode: Optional zipcode replacing the configured one

        Returns:
            ShippingTarget, or None if no country can be resolved
        """
        config = get_preset_config(sales_channel_id)

        if zipcode is None or not str(zipcode).strip():
            zipcode = config.zipcode
        zipcode = normalize_zipcode(zipcode)
        country_iso = normalize_country_iso(config.country_iso)

        country = self.country_resolver.resolve(config.country_id, country_iso)
        if country is None:
            return None

        return ShippingTarget(
            country=country,
            zipcode=zipcode,
            cache_key=f"{country.pk or country_iso}:{zipcode}"
        )

    def calculate_for_product(
        self,
        product,
        base_context: SalesChannelContext,
        zipcode: Optional[str] = None
    ) -> Optional[float]:
        """
        Estimated shipping cost of one unit of a product.

        Args:
            product: Product instance or ProductReference
            base_context: Pricing context of the visitor
            zipcode: Optional zipcode replacing the configured one

        Returns:
            float: Sum of shipping costs over all deliveries
            None: destination, product or shipping method unavailable
        """
        reference = ProductReference.of(product)
        if reference is None:
            return None

        sales_channel_id = base_context.sales_channel_id
        target = self.resolve_target(sales_channel_id, zipcode)
        if target is None:
            logger.info(f"No shipping estimate: no preset country for sales channel {sales_channel_id}")
            return None

        cache_key = f"{reference.id}|{sales_channel_id}|{target.cache_key}"
        if cache_key in self.cache:
            logger.debug(f"Shipping estimate cache hit: {cache_key}")
            return self.cache[cache_key]

        loaded = reference.load()
        if loaded is None:
            logger.info(f"No shipping estimate: product {reference.id} not found")
            return None

        location = build_guest_location(target.country, target.zipcode)
        token = f"{TOKEN_PREFIX}{uuid.uuid4().hex}"

        context = self.context_factory.create(
            token,
            sales_channel_id,
            options={
                ContextOptions.CURRENCY: base_context.currency,
                ContextOptions.LANGUAGE: base_context.language,
                ContextOptions.PAYMENT_METHOD: base_context.payment_method,
                ContextOptions.COUNTRY_ID: target.country.pk,
            }
        )
        context.shipping_location = location

        cart = self.cart_service.create_new(token)
        self.cart_service.add(cart, self._build_line_item(loaded))
        cart = self.cart_service.recalculate(cart, context)

        if any(error.startswith(PRODUCT_NOT_FOUND_ERROR) for error in cart.errors):
            logger.info(f"No shipping estimate: product {reference.id} dropped from cart")
            return None

        method_before = getattr(context.shipping_method, 'pk', None)
        if not self.method_validator.ensure_valid(context):
            logger.info(
                f"No shipping estimate: no valid shipping method for {target.cache_key} "
                f"in sales channel {sales_channel_id}"
            )
            return None

        if getattr(context.shipping_method, 'pk', None) != method_before:
            cart = self.cart_service.recalculate(cart, context)

        total = float(sum(delivery.shipping_costs for delivery in cart.deliveries))
        logger.debug(f"Shipping estimate computed: {cache_key} = {total}")

        self.cache[cache_key] = total
        return total

    def _build_line_item(self, product: Product) -> LineItem:
        product_id = str(product.pk)
        return LineItem(
            id=product_id,
            type=PRODUCT_LINE_ITEM_TYPE,
            referenced_id=product_id,
            quantity=1,
            label=product.name,
            stackable=True,
            removable=False,
            # Estimates always assume the product is in stock
            delivery_information=DeliveryInformation.from_product(product, stock=1),
        )
