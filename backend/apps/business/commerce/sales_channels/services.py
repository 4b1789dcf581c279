"""
Sales Channel Context Service for Keszler Storefront
====================================================
Builds pricing contexts from a sales channel and optional overrides.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from django.core.exceptions import ValidationError
import logging

from apps.base.core.locations.models import Country
from apps.base.core.system.exceptions import SalesChannelNotFoundError
from apps.business.partners.shipping.models import ShippingMethod
from apps.business.partners.shipping.services import AvailabilityRuleMatcher
from .context import ContextOptions, SalesChannelContext, ShippingLocation
from .models import SalesChannel
from .signals import sales_channel_context_created

logger = logging.getLogger(__name__)


class SalesChannelContextFactory:
    """
    Factory for SalesChannelContext instances.
    Every created context is announced through sales_channel_context_created.
    """

    def __init__(self, rule_matcher: Optional[AvailabilityRuleMatcher] = None):
        self.rule_matcher = rule_matcher or AvailabilityRuleMatcher()

    def create(
        self,
        token: str,
        sales_channel_id,
        options: Optional[Dict[str, Any]] = None,
        request=None,
        customer=None
    ) -> SalesChannelContext:
        """
        Create a pricing context.

        Args:
            token: Context token (session key or a random throwaway token)
            sales_channel_id: SalesChannel primary key
            options: Overrides keyed by ContextOptions constants
            request: Current HttpRequest, forwarded to signal receivers
            customer: Authenticated user, None for guests

        Returns:
            SalesChannelContext

        Raises:
            SalesChannelNotFoundError: unknown or inactive sales channel
        """
        options = options or {}
        sales_channel = self._load_sales_channel(sales_channel_id)

        country = self._load_country(options.get(ContextOptions.COUNTRY_ID))
        if country is None:
            country = sales_channel.default_country

        shipping_method = self._load_shipping_method(options.get(ContextOptions.SHIPPING_METHOD_ID))
        if shipping_method is None:
            shipping_method = sales_channel.default_shipping_method

        context = SalesChannelContext(
            token=token,
            sales_channel=sales_channel,
            currency=options.get(ContextOptions.CURRENCY) or sales_channel.currency,
            language=options.get(ContextOptions.LANGUAGE) or sales_channel.language,
            payment_method=options.get(ContextOptions.PAYMENT_METHOD) or sales_channel.payment_method,
            shipping_location=ShippingLocation.from_country(country),
            shipping_method=shipping_method,
            customer=customer,
        )

        sales_channel_context_created.send(
            sender=self.__class__,
            context=context,
            request=request
        )

        context.rule_ids = self.rule_matcher.match(context)
        return context

    def _load_sales_channel(self, sales_channel_id) -> SalesChannel:
        try:
            return SalesChannel.objects.select_related(
                'default_country',
                'default_shipping_method__availability_rule'
            ).get(pk=sales_channel_id, is_active=True)
        except (SalesChannel.DoesNotExist, ValidationError, ValueError):
            raise SalesChannelNotFoundError(
                extra_data={'sales_channel_id': str(sales_channel_id)}
            )

    def _load_country(self, country_id) -> Optional[Country]:
        if not country_id:
            return None
        try:
            return Country.objects.filter(pk=country_id).first()
        except (ValidationError, ValueError):
            logger.warning(f"Ignoring malformed country option: {country_id!r}")
            return None

    def _load_shipping_method(self, shipping_method_id) -> Optional[ShippingMethod]:
        if not shipping_method_id:
            return None
        try:
            return ShippingMethod.objects.select_related('availability_rule').filter(
                pk=shipping_method_id,
                is_active=True
            ).first()
        except (ValidationError, ValueError):
            logger.warning(f"Ignoring malformed shipping method option: {shipping_method_id!r}")
            return None


def get_context_factory() -> SalesChannelContextFactory:
    """
    Factory function to create SalesChannelContextFactory instance.

    Returns:
        SalesChannelContextFactory instance
    """
    return SalesChannelContextFactory()
