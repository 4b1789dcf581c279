"""
Shipping Service for Keszler Storefront
=======================================
Rule matching, rate lookup and shipping method validation for pricing contexts.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, FrozenSet, Optional
import logging

from .models import AvailabilityRule, ShippingMethod

if TYPE_CHECKING:
    from apps.business.commerce.cart.domain import Cart
    from apps.business.commerce.sales_channels.context import SalesChannelContext, ShippingLocation

logger = logging.getLogger(__name__)


class ShippingCalculationError(Exception):
    """Exception raised when shipping calculation fails."""
    pass


class AvailabilityRuleMatcher:
    """
    Loads the ids of the availability rules matching a context.
    Rules depend on the destination and, once a cart exists, on its total.
    """

    def match(self, context: 'SalesChannelContext', cart: Optional['Cart'] = None) -> FrozenSet:
        location = context.shipping_location
        cart_total = cart.price if cart is not None else None

        rules = AvailabilityRule.active_objects.prefetch_related('countries')

        return frozenset(
            rule.pk for rule in rules
            if rule.matches(location.country, location.zipcode, cart_total)
        )


class ShippingCostCalculator:
    """Prices one delivery with the best matching rate of its shipping method."""

    def calculate(
        self,
        method: ShippingMethod,
        location: 'ShippingLocation',
        weight: Decimal,
        order_value: Decimal
    ) -> Decimal:
        """
        Calculate the shipping cost of a delivery.

        Args:
            method: Shipping method of the delivery
            location: Delivery destination
            weight: Total delivery weight in kg
            order_value: Cart subtotal

        Returns:
            Decimal: Shipping cost

        Raises:
            ShippingCalculationError: no active rate covers destination and weight
        """
        rates = [
            rate for rate in method.rates.all()
            if rate.applies_to(location.country, weight)
        ]

        if not rates:
            raise ShippingCalculationError(
                f'No rate of {method.code} ships {weight} kg to {location.country_iso or "unknown"}'
            )

        # Narrowest weight bracket wins
        rate = max(rates, key=lambda r: r.min_weight)
        return rate.calculate_rate(weight, order_value)


class ShippingMethodValidator:
    """
    Checks a context's shipping method against the context's active rules
    and repairs the context when the method is not usable.
    """

    def is_valid(self, method: ShippingMethod, context: 'SalesChannelContext') -> bool:
        rule_id = method.availability_rule_id
        if rule_id is None:
            return True
        return rule_id in context.rule_ids

    def find_replacement(self, context: 'SalesChannelContext') -> Optional[ShippingMethod]:
        """
        First valid active method of the context's sales channel, by position.
        """
        methods = ShippingMethod.active_objects.filter(
            sales_channels=context.sales_channel
        ).prefetch_related('rates__countries').order_by('position', 'name')

        for method in methods:
            if self.is_valid(method, context):
                return method

        return None

    def ensure_valid(self, context: 'SalesChannelContext') -> bool:
        """
        Keep the current method if valid, otherwise assign a replacement.

        Returns:
            False if the sales channel has no valid method at all
        """
        current = context.shipping_method
        if current is not None and self.is_valid(current, context):
            return True

        replacement = self.find_replacement(context)
        if replacement is None:
            return False

        logger.debug(
            f"Replacing shipping method {getattr(current, 'code', None)} "
            f"with {replacement.code} for context {context.token}"
        )
        context.shipping_method = replacement
        return True
