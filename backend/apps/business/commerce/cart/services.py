"""
Cart Service for Keszler Storefront
===================================
Pricing engine for in-memory carts: product data, rules, deliveries and shipping costs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional
import logging

from apps.business.commerce.products.models import Product
from apps.business.partners.shipping.services import (
    AvailabilityRuleMatcher,
    ShippingCalculationError,
    ShippingCostCalculator,
)
from .domain import (
    PRODUCT_LINE_ITEM_TYPE,
    PRODUCT_NOT_FOUND_ERROR,
    Cart,
    Delivery,
    DeliveryInformation,
    DeliveryTime,
    LineItem,
)

if TYPE_CHECKING:
    from apps.business.commerce.sales_channels.context import SalesChannelContext

logger = logging.getLogger(__name__)


class CartService:
    """
    Service class for cart calculations.
    Carts handled here are never written to the database.
    """

    def __init__(
        self,
        rule_matcher: Optional[AvailabilityRuleMatcher] = None,
        cost_calculator: Optional[ShippingCostCalculator] = None
    ):
        self.rule_matcher = rule_matcher or AvailabilityRuleMatcher()
        self.cost_calculator = cost_calculator or ShippingCostCalculator()

    def create_new(self, token: str) -> Cart:
        return Cart(token=token)

    def add(self, cart: Cart, line_item: LineItem) -> Cart:
        return cart.add(line_item)

    def recalculate(self, cart: Cart, context: 'SalesChannelContext') -> Cart:
        """
        Run a full calculation of the cart against a pricing context.

        Args:
            cart: Cart to calculate
            context: Pricing context; its rule_ids are reloaded on the way

        Returns:
            The same cart, with prices and deliveries filled in
        """
        cart.errors = []
        self._process_products(cart)

        cart.price = sum(
            (item.total_price for item in cart.line_items.values()),
            Decimal('0')
        )

        context.rule_ids = self.rule_matcher.match(context, cart)

        cart.deliveries = self._build_deliveries(cart, context)
        for delivery in cart.deliveries:
            self._calculate_delivery(delivery, cart)

        logger.debug(
            f"Cart {cart.token} recalculated: price={cart.price} "
            f"shipping={cart.shipping_total} deliveries={len(cart.deliveries)}"
        )
        return cart

    def _process_products(self, cart: Cart) -> None:
        items = [
            item for item in cart.line_items.values()
            if item.type == PRODUCT_LINE_ITEM_TYPE
        ]
        if not items:
            return

        products: Dict[str, Product] = {
            str(pk): product
            for pk, product in Product.objects.filter(
                pk__in=[item.referenced_id for item in items],
                is_active=True
            ).in_bulk().items()
        }

        for item in items:
            product = products.get(str(item.referenced_id))
            if product is None:
                logger.info(f"Removing line item {item.id}: product {item.referenced_id} unavailable")
                cart.remove(item.id)
                cart.errors.append(f'{PRODUCT_NOT_FOUND_ERROR}{item.referenced_id}')
                continue

            item.label = item.label or product.name
            item.unit_price = product.price
            item.requires_shipping = product.requires_shipping
            if item.delivery_information is None:
                item.delivery_information = DeliveryInformation.from_product(product)

    def _build_deliveries(self, cart: Cart, context: 'SalesChannelContext') -> List[Delivery]:
        method = context.shipping_method
        if method is None:
            return []

        positions = [item for item in cart.line_items.values() if item.requires_shipping]
        if not positions:
            return []

        return [
            Delivery(
                positions=positions,
                shipping_method=method,
                location=context.shipping_location,
                delivery_time=self._delivery_time(positions, method),
            )
        ]

    def _delivery_time(self, positions: List[LineItem], method) -> Optional[DeliveryTime]:
        times = [
            item.delivery_information.delivery_time
            for item in positions
            if item.delivery_information and item.delivery_information.delivery_time
        ]
        if times:
            # Parcel leaves with the slowest item
            return DeliveryTime(
                min=max(t.min for t in times),
                max=max(t.max for t in times)
            )
        if method.min_delivery_days is not None and method.max_delivery_days is not None:
            return DeliveryTime(min=method.min_delivery_days, max=method.max_delivery_days)
        return None

    def _calculate_delivery(self, delivery: Delivery, cart: Cart) -> None:
        if delivery.is_shipping_free:
            delivery.shipping_costs = Decimal('0')
            return

        try:
            delivery.shipping_costs = self.cost_calculator.calculate(
                delivery.shipping_method,
                delivery.location,
                delivery.weight,
                cart.price
            )
        except ShippingCalculationError as e:
            logger.warning(f"Cart {cart.token}: {e}")
            cart.errors.append(f'shipping-method-blocked:{delivery.shipping_method.code}')
            delivery.shipping_costs = Decimal('0')


def get_cart_service() -> CartService:
    """
    Factory function to create CartService instance.

    Returns:
        CartService instance
    """
    return CartService()
