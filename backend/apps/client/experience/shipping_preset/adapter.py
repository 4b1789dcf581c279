"""
Template Adapter for Per-Item Shipping
======================================
Bridges templates and PerItemShippingCalculator.
"""

from __future__ import annotations

from typing import Optional
import uuid
import logging

from apps.base.core.system.exceptions import SalesChannelNotFoundError
from apps.business.commerce.sales_channels.context import SalesChannelContext
from apps.business.commerce.sales_channels.services import SalesChannelContextFactory
from .calculator import PerItemShippingCalculator, ProductReference

logger = logging.getLogger(__name__)

TEMPLATE_TOKEN_PREFIX = 'shipping_preset_tpl_'
REQUEST_CALCULATOR_ATTR = '_per_item_shipping_calculator'

__all__ = [
    'ProductReference',
    'ShippingTemplateAdapter',
    'get_per_item_shipping_calculator',
]


def get_per_item_shipping_calculator(request=None) -> PerItemShippingCalculator:
    """
    Calculator bound to a request, so estimates are cached for one request only.
    Without a request a fresh calculator is returned.
    """
    if request is None:
        return PerItemShippingCalculator()

    calculator = getattr(request, REQUEST_CALCULATOR_ATTR, None)
    if calculator is None:
        calculator = PerItemShippingCalculator()
        setattr(request, REQUEST_CALCULATOR_ATTR, calculator)
    return calculator


class ShippingTemplateAdapter:
    """Resolve template arguments, then delegate to the calculator."""

    def __init__(
        self,
        calculator: Optional[PerItemShippingCalculator] = None,
        context_factory: Optional[SalesChannelContextFactory] = None
    ):
        self.calculator = calculator or PerItemShippingCalculator()
        self.context_factory = context_factory or SalesChannelContextFactory()

    def per_item_shipping(
        self,
        product,
        sales_channel_context: Optional[SalesChannelContext] = None,
        sales_channel_id=None,
        zipcode: Optional[str] = None,
        request=None
    ) -> Optional[float]:
        reference = ProductReference.of(product)
        if reference is None:
            return None

        context = sales_channel_context or self._throwaway_context(sales_channel_id, request)
        if context is None:
            return None

        return self.calculator.calculate_for_product(reference, context, zipcode)

    def _throwaway_context(self, sales_channel_id, request=None) -> Optional[SalesChannelContext]:
        if not sales_channel_id:
            return None

        token = f"{TEMPLATE_TOKEN_PREFIX}{uuid.uuid4().hex}"
        try:
            return self.context_factory.create(token, sales_channel_id, request=request)
        except SalesChannelNotFoundError:
            logger.info(f"No shipping estimate: unknown sales channel {sales_channel_id!r}")
            return None
