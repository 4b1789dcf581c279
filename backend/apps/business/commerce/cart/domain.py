"""
Cart Domain for Keszler Storefront
==================================
In-memory cart used for price calculations. Calculated carts are never saved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional

from apps.base.core.system.exceptions import CartError

if TYPE_CHECKING:
    from apps.business.commerce.products.models import Product
    from apps.business.commerce.sales_channels.context import ShippingLocation
    from apps.business.partners.shipping.models import ShippingMethod


PRODUCT_LINE_ITEM_TYPE = 'product'
PRODUCT_NOT_FOUND_ERROR = 'product-not-found:'


@dataclass(frozen=True)
class DeliveryTime:
    min: int
    max: int
    unit: str = 'day'

    @classmethod
    def from_product(cls, product: 'Product') -> Optional['DeliveryTime']:
        if not product.has_delivery_time:
            return None
        return cls(min=product.min_delivery_days, max=product.max_delivery_days)


@dataclass
class DeliveryInformation:
    """Parcel facts of a line item."""

    stock: int
    weight: Optional[Decimal] = None
    shipping_free: bool = False
    restock_time: Optional[int] = None
    delivery_time: Optional[DeliveryTime] = None
    height: Optional[Decimal] = None
    width: Optional[Decimal] = None
    length: Optional[Decimal] = None

    @classmethod
    def from_product(cls, product: 'Product', stock: Optional[int] = None) -> 'DeliveryInformation':
        return cls(
            stock=product.stock_quantity if stock is None else stock,
            weight=product.weight,
            shipping_free=product.shipping_free,
            restock_time=product.restock_days,
            delivery_time=DeliveryTime.from_product(product),
            height=product.height,
            width=product.width,
            length=product.length,
        )


@dataclass
class LineItem:
    id: str
    type: str
    referenced_id: str
    quantity: int = 1
    label: str = ''
    stackable: bool = False
    removable: bool = True
    requires_shipping: bool = True
    unit_price: Decimal = Decimal('0')
    delivery_information: Optional[DeliveryInformation] = None

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def weight(self) -> Decimal:
        info = self.delivery_information
        if info is None or info.weight is None:
            return Decimal('0')
        return info.weight * self.quantity

    @property
    def is_shipping_free(self) -> bool:
        return bool(self.delivery_information and self.delivery_information.shipping_free)


@dataclass
class Delivery:
    positions: List[LineItem]
    shipping_method: 'ShippingMethod'
    location: 'ShippingLocation'
    delivery_time: Optional[DeliveryTime] = None
    shipping_costs: Decimal = Decimal('0')

    @property
    def weight(self) -> Decimal:
        return sum((item.weight for item in self.positions), Decimal('0'))

    @property
    def is_shipping_free(self) -> bool:
        return all(item.is_shipping_free for item in self.positions)


@dataclass
class Cart:
    token: str
    line_items: Dict[str, LineItem] = field(default_factory=dict)
    deliveries: List[Delivery] = field(default_factory=list)
    price: Decimal = Decimal('0')
    errors: List[str] = field(default_factory=list)

    def add(self, line_item: LineItem) -> 'Cart':
        """
        Add a line item; a stackable item with a known id raises the quantity.

        Raises:
            CartError: the id is taken by a non-stackable item
        """
        existing = self.line_items.get(line_item.id)
        if existing is None:
            self.line_items[line_item.id] = line_item
            return self

        if not existing.stackable:
            raise CartError(
                f'Line item {line_item.id} is not stackable',
                code='line_item_not_stackable'
            )

        existing.quantity += line_item.quantity
        return self

    def remove(self, line_item_id: str) -> None:
        self.line_items.pop(line_item_id, None)

    @property
    def shipping_total(self) -> Decimal:
        return sum((delivery.shipping_costs for delivery in self.deliveries), Decimal('0'))
