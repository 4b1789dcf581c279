"""
Cart Tests for Keszler Storefront
=================================
In-memory cart and the pricing engine.
"""

from decimal import Decimal
from django.test import SimpleTestCase, TestCase

from apps.base.core.locations.models import Country
from apps.base.core.system.exceptions import CartError
from apps.business.commerce.products.models import Product
from apps.business.commerce.sales_channels.context import (
    Address,
    SalesChannelContext,
    ShippingLocation,
)
from apps.business.commerce.sales_channels.models import SalesChannel
from apps.business.partners.shipping.models import AvailabilityRule, ShippingMethod, ShippingRate
from .domain import PRODUCT_LINE_ITEM_TYPE, Cart, DeliveryInformation, DeliveryTime, LineItem
from apps.business.partners.shipping.services import AvailabilityRuleMatcher, ShippingCostCalculator
from .services import CartService, get_cart_service


def product_line_item(product, quantity=1, **kwargs):
    return LineItem(
        id=str(product.pk),
        type=PRODUCT_LINE_ITEM_TYPE,
        referenced_id=str(product.pk),
        quantity=quantity,
        **kwargs
    )


class CartDomainTests(SimpleTestCase):

    def test_stackable_items_merge_quantities(self):
        """Test adding a stackable item twice merges quantities."""
        cart = Cart(token='cart')
        cart.add(LineItem(id='a', type='product', referenced_id='a', quantity=1, stackable=True))
        cart.add(LineItem(id='a', type='product', referenced_id='a', quantity=2, stackable=True))

        self.assertEqual(len(cart.line_items), 1)
        self.assertEqual(cart.line_items['a'].quantity, 3)

    def test_non_stackable_duplicate_raises(self):
        """Test adding a non-stackable duplicate raises CartError."""
        cart = Cart(token='cart')
        cart.add(LineItem(id='a', type='product', referenced_id='a'))

        with self.assertRaises(CartError):
            cart.add(LineItem(id='a', type='product', referenced_id='a'))

    def test_line_item_weight(self):
        """Test line item weight is unit weight times quantity."""
        item = LineItem(
            id='a', type='product', referenced_id='a', quantity=3,
            delivery_information=DeliveryInformation(stock=1, weight=Decimal('0.250'))
        )
        self.assertEqual(item.weight, Decimal('0.750'))

        item.delivery_information = None
        self.assertEqual(item.weight, Decimal('0'))

    def test_get_cart_service_builds_default_collaborators(self):
        """Test the factory wires the default rule matcher and cost calculator."""
        service = get_cart_service()

        self.assertIsInstance(service, CartService)
        self.assertIsInstance(service.rule_matcher, AvailabilityRuleMatcher)
        self.assertIsInstance(service.cost_calculator, ShippingCostCalculator)


class CartServiceTests(TestCase):
    """Tests for CartService.recalculate()."""

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.channel = SalesChannel.objects.create(name='Storefront', default_country=self.germany)
        self.method = ShippingMethod.objects.create(
            code='standard', name='Standard', min_delivery_days=2, max_delivery_days=4
        )
        self.rate = ShippingRate.objects.create(
            method=self.method,
            name='Parcel',
            base_rate=Decimal('4.90'),
            rate_per_kg=Decimal('1.00')
        )
        self.product = Product.objects.create(
            name='Teapot',
            sku='TEA-1',
            price=Decimal('25.00'),
            stock_quantity=7,
            weight=Decimal('1.500'),
            min_delivery_days=1,
            max_delivery_days=3
        )
        self.service = CartService()

    def build_context(self, shipping_method=None):
        address = Address(id='test', country=self.germany, zipcode='10115')
        return SalesChannelContext(
            token='cart',
            sales_channel=self.channel,
            currency='EUR',
            language='de',
            payment_method='invoice',
            shipping_location=ShippingLocation.from_address(address),
            shipping_method=shipping_method,
        )

    def test_recalculate_prices_cart_and_shipping(self):
        """Test recalculating prices the cart and its delivery."""
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product, quantity=2))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        item = cart.line_items[str(self.product.pk)]
        self.assertEqual(item.label, 'Teapot')
        self.assertEqual(item.unit_price, Decimal('25.00'))
        self.assertEqual(item.delivery_information.stock, 7)
        self.assertEqual(cart.price, Decimal('50.00'))

        self.assertEqual(len(cart.deliveries), 1)
        delivery = cart.deliveries[0]
        self.assertEqual(delivery.weight, Decimal('3.000'))
        self.assertEqual(delivery.shipping_costs, Decimal('7.90'))
        self.assertEqual(delivery.delivery_time, DeliveryTime(min=1, max=3))
        self.assertEqual(cart.shipping_total, Decimal('7.90'))

    def test_existing_delivery_information_is_kept(self):
        """Test delivery information set by the caller is kept."""
        cart = self.service.create_new('cart')
        info = DeliveryInformation(stock=1, weight=Decimal('4.000'))
        self.service.add(cart, product_line_item(self.product, delivery_information=info))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        self.assertIs(cart.line_items[str(self.product.pk)].delivery_information, info)
        self.assertEqual(cart.deliveries[0].shipping_costs, Decimal('8.90'))
        self.assertEqual(cart.deliveries[0].delivery_time, DeliveryTime(min=2, max=4))

    def test_missing_products_are_removed(self):
        """Test inactive products are removed with an error."""
        self.product.deactivate()
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        self.assertEqual(cart.line_items, {})
        self.assertEqual(cart.deliveries, [])
        self.assertEqual(cart.errors, [f'product-not-found:{self.product.pk}'])

    def test_no_shipping_method_means_no_delivery(self):
        """Test a context without a method builds no delivery."""
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product))

        cart = self.service.recalculate(cart, self.build_context())

        self.assertEqual(cart.deliveries, [])
        self.assertEqual(cart.shipping_total, Decimal('0'))

    def test_digital_products_are_not_delivered(self):
        """Test products that need no shipping are not delivered."""
        self.product.requires_shipping = False
        self.product.save()
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        self.assertEqual(cart.deliveries, [])

    def test_shipping_free_products_cost_nothing(self):
        """Test shipping-free deliveries cost nothing."""
        self.product.shipping_free = True
        self.product.save()
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        self.assertEqual(len(cart.deliveries), 1)
        self.assertEqual(cart.shipping_total, Decimal('0'))

    def test_missing_rate_blocks_shipping_method(self):
        """Test a method without a rate is blocked at zero cost."""
        self.rate.deactivate()
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product))

        cart = self.service.recalculate(cart, self.build_context(self.method))

        self.assertEqual(cart.shipping_total, Decimal('0'))
        self.assertIn('shipping-method-blocked:standard', cart.errors)

    def test_rule_ids_follow_cart_total(self):
        """Test rule ids are reloaded against the cart total."""
        rule = AvailabilityRule.objects.create(name='Big orders', min_cart_total=Decimal('60.00'))
        context = self.build_context(self.method)
        cart = self.service.create_new('cart')
        self.service.add(cart, product_line_item(self.product, quantity=2, stackable=True))

        self.service.recalculate(cart, context)
        self.assertNotIn(rule.pk, context.rule_ids)

        self.service.add(cart, product_line_item(self.product, quantity=1, stackable=True))
        self.service.recalculate(cart, context)
        self.assertIn(rule.pk, context.rule_ids)
