"""
Shipping Tests for Keszler Storefront
=====================================
Availability rules, rate calculation and shipping method validation.
"""

from decimal import Decimal
from django.test import TestCase

from apps.base.core.locations.models import Country
from apps.business.commerce.cart.domain import Cart
from apps.business.commerce.sales_channels.context import (
    Address,
    SalesChannelContext,
    ShippingLocation,
)
from apps.business.commerce.sales_channels.models import SalesChannel
from .models import AvailabilityRule, ShippingMethod, ShippingRate
from .services import (
    AvailabilityRuleMatcher,
    ShippingCalculationError,
    ShippingCostCalculator,
    ShippingMethodValidator,
)


def build_context(sales_channel, country, zipcode=None, shipping_method=None, rule_ids=frozenset()):
    if zipcode is None:
        location = ShippingLocation.from_country(country)
    else:
        location = ShippingLocation.from_address(Address(id='test', country=country, zipcode=zipcode))
    return SalesChannelContext(
        token='test-token',
        sales_channel=sales_channel,
        currency='EUR',
        language='de',
        payment_method='invoice',
        shipping_location=location,
        shipping_method=shipping_method,
        rule_ids=frozenset(rule_ids),
    )


class AvailabilityRuleTests(TestCase):

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')

    def test_empty_rule_matches_anything(self):
        """Test a rule without conditions matches anything."""
        rule = AvailabilityRule.objects.create(name='Anywhere')
        self.assertTrue(rule.matches(None, None))

    def test_country_condition(self):
        """Test the country condition of a rule."""
        rule = AvailabilityRule.objects.create(name='Germany')
        rule.countries.add(self.germany)

        self.assertTrue(rule.matches(self.germany, '10115'))
        self.assertFalse(rule.matches(self.austria, '1010'))
        self.assertFalse(rule.matches(None, '10115'))

    def test_zipcode_prefix_condition(self):
        """Test the zipcode prefix condition of a rule."""
        rule = AvailabilityRule.objects.create(name='Berlin', zipcode_prefixes=['10', '12'])

        self.assertTrue(rule.matches(self.germany, '10115'))
        self.assertTrue(rule.matches(self.germany, ' 12043 '))
        self.assertFalse(rule.matches(self.germany, '80331'))
        self.assertFalse(rule.matches(self.germany, None))

    def test_min_cart_total_needs_a_cart(self):
        """Test a minimum cart total never matches without a cart."""
        rule = AvailabilityRule.objects.create(name='Big orders', min_cart_total=Decimal('100.00'))

        self.assertFalse(rule.matches(self.germany, '10115'))
        self.assertFalse(rule.matches(self.germany, '10115', Decimal('99.99')))
        self.assertTrue(rule.matches(self.germany, '10115', Decimal('100.00')))


class AvailabilityRuleMatcherTests(TestCase):

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')
        self.channel = SalesChannel.objects.create(name='Storefront')

        self.germany_rule = AvailabilityRule.objects.create(name='Germany')
        self.germany_rule.countries.add(self.germany)
        self.big_order_rule = AvailabilityRule.objects.create(
            name='Big orders',
            min_cart_total=Decimal('100.00')
        )
        self.inactive_rule = AvailabilityRule.objects.create(name='Off', is_active=False)

    def test_match_without_cart(self):
        """Test matching rules for a context without a cart."""
        context = build_context(self.channel, self.germany, '10115')

        rule_ids = AvailabilityRuleMatcher().match(context)

        self.assertEqual(rule_ids, frozenset({self.germany_rule.pk}))

    def test_match_uses_cart_total(self):
        """Test matching rules against the cart total."""
        context = build_context(self.channel, self.austria, '1010')
        cart = Cart(token='cart', price=Decimal('150.00'))

        rule_ids = AvailabilityRuleMatcher().match(context, cart)

        self.assertEqual(rule_ids, frozenset({self.big_order_rule.pk}))


class ShippingRateTests(TestCase):

    def setUp(self):
        self.method = ShippingMethod.objects.create(code='standard', name='Standard')

    def test_weight_based_rate(self):
        """Test base rate plus per-kg charge."""
        rate = ShippingRate.objects.create(
            method=self.method,
            name='Parcel',
            base_rate=Decimal('4.90'),
            rate_per_kg=Decimal('1.00')
        )
        self.assertEqual(rate.calculate_rate(Decimal('2.5'), Decimal('10')), Decimal('7.40'))

    def test_zero_weight_uses_minimum_weight(self):
        """Test zero weight is charged at the minimum weight."""
        rate = ShippingRate.objects.create(
            method=self.method,
            name='Parcel',
            base_rate=Decimal('4.90'),
            rate_per_kg=Decimal('2.00')
        )
        self.assertEqual(rate.calculate_rate(Decimal('0'), Decimal('10')), Decimal('5.90'))

    def test_free_shipping_threshold(self):
        """Test orders above the threshold ship for free."""
        rate = ShippingRate.objects.create(
            method=self.method,
            name='Parcel',
            base_rate=Decimal('4.90'),
            free_shipping_threshold=Decimal('50.00')
        )
        self.assertEqual(rate.calculate_rate(Decimal('1'), Decimal('50.00')), Decimal('0'))


class ShippingCostCalculatorTests(TestCase):

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')
        self.method = ShippingMethod.objects.create(code='standard', name='Standard')

        self.light = ShippingRate.objects.create(
            method=self.method, name='Light', base_rate=Decimal('4.90'), max_weight=Decimal('5')
        )
        self.heavy = ShippingRate.objects.create(
            method=self.method, name='Heavy', base_rate=Decimal('9.90'), min_weight=Decimal('2')
        )
        self.light.countries.add(self.germany)
        self.heavy.countries.add(self.germany)

    def test_narrowest_weight_bracket_wins(self):
        """Test the narrowest matching weight bracket is used."""
        location = ShippingLocation.from_country(self.germany)
        calculator = ShippingCostCalculator()

        self.assertEqual(
            calculator.calculate(self.method, location, Decimal('1'), Decimal('10')),
            Decimal('4.90')
        )
        self.assertEqual(
            calculator.calculate(self.method, location, Decimal('3'), Decimal('10')),
            Decimal('9.90')
        )

    def test_no_rate_for_destination_raises(self):
        """Test a destination without a rate raises ShippingCalculationError."""
        location = ShippingLocation.from_country(self.austria)

        with self.assertRaises(ShippingCalculationError):
            ShippingCostCalculator().calculate(self.method, location, Decimal('1'), Decimal('10'))


class ShippingMethodValidatorTests(TestCase):
    """Tests for rule-based method validation and replacement."""

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.channel = SalesChannel.objects.create(name='Storefront')
        self.rule = AvailabilityRule.objects.create(name='Austria only')

        self.express = ShippingMethod.objects.create(
            code='express', name='Express', position=1, availability_rule=self.rule
        )
        self.disabled = ShippingMethod.objects.create(
            code='disabled', name='Disabled', position=2, is_active=False
        )
        self.standard = ShippingMethod.objects.create(code='standard', name='Standard', position=3)
        self.economy = ShippingMethod.objects.create(code='economy', name='Economy', position=4)
        self.elsewhere = ShippingMethod.objects.create(code='elsewhere', name='Elsewhere', position=0)

        for method in (self.express, self.disabled, self.standard, self.economy):
            method.sales_channels.add(self.channel)

        self.validator = ShippingMethodValidator()

    def test_unrestricted_method_is_valid(self):
        """Test a method without a rule is always valid."""
        context = build_context(self.channel, self.germany)
        self.assertTrue(self.validator.is_valid(self.standard, context))

    def test_restricted_method_needs_active_rule(self):
        """Test a restricted method needs its rule in the context."""
        context = build_context(self.channel, self.germany)
        self.assertFalse(self.validator.is_valid(self.express, context))

        context.rule_ids = frozenset({self.rule.pk})
        self.assertTrue(self.validator.is_valid(self.express, context))

    def test_replacement_is_first_valid_active_channel_method_by_position(self):
        """Test the replacement is the first valid channel method by position."""
        context = build_context(self.channel, self.germany)
        self.assertEqual(self.validator.find_replacement(context), self.standard)

    def test_ensure_valid_keeps_valid_method(self):
        """Test a valid method is kept."""
        context = build_context(
            self.channel, self.germany,
            shipping_method=self.express,
            rule_ids={self.rule.pk}
        )

        self.assertTrue(self.validator.ensure_valid(context))
        self.assertEqual(context.shipping_method, self.express)

    def test_ensure_valid_replaces_invalid_method(self):
        """Test an invalid method is replaced."""
        context = build_context(self.channel, self.germany, shipping_method=self.express)

        self.assertTrue(self.validator.ensure_valid(context))
        self.assertEqual(context.shipping_method, self.standard)

    def test_ensure_valid_without_any_valid_method(self):
        """Test a channel without valid methods reports failure."""
        self.standard.deactivate()
        self.economy.sales_channels.remove(self.channel)
        context = build_context(self.channel, self.germany, shipping_method=self.express)

        self.assertFalse(self.validator.ensure_valid(context))
        self.assertEqual(context.shipping_method, self.express)
