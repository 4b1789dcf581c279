"""
Shipping Preset Tests for Keszler Storefront
============================================
Session override, context preset, per-item shipping estimates and the
estimate endpoint.
"""

from decimal import Decimal
from types import SimpleNamespace
from django.contrib.auth import get_user_model
from django.template import Context, Template
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIRequestFactory, APITestCase
from rest_framework import status
from unittest.mock import patch
import uuid

from apps.base.core.locations.models import Country
from apps.business.commerce.products.models import Product
from apps.business.commerce.sales_channels.services import SalesChannelContextFactory
from apps.business.commerce.sales_channels.models import SalesChannel
from apps.business.partners.shipping.models import AvailabilityRule, ShippingMethod, ShippingRate
from .adapter import ShippingTemplateAdapter, get_per_item_shipping_calculator
from .calculator import PerItemShippingCalculator, ProductReference
from .conf import get_preset_config
from .guest import GUEST_ADDRESS_ID, build_guest_location
from .receivers import apply_context_preset
from .session import SESSION_KEY_COUNTRY_ISO, SESSION_KEY_ZIPCODE, ShippingOverrideStore
from .views import ShippingEstimateView

User = get_user_model()


def preset(**values):
    config = {'COUNTRY_ID': '', 'COUNTRY_ISO': '', 'ZIPCODE': '', 'SALES_CHANNELS': {}}
    config.update(values)
    return override_settings(SHIPPING_PRESET=config)


class ShippingOverrideStoreTests(SimpleTestCase):

    def test_save_and_load(self):
        """Test saving an override writes both session keys."""
        session = {}
        ShippingOverrideStore(session).save('AT', '1010')

        self.assertEqual(session[SESSION_KEY_COUNTRY_ISO], 'AT')
        self.assertEqual(session[SESSION_KEY_ZIPCODE], '1010')

        override = ShippingOverrideStore(session).load()
        self.assertEqual((override.country_iso, override.zipcode), ('AT', '1010'))

    def test_load_normalizes_values(self):
        """Test loaded values are upper-cased and stripped."""
        session = {SESSION_KEY_COUNTRY_ISO: 'at', SESSION_KEY_ZIPCODE: ' 1010 '}
        override = ShippingOverrideStore(session).load()

        self.assertEqual((override.country_iso, override.zipcode), ('AT', '1010'))

    def test_incomplete_override_is_ignored(self):
        """Test an override missing either value is ignored."""
        self.assertIsNone(ShippingOverrideStore({}).load())
        self.assertIsNone(ShippingOverrideStore({SESSION_KEY_COUNTRY_ISO: 'AT'}).load())
        self.assertIsNone(ShippingOverrideStore({
            SESSION_KEY_COUNTRY_ISO: 'AT',
            SESSION_KEY_ZIPCODE: '  ',
        }).load())
        self.assertIsNone(ShippingOverrideStore({
            SESSION_KEY_COUNTRY_ISO: 'AT',
            SESSION_KEY_ZIPCODE: 1010,
        }).load())

    def test_from_request_without_session(self):
        """Test requests without a session give no store."""
        self.assertIsNone(ShippingOverrideStore.from_request(None))
        self.assertIsNone(ShippingOverrideStore.from_request(SimpleNamespace()))


class PresetConfigTests(SimpleTestCase):

    def test_channel_values_override_global_values(self):
        """Test per-channel values win over global ones."""
        with preset(COUNTRY_ISO='DE', ZIPCODE='10115', SALES_CHANNELS={'abc': {'ZIPCODE': '80331'}}):
            config = get_preset_config('abc')
            other = get_preset_config('xyz')

        self.assertEqual((config.country_iso, config.zipcode), ('DE', '80331'))
        self.assertEqual(other.zipcode, '10115')
        self.assertIsNone(config.country_id)


class ShippingPresetTestMixin:
    """Germany and Austria, one channel with one parcel method."""

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')

        self.standard = ShippingMethod.objects.create(code='standard', name='Standard', position=2)
        ShippingRate.objects.create(
            method=self.standard,
            name='Parcel',
            base_rate=Decimal('4.90'),
            rate_per_kg=Decimal('1.00')
        )

        self.channel = SalesChannel.objects.create(
            name='Storefront',
            default_country=self.germany,
            default_shipping_method=self.standard
        )
        self.standard.sales_channels.add(self.channel)

        self.product = Product.objects.create(
            name='Teapot',
            sku='TEA-1',
            price=Decimal('25.00'),
            stock_quantity=0,
            weight=Decimal('2.000')
        )

    def base_context(self, **kwargs):
        return SalesChannelContextFactory().create(f'base_{uuid.uuid4().hex}', self.channel.pk, **kwargs)


@preset()
class ShippingTargetTests(ShippingPresetTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.calculator = PerItemShippingCalculator()

    def test_blank_configuration_uses_defaults(self):
        """Test blank configuration falls back to DE / 00000."""
        target = self.calculator.resolve_target(self.channel.pk)

        self.assertEqual(target.country, self.germany)
        self.assertEqual(target.zipcode, '00000')
        self.assertEqual(target.cache_key, f'{self.germany.pk}:00000')

    def test_configured_values_are_normalized(self):
        """Test configured country and zipcode are normalized."""
        with preset(COUNTRY_ISO='at', ZIPCODE=' 1010 '):
            target = self.calculator.resolve_target(self.channel.pk)

        self.assertEqual(target.country, self.austria)
        self.assertEqual(target.zipcode, '1010')

    def test_country_id_takes_precedence(self):
        """Test a configured country id wins over the ISO code."""
        with preset(COUNTRY_ID=str(self.austria.pk), COUNTRY_ISO='DE'):
            target = self.calculator.resolve_target(self.channel.pk)

        self.assertEqual(target.country, self.austria)

    def test_unknown_country_id_falls_back_to_iso(self):
        """Test an unknown country id falls back to the ISO code."""
        with preset(COUNTRY_ID=str(uuid.uuid4()), COUNTRY_ISO='AT'):
            target = self.calculator.resolve_target(self.channel.pk)

        self.assertEqual(target.country, self.austria)

    def test_unresolvable_country_gives_no_target(self):
        """Test an unresolvable country gives no target."""
        with preset(COUNTRY_ID=str(uuid.uuid4()), COUNTRY_ISO='FR'):
            self.assertIsNone(self.calculator.resolve_target(self.channel.pk))

    def test_zipcode_override(self):
        """Test a non-blank zipcode argument replaces the configured one."""
        with preset(ZIPCODE='10115'):
            self.assertEqual(self.calculator.resolve_target(self.channel.pk, '80331').zipcode, '80331')
            self.assertEqual(self.calculator.resolve_target(self.channel.pk, '  ').zipcode, '10115')


@preset()
class PerItemShippingCalculatorTests(ShippingPresetTestMixin, TestCase):
    """Tests for per-item shipping estimates."""

    def setUp(self):
        super().setUp()
        self.calculator = PerItemShippingCalculator()

    def test_estimate_for_product(self):
        """Test estimating the shipping cost of a product."""
        total = self.calculator.calculate_for_product(self.product, self.base_context())

        # 4.90 base + 2 kg at 1.00
        self.assertEqual(total, 6.9)
        self.assertIsInstance(total, float)

    def test_second_call_is_served_from_cache(self):
        """Test repeated estimates are served from the cache."""
        context = self.base_context()
        service = self.calculator.cart_service

        with patch.object(service, 'recalculate', wraps=service.recalculate) as recalculate:
            first = self.calculator.calculate_for_product(self.product, context)
            second = self.calculator.calculate_for_product(self.product, context)

        self.assertEqual(first, second)
        self.assertEqual(recalculate.call_count, 1)
        self.assertEqual(
            list(self.calculator.cache),
            [f'{self.product.pk}|{self.channel.pk}|{self.germany.pk}:00000']
        )

    def test_destinations_are_cached_separately(self):
        """Test each destination gets its own cache entry."""
        context = self.base_context()
        service = self.calculator.cart_service

        with patch.object(service, 'recalculate', wraps=service.recalculate) as recalculate:
            self.calculator.calculate_for_product(self.product, context)
            self.calculator.calculate_for_product(self.product, context, zipcode='10115')

        self.assertEqual(recalculate.call_count, 2)
        self.assertEqual(len(self.calculator.cache), 2)

    def test_product_reference_by_id(self):
        """Test estimating a product known by id only."""
        total = self.calculator.calculate_for_product(
            ProductReference.of(str(self.product.pk)),
            self.base_context()
        )
        self.assertEqual(total, 6.9)

    def test_unknown_product_gives_no_estimate(self):
        """Test an unknown product gives no estimate."""
        total = self.calculator.calculate_for_product(
            ProductReference.of(str(uuid.uuid4())),
            self.base_context()
        )
        self.assertIsNone(total)
        self.assertEqual(self.calculator.cache, {})

    def test_inactive_product_instance_gives_no_estimate(self):
        """Test an inactive product passed as an instance gives no estimate."""
        self.product.deactivate()

        self.assertIsNone(self.calculator.calculate_for_product(self.product, self.base_context()))
        self.assertIsNone(self.calculator.calculate_for_product(
            ProductReference.of(str(self.product.pk)),
            self.base_context()
        ))
        self.assertEqual(self.calculator.cache, {})

    def test_product_dropped_by_cart_gives_no_estimate(self):
        """Test a product removed during cart calculation gives no estimate."""
        # Loaded instance goes stale before the cart reloads it
        Product.objects.filter(pk=self.product.pk).update(is_active=False)

        self.assertIsNone(self.calculator.calculate_for_product(self.product, self.base_context()))
        self.assertEqual(self.calculator.cache, {})

    def test_product_without_shipping_costs_nothing(self):
        """Test a product that needs no shipping is estimated at zero."""
        self.product.requires_shipping = False
        self.product.save()

        total = self.calculator.calculate_for_product(self.product, self.base_context())

        self.assertEqual(total, 0.0)
        self.assertIsInstance(total, float)

    def test_unresolvable_destination_gives_no_estimate(self):
        """Test an unresolvable destination gives no estimate."""
        context = self.base_context()

        with preset(COUNTRY_ISO='FR'):
            self.assertIsNone(self.calculator.calculate_for_product(self.product, context))

    def test_estimate_assumes_product_in_stock(self):
        """Test the estimate line item is one unit in stock."""
        service = self.calculator.cart_service

        with patch.object(service, 'recalculate', wraps=service.recalculate) as recalculate:
            self.calculator.calculate_for_product(self.product, self.base_context())

        cart = recalculate.call_args.args[0]
        item = cart.line_items[str(self.product.pk)]
        self.assertEqual(item.delivery_information.stock, 1)
        self.assertEqual(item.quantity, 1)
        self.assertTrue(item.stackable)
        self.assertFalse(item.removable)

    def test_estimate_uses_guest_address_at_target(self):
        """Test the estimate ships to the guest address at the target."""
        service = self.calculator.cart_service

        with patch.object(service, 'recalculate', wraps=service.recalculate) as recalculate:
            self.calculator.calculate_for_product(self.product, self.base_context(), zipcode='10115')

        context = recalculate.call_args.args[1]
        self.assertTrue(context.token.startswith('shipping_preset_'))
        self.assertEqual(context.shipping_location.address.id, GUEST_ADDRESS_ID)
        self.assertEqual(context.shipping_location.zipcode, '10115')
        self.assertEqual(context.shipping_location.country, self.germany)

    def test_restricted_method_is_replaced_and_recalculated(self):
        """Test an invalid method is replaced and the cart recalculated."""
        austria_only = AvailabilityRule.objects.create(name='Austria only')
        austria_only.countries.add(self.austria)
        express = ShippingMethod.objects.create(
            code='express', name='Express', position=1, availability_rule=austria_only
        )
        express.sales_channels.add(self.channel)
        ShippingRate.objects.create(method=express, name='Express', base_rate=Decimal('15.00'))
        economy = ShippingMethod.objects.create(code='economy', name='Economy', position=3)
        economy.sales_channels.add(self.channel)

        self.channel.default_shipping_method = express
        self.channel.save()

        service = self.calculator.cart_service
        with patch.object(service, 'recalculate', wraps=service.recalculate) as recalculate:
            total = self.calculator.calculate_for_product(self.product, self.base_context())

        self.assertEqual(recalculate.call_count, 2)
        self.assertEqual(recalculate.call_args.args[1].shipping_method, self.standard)
        self.assertEqual(total, 6.9)

    def test_no_valid_method_gives_no_estimate(self):
        """Test a channel without valid methods gives no estimate."""
        austria_only = AvailabilityRule.objects.create(name='Austria only')
        austria_only.countries.add(self.austria)
        self.standard.availability_rule = austria_only
        self.standard.save()

        self.assertIsNone(self.calculator.calculate_for_product(self.product, self.base_context()))
        self.assertEqual(self.calculator.cache, {})


class ProductReferenceTests(TestCase):

    def test_normalization(self):
        """Test products, mappings and ids are normalized."""
        product = Product.objects.create(name='Teapot', sku='TEA-1', price=Decimal('25.00'))
        product_id = str(product.pk)

        self.assertEqual(ProductReference.of(product), ProductReference(id=product_id, product=product))
        self.assertEqual(ProductReference.of({'id': product.pk}), ProductReference(id=product_id))
        self.assertEqual(ProductReference.of(product_id), ProductReference(id=product_id))
        self.assertTrue(ProductReference.of(product).is_loaded)
        self.assertFalse(ProductReference.of(product_id).is_loaded)

    def test_unusable_values(self):
        """Test unusable values give no reference."""
        for value in (None, '', '  ', {}, {'name': 'Teapot'}, 42, []):
            self.assertIsNone(ProductReference.of(value))

    def test_load_skips_inactive_products(self):
        """Test loading never returns an inactive product."""
        product = Product.objects.create(name='Teapot', sku='TEA-1', price=Decimal('25.00'))
        product.deactivate()

        self.assertIsNone(ProductReference.of(product).load())
        self.assertIsNone(ProductReference.of(str(product.pk)).load())
        self.assertIsNone(ProductReference.of('not-a-uuid').load())


@preset()
class ShippingTemplateAdapterTests(ShippingPresetTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.adapter = ShippingTemplateAdapter()

    def test_explicit_context(self):
        """Test estimating with the visitor context."""
        self.assertEqual(
            self.adapter.per_item_shipping(self.product, sales_channel_context=self.base_context()),
            6.9
        )

    def test_throwaway_context_for_sales_channel_id(self):
        """Test estimating with only a sales channel id."""
        total = self.adapter.per_item_shipping(
            {'id': str(self.product.pk)},
            sales_channel_id=str(self.channel.pk)
        )
        self.assertEqual(total, 6.9)

    def test_resolution_failures_give_none(self):
        """Test missing context, product or channel give None."""
        self.assertIsNone(self.adapter.per_item_shipping(self.product))
        self.assertIsNone(self.adapter.per_item_shipping(None, sales_channel_id=self.channel.pk))
        self.assertIsNone(self.adapter.per_item_shipping(self.product, sales_channel_id=uuid.uuid4()))

    def test_calculator_is_shared_within_a_request(self):
        """Test one calculator is shared per request."""
        request = RequestFactory().get('/')

        self.assertIs(get_per_item_shipping_calculator(request), get_per_item_shipping_calculator(request))
        self.assertIsNot(get_per_item_shipping_calculator(), get_per_item_shipping_calculator())

    def test_template_tag(self):
        """Test the per_item_shipping template tag."""
        template = Template(
            '{% load l10n shipping_preset %}'
            '{% per_item_shipping product as shipping %}{{ shipping|unlocalize }}'
            '|{% per_item_shipping product.pk sales_channel_id=channel_id zipcode="10115" as other %}{{ other|unlocalize }}'
        )
        rendered = template.render(Context({
            'product': self.product,
            'sales_channel_context': self.base_context(),
            'channel_id': str(self.channel.pk),
            'request': RequestFactory().get('/'),
        }))

        self.assertEqual(rendered, '6.9|6.9')

    def test_template_tag_without_context(self):
        """Test the template tag without a pricing context."""
        template = Template('{% load shipping_preset %}{% per_item_shipping product as shipping %}{{ shipping|default:"n/a" }}')

        self.assertEqual(template.render(Context({'product': self.product})), 'n/a')


class ContextPresetReceiverTests(TestCase):
    """Tests for the guest shipping preset applied on context creation."""

    def setUp(self):
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')
        self.channel = SalesChannel.objects.create(name='Storefront', default_country=self.austria)
        self.factory = SalesChannelContextFactory()

    def test_guest_without_override_gets_defaults(self):
        """Test guests without an override get the default destination."""
        context = self.factory.create('token', self.channel.pk, request=SimpleNamespace(session={}))

        location = context.shipping_location
        self.assertEqual(location.country, self.germany)
        self.assertEqual(location.zipcode, '00000')
        self.assertEqual(location.address.id, GUEST_ADDRESS_ID)
        self.assertEqual(location.address.city, 'Default City')

    def test_guest_without_request_gets_defaults(self):
        """Test contexts built without a request get the defaults."""
        context = self.factory.create('token', self.channel.pk)

        self.assertEqual(context.shipping_location.country_iso, 'DE')
        self.assertEqual(context.shipping_location.zipcode, '00000')

    def test_session_override_is_applied(self):
        """Test the session override is applied to guests."""
        session = {SESSION_KEY_COUNTRY_ISO: 'at', SESSION_KEY_ZIPCODE: '1010 '}
        context = self.factory.create('token', self.channel.pk, request=SimpleNamespace(session=session))

        self.assertEqual(context.shipping_location.country, self.austria)
        self.assertEqual(context.shipping_location.zipcode, '1010')

    def test_authenticated_customer_is_never_changed(self):
        """Test logged-in customers keep their own location."""
        user = User.objects.create_user(username='customer', password='TestPass123!')
        session = {SESSION_KEY_COUNTRY_ISO: 'DE', SESSION_KEY_ZIPCODE: '10115'}

        context = self.factory.create(
            'token', self.channel.pk,
            request=SimpleNamespace(session=session),
            customer=user
        )

        self.assertEqual(context.shipping_location.country, self.austria)
        self.assertIsNone(context.shipping_location.address)

    def test_matching_guest_context_is_not_reassigned(self):
        """Test a matching guest location is left in place."""
        context = self.factory.create('token', self.channel.pk)
        location = build_guest_location(self.germany, '00000')
        context.shipping_location = location

        apply_context_preset(sender=SalesChannelContextFactory, context=context, request=None)

        self.assertIs(context.shipping_location, location)

    def test_unknown_country_is_ignored(self):
        """Test an override with an unknown country is ignored."""
        session = {SESSION_KEY_COUNTRY_ISO: 'XX', SESSION_KEY_ZIPCODE: '12345'}
        context = self.factory.create('token', self.channel.pk, request=SimpleNamespace(session=session))

        self.assertEqual(context.shipping_location.country, self.austria)
        self.assertIsNone(context.shipping_location.address)


class ShippingEstimateAPITests(APITestCase):
    """Tests for GET /shipping/estimate."""

    def setUp(self):
        self.url = reverse('shipping_preset:estimate')
        self.ajax = {'HTTP_X_REQUESTED_WITH': 'XMLHttpRequest'}

    def test_stores_destination_in_session(self):
        """Test a valid destination is stored in the session."""
        response = self.client.get(self.url, {'countryIso': ' at ', 'zipcode': ' 1010 '}, **self.ajax)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True, 'countryIso': 'AT', 'zipcode': '1010'})
        self.assertEqual(self.client.session[SESSION_KEY_COUNTRY_ISO], 'AT')
        self.assertEqual(self.client.session[SESSION_KEY_ZIPCODE], '1010')

    def test_blank_zipcode_is_rejected(self):
        """Test a blank zipcode is rejected."""
        response = self.client.get(self.url, {'countryIso': 'AT', 'zipcode': '  '}, **self.ajax)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['message'], 'countryIso and zipcode are required')
        self.assertNotIn(SESSION_KEY_COUNTRY_ISO, self.client.session)
        self.assertNotIn(SESSION_KEY_ZIPCODE, self.client.session)

    def test_missing_country_is_rejected(self):
        """Test a missing country is rejected."""
        response = self.client.get(self.url, {'zipcode': '1010'}, **self.ajax)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_parameters_are_rejected(self):
        """Test malformed parameters get the same flat error body."""
        response = self.client.get(self.url, {'countryIso': 'A\x00', 'zipcode': '1010'}, **self.ajax)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data,
            {'success': False, 'message': 'countryIso and zipcode are required'}
        )
        self.assertNotIn(SESSION_KEY_COUNTRY_ISO, self.client.session)

    def test_path_with_and_without_trailing_slash(self):
        """Test the endpoint answers with and without a trailing slash."""
        for url in ('/shipping/estimate', '/shipping/estimate/'):
            response = self.client.get(url, {'countryIso': 'AT', 'zipcode': '1010'}, **self.ajax)

            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertTrue(response.data['success'])

    def test_non_ajax_request_is_forbidden(self):
        """Test non-AJAX requests are forbidden."""
        response = self.client.get(self.url, {'countryIso': 'AT', 'zipcode': '1010'})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data['success'])
        self.assertNotIn(SESSION_KEY_COUNTRY_ISO, self.client.session)

    def test_request_without_session(self):
        """Test a request without a session fails with 500."""
        request = APIRequestFactory().get(self.url, {'countryIso': 'AT', 'zipcode': '1010'}, **self.ajax)

        response = ShippingEstimateView.as_view()(request)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'success': False, 'message': 'Session is not available'})
