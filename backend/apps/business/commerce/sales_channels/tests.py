"""
Sales Channel Tests for Keszler Storefront
==========================================
Context creation, the creation signal and the request middleware.
"""

from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase
from unittest.mock import MagicMock
import uuid

from apps.base.core.locations.models import Country
from apps.base.core.system.exceptions import SalesChannelNotFoundError
from apps.business.partners.shipping.models import AvailabilityRule, ShippingMethod
from .context import ContextOptions
from .models import SalesChannel
from .services import SalesChannelContextFactory
from .signals import sales_channel_context_created

User = get_user_model()


class SalesChannelContextFactoryTests(TestCase):

    def setUp(self):
        # No German country: the guest shipping preset leaves contexts alone
        self.austria = Country.objects.create(name='Austria', code='AT')
        self.france = Country.objects.create(name='France', code='FR')
        self.standard = ShippingMethod.objects.create(code='standard', name='Standard')
        self.express = ShippingMethod.objects.create(code='express', name='Express')
        self.channel = SalesChannel.objects.create(
            name='Storefront',
            default_country=self.austria,
            default_shipping_method=self.standard
        )
        self.factory = SalesChannelContextFactory()

    def test_context_uses_channel_defaults(self):
        """Test contexts start from the channel defaults."""
        context = self.factory.create('token', self.channel.pk)

        self.assertEqual(context.token, 'token')
        self.assertEqual(context.sales_channel_id, self.channel.pk)
        self.assertEqual(context.currency, 'EUR')
        self.assertEqual(context.language, 'de')
        self.assertEqual(context.payment_method, 'invoice')
        self.assertEqual(context.shipping_location.country, self.austria)
        self.assertEqual(context.shipping_method, self.standard)
        self.assertTrue(context.is_guest)

    def test_options_override_defaults(self):
        """Test context options override channel defaults."""
        context = self.factory.create('token', str(self.channel.pk), options={
            ContextOptions.CURRENCY: 'CHF',
            ContextOptions.LANGUAGE: 'fr',
            ContextOptions.PAYMENT_METHOD: 'prepayment',
            ContextOptions.COUNTRY_ID: self.france.pk,
            ContextOptions.SHIPPING_METHOD_ID: self.express.pk,
        })

        self.assertEqual(context.currency, 'CHF')
        self.assertEqual(context.language, 'fr')
        self.assertEqual(context.payment_method, 'prepayment')
        self.assertEqual(context.shipping_location.country, self.france)
        self.assertEqual(context.shipping_method, self.express)

    def test_malformed_options_fall_back_to_defaults(self):
        """Test malformed options fall back to defaults."""
        context = self.factory.create('token', self.channel.pk, options={
            ContextOptions.COUNTRY_ID: 'nope',
            ContextOptions.SHIPPING_METHOD_ID: 'nope',
        })

        self.assertEqual(context.shipping_location.country, self.austria)
        self.assertEqual(context.shipping_method, self.standard)

    def test_unknown_channel_raises(self):
        """Test unknown channels raise SalesChannelNotFoundError."""
        with self.assertRaises(SalesChannelNotFoundError):
            self.factory.create('token', uuid.uuid4())

        with self.assertRaises(SalesChannelNotFoundError):
            self.factory.create('token', 'not-a-uuid')

    def test_inactive_channel_raises(self):
        """Test inactive channels raise SalesChannelNotFoundError."""
        self.channel.deactivate()

        with self.assertRaises(SalesChannelNotFoundError):
            self.factory.create('token', self.channel.pk)

    def test_creation_signal_carries_context_and_request(self):
        """Test the creation signal sends context and request."""
        handler = MagicMock()
        sales_channel_context_created.connect(handler, weak=False)
        self.addCleanup(sales_channel_context_created.disconnect, handler)
        request = object()

        context = self.factory.create('token', self.channel.pk, request=request)

        handler.assert_called_once()
        kwargs = handler.call_args.kwargs
        self.assertIs(kwargs['context'], context)
        self.assertIs(kwargs['request'], request)
        self.assertIs(kwargs['sender'], SalesChannelContextFactory)

    def test_rule_ids_are_loaded(self):
        """Test matching availability rules are loaded."""
        rule = AvailabilityRule.objects.create(name='Austria')
        rule.countries.add(self.austria)
        AvailabilityRule.objects.create(name='France').countries.add(self.france)

        context = self.factory.create('token', self.channel.pk)

        self.assertEqual(context.rule_ids, frozenset({rule.pk}))


class SalesChannelContextMiddlewareTests(APITestCase):

    def setUp(self):
        self.austria = Country.objects.create(name='Austria', code='AT')
        self.channel = SalesChannel.objects.create(name='Storefront', default_country=self.austria)
        self.url = '/api/v1/locations/countries/'

    def test_no_channel_gives_no_context(self):
        """Test requests without a channel get no context."""
        response = self.client.get(self.url)
        self.assertIsNone(response.wsgi_request.sales_channel_context)

    def test_channel_from_header(self):
        """Test the channel is read from the X-Sales-Channel header."""
        response = self.client.get(self.url, HTTP_X_SALES_CHANNEL=str(self.channel.pk))

        context = response.wsgi_request.sales_channel_context
        self.assertEqual(context.sales_channel, self.channel)
        self.assertTrue(context.is_guest)

    def test_channel_from_settings(self):
        """Test the configured default channel is used."""
        config = {'DEFAULT_SALES_CHANNEL': str(self.channel.pk)}
        with override_settings(STOREFRONT_CONFIG=config):
            response = self.client.get(self.url)

        self.assertEqual(response.wsgi_request.sales_channel_context.sales_channel, self.channel)

    def test_unknown_channel_gives_no_context(self):
        """Test an unknown channel gives no context."""
        response = self.client.get(self.url, HTTP_X_SALES_CHANNEL=str(uuid.uuid4()))
        self.assertIsNone(response.wsgi_request.sales_channel_context)

    def test_authenticated_user_is_the_customer(self):
        """Test a logged-in user becomes the customer."""
        user = User.objects.create_user(username='customer', password='TestPass123!')
        self.client.force_login(user)

        response = self.client.get(self.url, HTTP_X_SALES_CHANNEL=str(self.channel.pk))

        context = response.wsgi_request.sales_channel_context
        self.assertEqual(context.customer, user)
        self.assertFalse(context.is_guest)
