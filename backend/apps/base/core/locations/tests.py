"""
Location Tests for Keszler Storefront
=====================================
"""

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
import uuid

from apps.business.commerce.sales_channels.models import SalesChannel
from .models import Country
from .services import CountryResolver


class CountryModelTests(TestCase):

    def test_codes_are_uppercased_on_save(self):
        """Test ISO codes are upper-cased on save."""
        country = Country.objects.create(name='Austria', code='at', code_alpha3='aut')

        self.assertEqual(country.code, 'AT')
        self.assertEqual(country.code_alpha3, 'AUT')
        self.assertEqual(country.iso, 'AT')


class CountryResolverTests(TestCase):
    """Tests for id / ISO country resolution."""

    def setUp(self):
        self.resolver = CountryResolver()
        self.germany = Country.objects.create(name='Germany', code='DE')
        self.austria = Country.objects.create(name='Austria', code='AT')

    def test_id_takes_precedence_over_iso(self):
        """Test the country id wins over the ISO code."""
        country = self.resolver.resolve(country_id=self.austria.pk, iso='DE')
        self.assertEqual(country, self.austria)

    def test_unknown_id_falls_back_to_iso(self):
        """Test an unknown id falls back to the ISO code."""
        country = self.resolver.resolve(country_id=uuid.uuid4(), iso='DE')
        self.assertEqual(country, self.germany)

    def test_malformed_id_falls_back_to_iso(self):
        """Test a malformed id falls back to the ISO code."""
        country = self.resolver.resolve(country_id='not-a-uuid', iso='AT')
        self.assertEqual(country, self.austria)

    def test_iso_lookup_is_case_insensitive(self):
        """Test ISO lookup ignores case and whitespace."""
        self.assertEqual(self.resolver.by_iso(' de '), self.germany)

    def test_nothing_resolvable_returns_none(self):
        """Test nothing resolvable gives None."""
        self.assertIsNone(self.resolver.resolve(country_id=uuid.uuid4(), iso='FR'))
        self.assertIsNone(self.resolver.resolve())

    def test_destinations_in_display_order(self):
        """Test destinations are the active countries in display order."""
        self.germany.order = 2
        self.germany.save()
        Country.objects.create(name='Atlantis', code='XA', is_active=False)

        self.assertEqual(list(self.resolver.destinations()), [self.austria, self.germany])


class CountryAPITests(APITestCase):

    def setUp(self):
        Country.objects.create(name='Germany', code='DE', order=1)
        Country.objects.create(name='Austria', code='AT', order=2)
        Country.objects.create(name='Iceland', code='IS', order=3, is_shipping_available=False)
        Country.objects.create(name='Atlantis', code='XA', order=4, is_active=False)

    def test_list_active_countries(self):
        """Test listing active countries in display order."""
        response = self.client.get(reverse('api-v1:locations:country-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['code'] for c in response.data], ['DE', 'AT', 'IS'])

    def test_list_shipping_countries_only(self):
        """Test filtering countries that accept shipments."""
        response = self.client.get(
            reverse('api-v1:locations:country-list'),
            {'shipping_only': 'true'}
        )

        self.assertEqual([c['code'] for c in response.data], ['DE', 'AT'])

    def test_country_detail_by_code(self):
        """Test getting a country by lower-case ISO code."""
        response = self.client.get(reverse('api-v1:locations:country-detail', args=['de']))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Germany')

    def test_inactive_country_detail_is_not_found(self):
        """Test inactive countries are not found."""
        response = self.client.get(reverse('api-v1:locations:country-detail', args=['XA']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'country_not_found')
        self.assertEqual(response.data['error']['message'], 'Country not found')

    def test_unknown_country_detail_is_not_found(self):
        """Test unknown ISO codes are not found."""
        response = self.client.get(reverse('api-v1:locations:country-detail', args=['QQ']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_flags_current_destination(self):
        """Test the visitor's stored destination is flagged in the list."""
        channel = SalesChannel.objects.create(
            name='Storefront',
            default_country=Country.objects.get(code='DE')
        )
        self.client.get(
            '/shipping/estimate',
            {'countryIso': 'AT', 'zipcode': '1010'},
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )

        response = self.client.get(
            reverse('api-v1:locations:country-list'),
            HTTP_X_SALES_CHANNEL=str(channel.pk)
        )

        selected = [c['code'] for c in response.data if c['is_selected']]
        self.assertEqual(selected, ['AT'])

    def test_list_without_context_flags_nothing(self):
        """Test no country is flagged without a pricing context."""
        response = self.client.get(reverse('api-v1:locations:country-list'))

        self.assertFalse(any(c['is_selected'] for c in response.data))
