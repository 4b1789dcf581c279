"""
Shipping Models for Keszler Storefront
======================================
Shipping methods, their rates and the availability rules that gate them.
"""

from decimal import Decimal
from django.db import models
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator
from apps.base.core.system.models import StorefrontBaseModel


class AvailabilityRule(StorefrontBaseModel):
    """
    Destination / cart condition a shipping method can be restricted to.
    Empty country and zipcode lists match any destination.
    """

    name = models.CharField(_('Name'), max_length=100)
    countries = models.ManyToManyField(
        'locations.Country',
        related_name='availability_rules',
        blank=True
    )
    zipcode_prefixes = models.JSONField(
        _('Zipcode prefixes'),
        default=list,
        blank=True,
        help_text=_('Destination zipcodes must start with one of these')
    )
    min_cart_total = models.DecimalField(
        _('Minimum cart total'),
        max_digits=15,
        decimal_places=2,
        blank=True,
        null=True
    )

    class Meta:
        verbose_name = _('Availability Rule')
        verbose_name_plural = _('Availability Rules')
        ordering = ['name']

    def __str__(self):
        return self.name

    def matches(self, country, zipcode, cart_total=None) -> bool:
        """
        Check the rule against a destination and, optionally, a cart total.

        Args:
            country: Country instance or None
            zipcode: Destination zipcode or None
            cart_total: Cart price (Decimal) or None when no cart is known yet

        Returns:
            bool: True if every configured condition holds
        """
        country_ids = {c.pk for c in self.countries.all()}
        if country_ids and (country is None or country.pk not in country_ids):
            return False

        if self.zipcode_prefixes:
            zipcode = (zipcode or '').strip()
            if not any(zipcode.startswith(str(prefix)) for prefix in self.zipcode_prefixes):
                return False

        if self.min_cart_total is not None:
            if cart_total is None or cart_total < self.min_cart_total:
                return False

        return True


class ShippingMethod(StorefrontBaseModel):
    """
    Shipping method (Express, Standard, Economy, etc.)
    """

    code = models.CharField(_('Code'), max_length=50, unique=True)
    name = models.CharField(_('Name'), max_length=100)
    description = models.TextField(_('Description'), blank=True)

    availability_rule = models.ForeignKey(
        AvailabilityRule,
        on_delete=models.SET_NULL,
        related_name='shipping_methods',
        blank=True,
        null=True
    )
    sales_channels = models.ManyToManyField(
        'sales_channels.SalesChannel',
        related_name='shipping_methods',
        blank=True
    )

    # Delivery time
    min_delivery_days = models.PositiveIntegerField(
        _('Min delivery days'),
        default=1
    )
    max_delivery_days = models.PositiveIntegerField(
        _('Max delivery days'),
        default=3
    )

    position = models.PositiveIntegerField(_('Position'), default=1, db_index=True)

    class Meta:
        verbose_name = _('Shipping Method')
        verbose_name_plural = _('Shipping Methods')
        ordering = ['position', 'name']

    def __str__(self):
        return self.name


class ShippingRate(StorefrontBaseModel):
    """
    Shipping rate of a method for a set of destination countries.
    Supports weight-based and value-based pricing.
    """

    method = models.ForeignKey(
        ShippingMethod,
        on_delete=models.CASCADE,
        related_name='rates'
    )
    countries = models.ManyToManyField(
        'locations.Country',
        related_name='shipping_rates',
        blank=True,
        help_text=_('Leave empty to apply to every destination')
    )
    name = models.CharField(_('Rate name'), max_length=100)

    # Base rate
    base_rate = models.DecimalField(
        _('Base rate'),
        max_digits=15,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)]
    )

    # Weight-based pricing
    min_weight = models.DecimalField(
        _('Min weight (kg)'),
        max_digits=10,
        decimal_places=3,
        default=0
    )
    max_weight = models.DecimalField(
        _('Max weight (kg)'),
        max_digits=10,
        decimal_places=3,
        blank=True,
        null=True
    )
    rate_per_kg = models.DecimalField(
        _('Rate per kg'),
        max_digits=10,
        decimal_places=2,
        default=0
    )

    # Free shipping threshold
    free_shipping_threshold = models.DecimalField(
        _('Free shipping threshold'),
        max_digits=15,
        decimal_places=2,
        blank=True,
        null=True
    )

    class Meta:
        verbose_name = _('Shipping Rate')
        verbose_name_plural = _('Shipping Rates')
        ordering = ['method', 'min_weight']

    def __str__(self):
        return f'{self.method.name} - {self.name}'

    def applies_to(self, country, weight: Decimal) -> bool:
        """Check destination country and weight bracket."""
        if not self.is_active:
            return False

        country_ids = {c.pk for c in self.countries.all()}
        if country_ids and (country is None or country.pk not in country_ids):
            return False

        if weight < self.min_weight:
            return False
        if self.max_weight is not None and weight > self.max_weight:
            return False

        return True

    def calculate_rate(
        self,
        weight: Decimal,
        order_value: Decimal
    ) -> Decimal:
        """
        Calculate shipping rate based on weight and order value.

        Args:
            weight: Total weight in kg
            order_value: Order subtotal

        Returns:
            Decimal: Calculated shipping cost
        """
        # Free shipping check
        if self.free_shipping_threshold and order_value >= self.free_shipping_threshold:
            return Decimal('0')

        # Base rate + weight-based rate
        if weight <= 0:
            weight = Decimal('0.5')  # Minimum weight

        shipping_cost = self.base_rate + (self.rate_per_kg * weight)

        return shipping_cost.quantize(Decimal('0.01'))
