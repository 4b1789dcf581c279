"""
Product Models for Keszler Storefront
=====================================
Catalogue data the shipping estimate needs: price, stock and parcel attributes.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator
from apps.base.core.system.models import StorefrontBaseModel


class Product(StorefrontBaseModel):
    """
    Main product model.
    """

    # Basic Info
    name = models.CharField(_('Name'), max_length=500)
    sku = models.CharField(
        _('SKU'),
        max_length=100,
        unique=True,
        db_index=True
    )

    # Pricing
    price = models.DecimalField(
        _('Price'),
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(0)]
    )

    # Inventory
    stock_quantity = models.PositiveIntegerField(_('Stock quantity'), default=0)
    restock_days = models.PositiveIntegerField(
        _('Restock time (days)'),
        blank=True,
        null=True
    )

    # Shipping
    weight = models.DecimalField(
        _('Weight (kg)'),
        max_digits=10,
        decimal_places=3,
        blank=True,
        null=True
    )
    length = models.DecimalField(
        _('Length (cm)'),
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )
    width = models.DecimalField(
        _('Width (cm)'),
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )
    height = models.DecimalField(
        _('Height (cm)'),
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )
    requires_shipping = models.BooleanField(_('Requires shipping'), default=True)
    shipping_free = models.BooleanField(_('Ships for free'), default=False)
    min_delivery_days = models.PositiveIntegerField(
        _('Min delivery days'),
        blank=True,
        null=True
    )
    max_delivery_days = models.PositiveIntegerField(
        _('Max delivery days'),
        blank=True,
        null=True
    )

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def has_delivery_time(self):
        return self.min_delivery_days is not None and self.max_delivery_days is not None
