"""
Sales Channel Models for Keszler Storefront
===========================================
A sales channel bundles the defaults every pricing context starts from.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _
from apps.base.core.system.models import StorefrontBaseModel


class SalesChannel(StorefrontBaseModel):
    """
    Storefront sales channel.
    """

    name = models.CharField(_('Name'), max_length=100)
    currency = models.CharField(_('Currency'), max_length=3, default='EUR')
    language = models.CharField(_('Language'), max_length=10, default='de')
    payment_method = models.CharField(
        _('Default payment method'),
        max_length=50,
        default='invoice'
    )

    default_country = models.ForeignKey(
        'locations.Country',
        on_delete=models.PROTECT,
        related_name='+',
        blank=True,
        null=True
    )
    default_shipping_method = models.ForeignKey(
        'shipping.ShippingMethod',
        on_delete=models.SET_NULL,
        related_name='+',
        blank=True,
        null=True
    )

    class Meta:
        verbose_name = _('Sales Channel')
        verbose_name_plural = _('Sales Channels')
        ordering = ['name']

    def __str__(self):
        return self.name
