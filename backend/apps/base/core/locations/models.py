"""
Location Models for Keszler Storefront
======================================
Countries used as shipping destinations.
"""

import uuid
from django.db import models
from apps.base.core.system.models import TimeStampedModel


class Country(TimeStampedModel):
    """
    Country model with shipping information.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=2, unique=True, help_text='ISO 3166-1 alpha-2')
    code_alpha3 = models.CharField(max_length=3, blank=True, help_text='ISO 3166-1 alpha-3')

    # Shipping settings
    is_shipping_available = models.BooleanField(default=True)

    # Display
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'countries'
        verbose_name_plural = 'Countries'
        ordering = ['order', 'name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.code = (self.code or '').upper()
        self.code_alpha3 = (self.code_alpha3 or '').upper()
        super().save(*args, **kwargs)

    @property
    def iso(self):
        return self.code
