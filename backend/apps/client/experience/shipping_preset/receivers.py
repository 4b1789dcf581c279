"""
Shipping Context Preset Receivers
=================================
Moves the shipping location of new guest contexts to the destination the
visitor picked (session override) or to the preset default.
"""

from django.dispatch import receiver
import logging

from apps.base.core.locations.services import CountryResolver
from apps.business.commerce.sales_channels.signals import sales_channel_context_created
from .conf import DEFAULT_COUNTRY_ISO, DEFAULT_ZIPCODE
from .guest import build_guest_location
from .session import ShippingOverrideStore

logger = logging.getLogger(__name__)


@receiver(sales_channel_context_created, dispatch_uid='shipping_preset_apply_context_preset')
def apply_context_preset(sender, context, request=None, **kwargs):
    """Apply the session override (or the defaults) to a guest context."""
    if context.customer is not None:
        return

    store = ShippingOverrideStore.from_request(request)
    override = store.load() if store is not None else None

    target_iso = override.country_iso if override else DEFAULT_COUNTRY_ISO
    target_zipcode = override.zipcode if override else DEFAULT_ZIPCODE

    location = context.shipping_location
    if location.country_iso == target_iso and location.zipcode == target_zipcode:
        return

    country = CountryResolver().by_iso(target_iso)
    if country is None:
        logger.debug(f"Shipping preset skipped: unknown country {target_iso}")
        return

    context.shipping_location = build_guest_location(country, target_zipcode)
    logger.debug(f"Shipping preset applied to context {context.token}: {target_iso} {target_zipcode}")
