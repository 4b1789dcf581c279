"""
Placeholder guest address for destinations known only by country and zipcode.
"""

from apps.business.commerce.sales_channels.context import Address, ShippingLocation

GUEST_ADDRESS_ID = 'keszler-shipping-context-preset-address'


def build_guest_address(country, zipcode: str) -> Address:
    return Address(
        id=GUEST_ADDRESS_ID,
        country=country,
        zipcode=zipcode,
        first_name='Guest',
        last_name='Checkout',
        city='Default City',
        street='Default Street 1',
    )


def build_guest_location(country, zipcode: str) -> ShippingLocation:
    return ShippingLocation.from_address(build_guest_address(country, zipcode))
