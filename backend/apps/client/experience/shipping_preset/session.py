"""
Session Override Store
======================
Country / zipcode pair a guest picked for shipping estimates, kept in the session.
"""

from dataclasses import dataclass
from typing import Optional

SESSION_KEY_COUNTRY_ISO = 'keszler_shipping_context_preset.countryIso'
SESSION_KEY_ZIPCODE = 'keszler_shipping_context_preset.zipcode'


@dataclass(frozen=True)
class ShippingOverride:
    country_iso: str
    zipcode: str


class ShippingOverrideStore:
    """Read and write the override on a Django session."""

    def __init__(self, session):
        self.session = session

    @classmethod
    def from_request(cls, request) -> Optional['ShippingOverrideStore']:
        session = getattr(request, 'session', None) if request is not None else None
        if session is None:
            return None
        return cls(session)

    def save(self, country_iso: str, zipcode: str) -> None:
        self.session[SESSION_KEY_COUNTRY_ISO] = country_iso
        self.session[SESSION_KEY_ZIPCODE] = zipcode

    def load(self) -> Optional[ShippingOverride]:
        country_iso = self.session.get(SESSION_KEY_COUNTRY_ISO)
        zipcode = self.session.get(SESSION_KEY_ZIPCODE)

        if not isinstance(country_iso, str) or not isinstance(zipcode, str):
            return None
        if not country_iso.strip() or not zipcode.strip():
            return None

        return ShippingOverride(
            country_iso=country_iso.strip().upper(),
            zipcode=zipcode.strip()
        )
