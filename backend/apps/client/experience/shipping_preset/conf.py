"""
Shipping Preset Configuration
=============================
Default estimation destination, read from settings.SHIPPING_PRESET:

    SHIPPING_PRESET = {
        'COUNTRY_ID': '',
        'COUNTRY_ISO': 'DE',
        'ZIPCODE': '00000',
        'SALES_CHANNELS': {
            '<sales channel id>': {'COUNTRY_ISO': 'AT', 'ZIPCODE': '1010'},
        },
    }

Per-channel entries override the global values key by key.
"""

from dataclasses import dataclass
from typing import Optional
from django.conf import settings

DEFAULT_COUNTRY_ISO = 'DE'
DEFAULT_ZIPCODE = '00000'


@dataclass(frozen=True)
class PresetConfig:
    country_id: Optional[str] = None
    country_iso: Optional[str] = None
    zipcode: Optional[str] = None


def get_preset_config(sales_channel_id=None) -> PresetConfig:
    config = getattr(settings, 'SHIPPING_PRESET', None) or {}
    values = {
        'COUNTRY_ID': config.get('COUNTRY_ID'),
        'COUNTRY_ISO': config.get('COUNTRY_ISO'),
        'ZIPCODE': config.get('ZIPCODE'),
    }

    if sales_channel_id is not None:
        channel_config = (config.get('SALES_CHANNELS') or {}).get(str(sales_channel_id)) or {}
        values.update({k: v for k, v in channel_config.items() if k in values})

    return PresetConfig(
        country_id=values['COUNTRY_ID'] or None,
        country_iso=values['COUNTRY_ISO'],
        zipcode=values['ZIPCODE'],
    )


def normalize_country_iso(value) -> str:
    iso = str(value or '').strip().upper()
    return iso or DEFAULT_COUNTRY_ISO


def normalize_zipcode(value) -> str:
    zipcode = str(value or '').strip()
    return zipcode or DEFAULT_ZIPCODE
