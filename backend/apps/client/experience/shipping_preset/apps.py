from django.apps import AppConfig


class ShippingPresetConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.client.experience.shipping_preset'
    label = 'shipping_preset'

    def ready(self):
        from . import receivers  # noqa: F401
