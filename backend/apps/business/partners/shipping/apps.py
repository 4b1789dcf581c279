from django.apps import AppConfig

class ShippingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.business.partners.shipping'
    label = 'shipping'
