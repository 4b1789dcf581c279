"""
Template tags for shipping estimates.

    {% load shipping_preset %}
    {% per_item_shipping product as shipping %}
    {% per_item_shipping product.id sales_channel_id=channel_id zipcode="10115" as shipping %}
"""

from django import template

from ..adapter import ShippingTemplateAdapter, get_per_item_shipping_calculator

register = template.Library()


@register.simple_tag(takes_context=True)
def per_item_shipping(context, product, sales_channel_id=None, zipcode=None):
    request = context.get('request')
    adapter = ShippingTemplateAdapter(calculator=get_per_item_shipping_calculator(request))
    return adapter.per_item_shipping(
        product,
        sales_channel_context=context.get('sales_channel_context'),
        sales_channel_id=sales_channel_id,
        zipcode=zipcode,
        request=request,
    )
