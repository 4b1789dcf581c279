"""
Template context processor exposing the request's pricing context.
"""


def sales_channel_context(request):
    return {
        'sales_channel_context': getattr(request, 'sales_channel_context', None),
    }
