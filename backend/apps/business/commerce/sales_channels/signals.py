"""
Sales Channel Signals
=====================
"""

from django.dispatch import Signal

# Sent once per new pricing context, before its rule ids are loaded.
# Keyword arguments: context (SalesChannelContext), request (HttpRequest or None)
sales_channel_context_created = Signal()
