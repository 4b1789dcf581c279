"""
Sales Channel Middleware for Keszler Storefront
===============================================
Creates the pricing context of each storefront request.
Must run after the session and authentication middleware.
"""

import uuid
import logging
from django.conf import settings

from apps.base.core.system.exceptions import SalesChannelNotFoundError
from .services import get_context_factory

logger = logging.getLogger(__name__)


class SalesChannelContextMiddleware:
    """Attach request.sales_channel_context (None when no channel applies)."""

    header = 'X-Sales-Channel'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.sales_channel_context = self.resolve_context(request)
        return self.get_response(request)

    def resolve_context(self, request):
        sales_channel_id = (
            request.headers.get(self.header)
            or settings.STOREFRONT_CONFIG.get('DEFAULT_SALES_CHANNEL')
        )
        if not sales_channel_id:
            return None

        session = getattr(request, 'session', None)
        token = session.session_key if session is not None and session.session_key else uuid.uuid4().hex

        user = getattr(request, 'user', None)
        customer = user if user is not None and user.is_authenticated else None

        try:
            return get_context_factory().create(
                token,
                sales_channel_id,
                request=request,
                customer=customer
            )
        except SalesChannelNotFoundError:
            logger.warning(f"No active sales channel {sales_channel_id!r} for {request.path}")
            return None
