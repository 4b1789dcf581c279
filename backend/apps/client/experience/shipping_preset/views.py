"""
Shipping Preset Views for Keszler Storefront
============================================
Lets guests pick the destination used for shipping estimates.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import BasePermission
from rest_framework import status
from drf_spectacular.utils import extend_schema
import logging

from apps.base.core.system.exceptions import ErrorMessages
from .serializers import ShippingEstimateQuerySerializer, ShippingEstimateResponseSerializer
from .session import ShippingOverrideStore

logger = logging.getLogger(__name__)


class IsAjaxRequest(BasePermission):
    """Only XMLHttpRequest calls."""
    message = ErrorMessages.AJAX_REQUIRED

    def has_permission(self, request, view):
        return request.headers.get('X-Requested-With') == 'XMLHttpRequest'


@extend_schema(
    tags=['Shipping'],
    parameters=[ShippingEstimateQuerySerializer],
    responses={
        200: ShippingEstimateResponseSerializer,
        400: ShippingEstimateResponseSerializer,
        500: ShippingEstimateResponseSerializer,
    }
)
class ShippingEstimateView(APIView):
    """Store the visitor's shipping destination in the session."""
    permission_classes = [IsAjaxRequest]

    def get(self, request, *args, **kwargs):
        serializer = ShippingEstimateQuerySerializer(data=request.query_params)
        valid = serializer.is_valid()
        country_iso = serializer.validated_data.get('countryIso') if valid else None
        zipcode = serializer.validated_data.get('zipcode') if valid else None

        # Malformed and missing parameters share the same answer
        if not country_iso or not zipcode:
            return Response(
                {'success': False, 'message': ErrorMessages.ESTIMATE_PARAMS_REQUIRED},
                status=status.HTTP_400_BAD_REQUEST
            )

        store = ShippingOverrideStore.from_request(request)
        if store is None:
            logger.error(f"Shipping estimate without session: {request.path}")
            return Response(
                {'success': False, 'message': ErrorMessages.SESSION_UNAVAILABLE},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        store.save(country_iso, zipcode)
        logger.debug(f"Shipping destination stored: {country_iso} {zipcode}")

        return Response({
            'success': True,
            'countryIso': country_iso,
            'zipcode': zipcode,
        })
