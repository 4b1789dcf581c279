"""
Location Views for Keszler Storefront
=====================================
Destination choices for the shipping estimate widget.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import OpenApiParameter, extend_schema

from apps.base.core.system.exceptions import ErrorMessages, NotFoundError
from .serializers import CountrySerializer, CountryListSerializer
from .services import CountryResolver


def current_destination_iso(request):
    """ISO code of the request's shipping destination, if a pricing context exists."""
    context = getattr(request, 'sales_channel_context', None)
    if context is None:
        return None
    return context.shipping_location.country_iso


@extend_schema(
    tags=['Locations'],
    parameters=[OpenApiParameter('shipping_only', bool, required=False)],
    responses={200: CountryListSerializer(many=True)}
)
class CountryListView(APIView):
    """Active countries, flagging the visitor's current destination."""
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        shipping_only = request.query_params.get('shipping_only', 'false').lower() == 'true'

        countries = CountryResolver().destinations(shipping_only=shipping_only)
        serializer = CountryListSerializer(
            countries,
            many=True,
            context={'selected_iso': current_destination_iso(request)}
        )
        return Response(serializer.data)


@extend_schema(tags=['Locations'], responses={200: CountrySerializer})
class CountryDetailView(APIView):
    """Active country by ISO code."""
    permission_classes = [AllowAny]

    def get(self, request, code, *args, **kwargs):
        country = CountryResolver().by_iso(code)
        if country is None or not country.is_active:
            raise NotFoundError(ErrorMessages.COUNTRY_NOT_FOUND, code='country_not_found')

        return Response(CountrySerializer(country).data)
