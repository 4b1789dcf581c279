"""
Custom Exception Handlers for Keszler Storefront
================================================
Provides consistent error responses across all API endpoints.
"""

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
import logging

logger = logging.getLogger(__name__)


class StorefrontBaseException(Exception):
    """Base exception for all storefront custom exceptions."""
    default_message = "An error occurred"
    default_code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, extra_data=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.extra_data = extra_data or {}
        super().__init__(self.message)


class ValidationError(StorefrontBaseException):
    """Validation errors for business logic."""
    default_message = "Validation failed"
    default_code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(StorefrontBaseException):
    """Resource not found errors."""
    default_message = "Resource not found"
    default_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class SalesChannelNotFoundError(NotFoundError):
    """Raised when a pricing context is requested for an unknown or inactive sales channel."""
    default_message = "Sales channel not found"
    default_code = "sales_channel_not_found"


class CartError(StorefrontBaseException):
    """Cart operation errors."""
    default_message = "Cart operation failed"
    default_code = "cart_error"
    status_code = status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc, context):
    """
    Custom exception handler for Django REST Framework.
    Provides consistent error response format.
    """
    # Get the standard error response first
    response = exception_handler(exc, context)

    error_data = {
        'success': False,
        'error': {
            'code': 'unknown_error',
            'message': 'An unexpected error occurred',
            'details': None
        }
    }

    if isinstance(exc, StorefrontBaseException):
        error_data['error'] = {
            'code': exc.code,
            'message': exc.message,
            'details': exc.extra_data or None
        }
        return Response(error_data, status=exc.status_code)

    # Handle DRF exceptions
    if response is not None:
        error_data['error'] = {
            'code': getattr(exc, 'default_code', 'api_error'),
            'message': str(exc.detail) if hasattr(exc, 'detail') else str(exc),
            'details': response.data if isinstance(response.data, dict) else {'errors': response.data}
        }
        return Response(error_data, status=response.status_code)

    if isinstance(exc, DjangoValidationError):
        error_data['error'] = {
            'code': 'validation_error',
            'message': 'Validation failed',
            'details': exc.message_dict if hasattr(exc, 'message_dict') else {'errors': exc.messages}
        }
        return Response(error_data, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        error_data['error'] = {
            'code': 'not_found',
            'message': str(exc) or 'Resource not found',
            'details': None
        }
        return Response(error_data, status=status.HTTP_404_NOT_FOUND)

    # Pricing engine faults are not ours to hide; let Django's error handling see them
    logger.exception(f"Unhandled exception: {exc}")
    return None


class ErrorMessages:
    """Centralized error messages for consistency."""

    # Shipping estimate
    ESTIMATE_PARAMS_REQUIRED = "countryIso and zipcode are required"
    SESSION_UNAVAILABLE = "Session is not available"
    AJAX_REQUIRED = "This endpoint only accepts XMLHttpRequest calls"

    # Locations
    COUNTRY_NOT_FOUND = "Country not found"

    # General
    INVALID_REQUEST = "Invalid request"
