"""
URL Configuration for Keszler Storefront
========================================
API routing with versioning and documentation.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView
)

# API v1 URLs
api_v1_patterns = [
    path('locations/', include('apps.base.core.locations.urls')),
]

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Storefront
    path('shipping/', include('apps.client.experience.shipping_preset.urls')),

    # API v1
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

admin.site.site_header = 'Keszler Storefront Admin'
admin.site.site_title = 'Keszler Admin Portal'
