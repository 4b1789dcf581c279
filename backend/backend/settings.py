"""
Django settings for Keszler Storefront.
=======================================
Storefront backend with shipping destination presets and per-item shipping estimates.
"""

from pathlib import Path
import os
import environ

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1']),
    SECRET_KEY=(str, 'django-insecure-keszler-storefront-development-key'),
    DATABASE_URL=(str, 'sqlite:///db.sqlite3'),
    DEFAULT_SALES_CHANNEL=(str, ''),
    SHIPPING_PRESET_COUNTRY_ID=(str, ''),
    SHIPPING_PRESET_COUNTRY_ISO=(str, 'DE'),
    SHIPPING_PRESET_ZIPCODE=(str, '00000'),
    LOG_FILE=(str, ''),
)

BASE_DIR = Path(__file__).resolve().parent.parent
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

# =============================================================================
# CORE SETTINGS
# =============================================================================
SECRET_KEY = env('SECRET_KEY')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')

SITE_NAME = 'Keszler Storefront'

# =============================================================================
# APPLICATION DEFINITION
# =============================================================================
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    # REST Framework
    'rest_framework',

    # Documentation
    'drf_spectacular',
]

LOCAL_APPS = [
    # -------------------------------------------------------------------------
    # 1. BASE PILLAR - Core Infrastructure
    # -------------------------------------------------------------------------
    'apps.base.core.system.apps.SystemConfig',
    'apps.base.core.locations.apps.LocationsConfig',

    # -------------------------------------------------------------------------
    # 2. BUSINESS PILLAR - Commerce & Partners
    # -------------------------------------------------------------------------
    'apps.business.commerce.products.apps.ProductsConfig',
    'apps.business.commerce.sales_channels.apps.SalesChannelsConfig',
    'apps.business.commerce.cart.apps.CartConfig',
    'apps.business.partners.shipping.apps.ShippingConfig',

    # -------------------------------------------------------------------------
    # 3. CLIENT PILLAR - Customer Experience
    # -------------------------------------------------------------------------
    'apps.client.experience.shipping_preset.apps.ShippingPresetConfig',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',

    # Session & Common
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',

    # Security
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',

    # Pricing context (needs session and user)
    'apps.business.commerce.sales_channels.middleware.SalesChannelContextMiddleware',
]

ROOT_URLCONF = 'backend.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
                'apps.business.commerce.sales_channels.context_processors.sales_channel_context',
            ],
        },
    },
]

WSGI_APPLICATION = 'backend.wsgi.application'

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================
DATABASES = {
    'default': env.db(),
}

if not DEBUG:
    DATABASES['default']['CONN_MAX_AGE'] = 60
    DATABASES['default']['CONN_HEALTH_CHECKS'] = True

SESSION_ENGINE = 'django.contrib.sessions.backends.db'

# =============================================================================
# AUTHENTICATION CONFIGURATION
# =============================================================================
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', 'OPTIONS': {'min_length': 8}},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# =============================================================================
# REST FRAMEWORK CONFIGURATION
# =============================================================================
REST_FRAMEWORK = {
    # Authentication
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],

    # Permissions
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],

    # Rendering
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],

    # Schema
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',

    # Exception Handling
    'EXCEPTION_HANDLER': 'apps.base.core.system.exceptions.custom_exception_handler',
}

# =============================================================================
# SPECTACULAR (API DOCUMENTATION) CONFIGURATION
# =============================================================================
SPECTACULAR_SETTINGS = {
    'TITLE': 'Keszler Storefront API',
    'DESCRIPTION': 'Storefront shipping destination and estimate API',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
    'TAGS': [
        {'name': 'Locations', 'description': 'Countries and shipping destinations'},
        {'name': 'Shipping', 'description': 'Shipping estimates'},
    ],
}

# =============================================================================
# INTERNATIONALIZATION
# =============================================================================
LANGUAGE_CODE = 'de'
TIME_ZONE = 'Europe/Berlin'
USE_I18N = True
USE_TZ = True

# =============================================================================
# STATIC FILES
# =============================================================================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_FILE = env('LOG_FILE')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'filters': {
        'require_debug_true': {
            '()': 'django.utils.log.RequireDebugTrue',
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'filters': ['require_debug_true'],
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'DEBUG' if DEBUG else 'INFO',
            'propagate': False,
        },
    },
}

if LOG_FILE:
    LOGGING['handlers']['file'] = {
        'level': 'WARNING',
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOG_FILE,
        'maxBytes': 1024 * 1024 * 5,  # 5 MB
        'backupCount': 5,
        'formatter': 'verbose',
    }
    for logger_name in ('django', 'apps'):
        LOGGING['loggers'][logger_name]['handlers'].append('file')

# =============================================================================
# SITE CONFIGURATION
# =============================================================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# =============================================================================
# STOREFRONT CONFIGURATION
# =============================================================================
STOREFRONT_CONFIG = {
    # Sales channel used when a request names none (X-Sales-Channel header)
    'DEFAULT_SALES_CHANNEL': env('DEFAULT_SALES_CHANNEL'),
}

# Default shipping estimate destination; SALES_CHANNELS overrides per channel id
SHIPPING_PRESET = {
    'COUNTRY_ID': env('SHIPPING_PRESET_COUNTRY_ID'),
    'COUNTRY_ISO': env('SHIPPING_PRESET_COUNTRY_ISO'),
    'ZIPCODE': env('SHIPPING_PRESET_ZIPCODE'),
    'SALES_CHANNELS': {},
}
