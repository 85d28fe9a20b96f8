import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-only-secret-key-change-me')

DEBUG = env_bool('DJANGO_DEBUG', True)

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'rest_framework',
    'apps.catalog',
    'apps.orders',
    'apps.delivery',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

ROOT_URLCONF = 'power_store.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'power_store.wsgi.application'

# Database — SQLite unless DATABASE_ENGINE says otherwise
if os.environ.get('DATABASE_ENGINE') == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DATABASE_NAME', 'power_store'),
            'USER': os.environ.get('DATABASE_USER', ''),
            'PASSWORD': os.environ.get('DATABASE_PASSWORD', ''),
            'HOST': os.environ.get('DATABASE_HOST', 'localhost'),
            'PORT': os.environ.get('DATABASE_PORT', '5432'),
        },
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        },
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'power-store',
    }
}

LANGUAGE_CODE = 'uk'
TIME_ZONE = 'Europe/Kyiv'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

CORS_ALLOW_ALL_ORIGINS = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'UNAUTHENTICATED_USER': None,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)-7s %(name)s — %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'apps': {
            'handlers': ['console'],
            'level': os.environ.get('APP_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}

SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8000')

# Supplier feed
SUPPLIER_FEED_URL = os.environ.get('SUPPLIER_FEED_URL', 'https://mma.in.ua/feed/xml/iDxAyRECF.xml')
FEED_IMPORT_BATCH_SIZE = int(os.environ.get('FEED_IMPORT_BATCH_SIZE', 100))
FEED_REQUEST_TIMEOUT = int(os.environ.get('FEED_REQUEST_TIMEOUT', 30))

CATALOG_CACHE_TTL = int(os.environ.get('CATALOG_CACHE_TTL', 300))

# Numeric product ids used by older cart payloads → Product UUIDs
LEGACY_PRODUCT_IDS = {}

# LiqPay
LIQPAY_PUBLIC_KEY = os.environ.get('LIQPAY_PUBLIC_KEY', '')
LIQPAY_PRIVATE_KEY = os.environ.get('LIQPAY_PRIVATE_KEY', '')
LIQPAY_CHECKOUT_URL = os.environ.get('LIQPAY_CHECKOUT_URL', 'https://www.liqpay.ua/api/3/checkout')
LIQPAY_CURRENCY = os.environ.get('LIQPAY_CURRENCY', 'UAH')

# Transactional email (Resend)
RESEND_API_KEY = os.environ.get('RESEND_API_KEY', '')
RESEND_API_URL = os.environ.get('RESEND_API_URL', 'https://api.resend.com/emails')
ORDER_EMAIL_FROM = os.environ.get('ORDER_EMAIL_FROM', 'AntiBlackout <no-reply@antiblackout.shop>')
ADMIN_ORDER_EMAIL = os.environ.get('ADMIN_ORDER_EMAIL', '')
EMAIL_REQUEST_TIMEOUT = int(os.environ.get('EMAIL_REQUEST_TIMEOUT', 15))

# Nova Poshta
NOVA_POSHTA_API_KEY = os.environ.get('NOVA_POSHTA_API_KEY', '')
NOVA_POSHTA_API_URL = os.environ.get('NOVA_POSHTA_API_URL', 'https://api.novaposhta.ua/v2.0/json/')
DELIVERY_CACHE_TTL = int(os.environ.get('DELIVERY_CACHE_TTL', 300))

try:
    from .local_settings import *  # noqa: F401,F403
except ImportError:
    pass
