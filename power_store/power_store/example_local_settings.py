# Copy to local_settings.py and fill in. Anything here overrides settings.py.
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = ''

DEBUG = True

ALLOWED_HOSTS = ['*']

CORS_ALLOW_ALL_ORIGINS = True

# Database — SQLite for local dev
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    },
}

# For production use PostgreSQL:
# DATABASES = {
#     'default': {
#         'ENGINE': 'django.db.backends.postgresql',
#         'NAME': '',
#         'USER': '',
#         'PASSWORD': '',
#         'HOST': 'localhost',
#         'PORT': '5432',
#     },
# }

# Cache — local memory for dev, Redis for production
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'power-store',
    }
}

# For production use Redis:
# CACHES = {
#     'default': {
#         'BACKEND': 'django.core.cache.backends.redis.RedisCache',
#         'LOCATION': 'redis://127.0.0.1:6379/1',
#     }
# }

SITE_URL = "https://antiblackout.shop"

# LiqPay
LIQPAY_PUBLIC_KEY = ""
LIQPAY_PRIVATE_KEY = ""

# Resend
RESEND_API_KEY = ""
ADMIN_ORDER_EMAIL = ""

# Nova Poshta
NOVA_POSHTA_API_KEY = ""

# Numeric ids sent by old cart payloads
LEGACY_PRODUCT_IDS = {
    # 1: "767a5cc7-f8dc-41c2-b1b6-9a6af980fd0c",
}
