from pathlib import Path
import os
from django.core.exceptions import ImproperlyConfigured
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# No fallback: queries are refused until a key is configured.
OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
OPENWEATHER_BASE_URL = os.getenv("OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5")

WEATHER_REQUEST_TIMEOUT = float(os.getenv("WEATHER_REQUEST_TIMEOUT", "10"))
WEATHER_FORECAST_LIMIT = int(os.getenv("WEATHER_FORECAST_LIMIT", "5"))
WEATHER_SESSION_TTL = int(os.getenv("WEATHER_SESSION_TTL", "3600"))

DEBUG = os.getenv("DEBUG", "False").lower() == 'true'

# Signs the cache-backed sessions; only local DEBUG runs may go without one.
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    if not DEBUG:
        raise ImproperlyConfigured("SECRET_KEY must be set when DEBUG is off")
    SECRET_KEY = 'django-insecure-local-debug-only'

ALLOWED_HOSTS = [host for host in os.getenv("ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    'django.contrib.sessions',

    'rest_framework',

    'sphere_api',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'weathersphere.urls'

WSGI_APPLICATION = 'weathersphere.wsgi.application'

# Nothing is persisted; per-client state lives in the cache.
DATABASES = {}

if os.getenv('REDIS_URL'):
    CACHES = {
        'default': {
            'BACKEND': 'django_redis.cache.RedisCache',
            'LOCATION': os.getenv('REDIS_URL'),
            'OPTIONS': {
                'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            },
            'KEY_PREFIX': 'weathersphere',
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'weathersphere',
        }
    }

SESSION_ENGINE = 'django.contrib.sessions.backends.cache'

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
}

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True

LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,

    "formatters": {
        "structured": {
            "format": 'timestamp=%(asctime)s level=%(levelname)s module=%(name)s message="%(message)s" ip=%(ip)s event=%(event)s city=%(city)s origin=%(origin)s units=%(units)s kind=%(kind)s latency=%(latency)s error=%(error)s',
            "style": "%",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s %(ip)s %(event)s %(city)s %(origin)s %(units)s %(kind)s %(latency)s %(error)s",
            "rename_fields": {"asctime": "timestamp", "levelname": "level", "name": "module"},
        },
    },

    "filters": {
        "add_extra_fields": {
            "()": "sphere_api.logging_filters.ExtraFieldsFilter",
        },
    },

    "handlers": {
        "console_structured": {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "filters": ["add_extra_fields"],
        },

        "file_structured": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "structured_weather.log",
            "formatter": "structured",
            "filters": ["add_extra_fields"],
        },

        "file_json": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "json_weather.log",
            "formatter": "json",
            "filters": ["add_extra_fields"],
        },

        "errors_structured": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "errors_structured.log",
            "formatter": "structured",
            "level": "ERROR",
            "filters": ["add_extra_fields"],
        },
    },

    "loggers": {
        "django": {
            "handlers": ["console_structured"],
            "level": "INFO",
            "propagate": False,
        },

        "weathersphere": {
            "handlers": ["console_structured", "file_structured", "file_json", "errors_structured"],
            "level": os.getenv("WEATHER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },

        "sphere_api": {
            "handlers": ["console_structured", "file_structured", "file_json", "errors_structured"],
            "level": os.getenv("WEATHER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },

        "django.request": {
            "handlers": ["errors_structured", "console_structured"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}
