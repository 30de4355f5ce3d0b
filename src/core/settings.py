"""Django settings for edge-cache project."""

import sys
from pathlib import Path

import dj_database_url
from decouple import Csv, config

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent
VAR_DIR = BASE_DIR.parent / "var"

# Security
SECRET_KEY = config("SECRET_KEY", default="django-insecure-edge-cache-dev-key")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="*", cast=Csv())

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "edgecache.apps.EdgeCacheConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "edgecache.middleware.WidgetTTLMiddleware",
]

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
            ]
        },
    }
]

# Database
DATABASES = {
    "default": dj_database_url.parse(config("DATABASE_URL", default=f"sqlite:///{VAR_DIR / 'data' / 'edge.db'}"))
}

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

# Internationalization
TIME_ZONE = "UTC"
USE_TZ = True

# Site configuration (origin used for absolute page URLs outside a request)
SITE_URL = config("SITE_URL", default="http://localhost:8000")

# Edge cache configuration
ESI_RENDERING_ENABLED = config("ESI_RENDERING_ENABLED", default=False, cast=bool)
EDGE_CACHE_SERVERS = config("EDGE_CACHE_SERVERS", default="", cast=Csv())
EDGE_CACHE_BAN_METHOD = config("EDGE_CACHE_BAN_METHOD", default="BAN")
EDGE_CACHE_BAN_TIMEOUT = config("EDGE_CACHE_BAN_TIMEOUT", default=3.0, cast=float)
EDGE_CACHE_WIDGET_TTL = config("EDGE_CACHE_WIDGET_TTL", default=300, cast=int)  # 5 minutes

# Celery configuration
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://localhost:6379/1")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default="redis://localhost:6379/1")
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_TIME_LIMIT = 5 * 60  # 5 min hard limit
CELERY_TASK_SOFT_TIME_LIMIT = 4 * 60  # 4 min soft limit
CELERY_WORKER_PREFETCH_MULTIPLIER = 4
CELERY_TASK_IGNORE_RESULT = True

# Test mode - synchronous execution
if "pytest" in sys.modules:
    CELERY_TASK_ALWAYS_EAGER = True
    CELERY_TASK_EAGER_PROPAGATES = True
else:
    CELERY_TASK_ALWAYS_EAGER = config("CELERY_TASK_ALWAYS_EAGER", default=False, cast=bool)

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "edgecache": {
            "level": config("EDGE_CACHE_LOG_LEVEL", default="INFO"),
        },
    },
}
