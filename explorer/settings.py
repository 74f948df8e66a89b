"""Base Django settings for the city explorer service."""
from __future__ import annotations

from pathlib import Path
import os

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")
TESTING_MODE = os.environ.get("TESTING_MODE", "0") == "1"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "corsheaders",
    "rest_framework",
    "explorer.api",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "explorer.urls"

WSGI_APPLICATION = "explorer.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Django itself only needs a database for contrib apps; cached provider data
# lives at EXPLORER_DATABASE_URL and is managed by explorer.core.models.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "django.sqlite3")),
    }
}

EXPLORER_DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'explorer.db'}")

PROVIDER_TIMEOUT = float(os.environ.get("PROVIDER_TIMEOUT", "5"))

# The browser front end is served from another origin. Any origin is allowed
# unless CORS_ALLOWED_ORIGINS lists specific ones.
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if origin.strip()
]
CORS_ALLOW_ALL_ORIGINS = not CORS_ALLOWED_ORIGINS

PROVIDER_API_KEYS = {
    "geocode": os.environ.get("GEOCODE_API_KEY", ""),
    "weather": os.environ.get("WEATHER_API_KEY", ""),
    "restaurants": os.environ.get("YELP_API_KEY", ""),
    "movies": os.environ.get("MOVIEDB_API_KEY", ""),
    "meetups": os.environ.get("MEETUP_API_KEY", ""),
    "trails": os.environ.get("TRAILS_API_KEY", ""),
}

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "explorer": {
            "handlers": ["console"],
            "level": os.environ.get("EXPLORER_LOG_LEVEL", "DEBUG" if TESTING_MODE else "INFO"),
        },
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
