"""Base settings shared by every environment."""

from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve(strict=True).parent.parent.parent
APPS_DIR = BASE_DIR / "triposia"
env = environ.Env()

READ_DOT_ENV_FILE = env.bool("DJANGO_READ_DOT_ENV_FILE", default=False)
if READ_DOT_ENV_FILE:
    env.read_env(str(BASE_DIR / ".env"))

# GENERAL
# ------------------------------------------------------------------------------
DEBUG = env.bool("DJANGO_DEBUG", False)
TIME_ZONE = "UTC"
LANGUAGE_CODE = "en-us"
USE_I18N = True
USE_TZ = True

# DATABASES
# ------------------------------------------------------------------------------
# Content lives in MongoDB (see MONGODB_* below); no relational database is used.
DATABASES: dict = {}

# URLS
# ------------------------------------------------------------------------------
ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# APPS
# ------------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.staticfiles",
    "django.contrib.sitemaps",
]
LOCAL_APPS = [
    "triposia.pages",
    "triposia.seo",
]
INSTALLED_APPS = DJANGO_APPS + LOCAL_APPS

# MIDDLEWARE
# ------------------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "config.logging.RequestContextMiddleware",
]

# STATIC
# ------------------------------------------------------------------------------
STATIC_ROOT = str(BASE_DIR / "staticfiles")
STATIC_URL = "/static/"

# TEMPLATES
# ------------------------------------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(APPS_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
            ],
        },
    },
]

# SECURITY
# ------------------------------------------------------------------------------
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# LOGGING
# ------------------------------------------------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_context": {
            "()": "config.logging.RequestContextFilter",
        },
    },
    "formatters": {
        "verbose": {
            "format": "%(levelname)s %(asctime)s %(module)s "
            "%(request_id)s %(page_type)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
            "filters": ["request_context"],
        },
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "pymongo": {"level": "WARNING"},
    },
}

# SITE
# ------------------------------------------------------------------------------
# Canonical base URL for sitemap and robots.txt links.
# Falls back to the company website when unset.
SITE_URL = env("SITE_URL", default="")

# MONGODB
# ------------------------------------------------------------------------------
MONGODB_URI = env("MONGODB_URI", default="mongodb://localhost:27017")
MONGODB_DATABASE = env("MONGODB_DATABASE", default="flights")
MONGODB_TIMEOUT_MS = env.int("MONGODB_TIMEOUT_MS", default=8000)
MONGODB_MAX_POOL_SIZE = env.int("MONGODB_MAX_POOL_SIZE", default=2)

# SITEMAPS
# ------------------------------------------------------------------------------
SITEMAP_PART_COUNT = env.int("SITEMAP_PART_COUNT", default=5)
SITEMAP_URLS_PER_PART = env.int("SITEMAP_URLS_PER_PART", default=10000)
