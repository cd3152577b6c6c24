"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="test-insecure-2f0d6c1e9a8b4c7d93e1f5a6b7c8d9e0",
)
TEST_RUNNER = "django.test.runner.DiscoverRunner"

SITE_URL = "https://triposia.test"
MONGODB_URI = "mongodb://localhost:27017"
