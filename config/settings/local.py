from .base import *  # noqa: F403
from .base import LOGGING
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
DEBUG = True
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="local-insecure-8c1bd7ae0f6a4b0bb1fa54dc93e5e8d7",
)
ALLOWED_HOSTS = ["localhost", "0.0.0.0", "127.0.0.1"]  # noqa: S104

# LOGGING
# ------------------------------------------------------------------------------
# Rich console output in development
LOGGING["formatters"]["rich"] = {"format": "%(message)s", "datefmt": "[%X]"}
LOGGING["handlers"]["console"] = {
    "level": "DEBUG",
    "class": "rich.logging.RichHandler",
    "formatter": "rich",
    "filters": ["request_context"],
    "rich_tracebacks": True,
}
LOGGING["root"]["level"] = "DEBUG"
