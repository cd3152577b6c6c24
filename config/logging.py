"""Custom logging components for structured logging with request context."""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

from django.http import HttpRequest

from triposia.pages.page_types import classify_path

# Context variables for storing request-scoped data
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
request_path_var: ContextVar[str | None] = ContextVar("request_path", default=None)
request_method_var: ContextVar[str | None] = ContextVar("request_method", default=None)
ip_address_var: ContextVar[str | None] = ContextVar("ip_address", default=None)
page_type_var: ContextVar[str | None] = ContextVar("page_type", default=None)
entity_primary_var: ContextVar[str | None] = ContextVar("entity_primary", default=None)
entity_secondary_var: ContextVar[str | None] = ContextVar(
    "entity_secondary",
    default=None,
)

_CONTEXT_FIELDS = (
    ("request_id", request_id_var),
    ("path", request_path_var),
    ("method", request_method_var),
    ("ip_address", ip_address_var),
    ("page_type", page_type_var),
    ("entity_primary", entity_primary_var),
    ("entity_secondary", entity_secondary_var),
)


class RequestContextFilter(logging.Filter):
    """
    Logging filter that adds request context from contextvars to LogRecord.

    This filter reads values from contextvars set by RequestContextMiddleware
    and adds them as extra fields to each log record. These fields are then
    automatically included in structured log output (JSON in production, Rich in dev).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record."""
        # Only add fields if they don't already exist (don't override explicit values)
        for field, var in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, var.get())
        return True


def get_client_ip(request: HttpRequest) -> str | None:
    x_forwarded_for = request.headers.get("x-forwarded-for")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


class RequestContextMiddleware:
    """
    Middleware that classifies the request path and stores request context.

    The page classification is attached to the request as
    ``request.page_classification`` and, together with a unique request ID,
    the path, method and client IP, published through contextvars for
    RequestContextFilter.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> Any:
        classification = classify_path(request.path)
        request.page_classification = classification

        request_id_var.set(str(uuid.uuid4()))
        request_path_var.set(request.path)
        request_method_var.set(request.method)
        ip_address_var.set(get_client_ip(request))
        page_type_var.set(classification.page_type.value)
        entity_primary_var.set(classification.entity_primary)
        entity_secondary_var.set(classification.entity_secondary)

        try:
            return self.get_response(request)
        finally:
            # Clean up context vars after response (important for thread reuse)
            for _field, var in _CONTEXT_FIELDS:
                var.set(None)
