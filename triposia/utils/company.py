"""Company identity and canonical site URL."""

from types import MappingProxyType

from django.conf import settings

COMPANY_INFO = MappingProxyType(
    {
        "name": "Triposia",
        "website": "https://triposia.com",
        "email": "info@triposia.com",
    },
)


def get_site_url() -> str:
    """
    Return the canonical base URL of the site, without a trailing slash.

    Uses the SITE_URL setting when it is set, otherwise the company website.
    """
    site_url = getattr(settings, "SITE_URL", "") or COMPANY_INFO["website"]
    return site_url.rstrip("/")
