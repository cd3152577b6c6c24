"""Sitemap and robots.txt views."""

import logging

from django.contrib.sitemaps.views import sitemap
from django.http import Http404
from django.http import HttpResponse
from django.http import HttpResponseServerError
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET

from triposia.seo.sitemaps import get_part_count
from triposia.seo.sitemaps import sitemap_filenames
from triposia.seo.sitemaps import sitemaps
from triposia.utils.company import get_site_url
from triposia.utils.mongodb import DataAccessError

logger = logging.getLogger(__name__)

DISALLOWED_PATHS = ("/admin/", "/api/", "/_next/", "/test/", "/debug/")
BLOCKED_USER_AGENTS = (
    "Scrapy",
    "curl",
    "wget",
    "python-requests",
    "Puppeteer",
    "HeadlessChrome",
    "Selenium",
    "Playwright",
)


@require_GET
@never_cache
def sitemap_view(request, section, part=None):
    """
    Serve one sitemap section through the sitemap framework.

    Numbered sections only exist for parts 1 to SITEMAP_PART_COUNT. A failing
    store is answered with a generic 500 and no partial document.
    """
    if part is None:
        section_sitemap = sitemaps[section]()
    else:
        if not 1 <= part <= get_part_count():
            msg = f"No sitemap part {part}"
            raise Http404(msg)
        section_sitemap = sitemaps[section](part)

    try:
        response = sitemap(request, {section: section_sitemap}, section=section)
    except DataAccessError:
        logger.exception(
            "Sitemap generation failed",
            extra={"partition": section, "part": part},
        )
        return HttpResponseServerError(
            "Internal server error",
            content_type="text/plain",
        )
    logger.info(
        "Sitemap generated",
        extra={
            "partition": section,
            "part": part,
            "url_count": len(response.context_data["urlset"]),
        },
    )
    return response


@require_GET
def robots_txt(request):
    """
    Generate robots.txt.

    Allows crawling of public pages, blocks admin and API areas, turns away
    known scraping tools and advertises every sitemap file.
    """
    site_url = get_site_url()
    lines = ["User-agent: *", "Allow: /"]
    lines += [f"Disallow: {path}" for path in DISALLOWED_PATHS]
    lines += ["Crawl-delay: 1", ""]

    for user_agent in BLOCKED_USER_AGENTS:
        lines += [f"User-agent: {user_agent}", "Disallow: /", ""]

    lines.append(f"Sitemap: {site_url}/sitemap.xml")
    lines += [f"Sitemap: {site_url}/{name}" for name in sitemap_filenames()]
    lines.append("")

    return HttpResponse("\n".join(lines), content_type="text/plain")
