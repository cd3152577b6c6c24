from django.conf import settings
from django.urls import include
from django.urls import path
from django.views import defaults as default_views

urlpatterns = [
    # Sitemaps and robots.txt
    path("", include("triposia.seo.urls", namespace="seo")),
]

if settings.DEBUG:
    # This allows the error pages to be debugged during development, just visit
    # these url in browser to see how these error pages look like.
    urlpatterns += [
        path(
            "404/",
            default_views.page_not_found,
            kwargs={"exception": Exception("Page not Found")},
        ),
        path("500/", default_views.server_error),
    ]
