from django.urls import path

from .views import robots_txt
from .views import sitemap_view

app_name = "seo"
urlpatterns = [
    path("sitemap.xml", sitemap_view, {"section": "index"}, name="sitemap_index"),
    path("sitemap-static.xml", sitemap_view, {"section": "static"}, name="sitemap_static"),
    path(
        "sitemap-airports.xml",
        sitemap_view,
        {"section": "airports"},
        name="sitemap_airports",
    ),
    path(
        "sitemap-airlines.xml",
        sitemap_view,
        {"section": "airlines"},
        name="sitemap_airlines",
    ),
    path("sitemap-blogs.xml", sitemap_view, {"section": "blogs"}, name="sitemap_blogs"),
    path(
        "sitemap-flights-<int:part>.xml",
        sitemap_view,
        {"section": "flights"},
        name="sitemap_flights",
    ),
    path(
        "sitemap-airline-routes-<int:part>.xml",
        sitemap_view,
        {"section": "airline-routes"},
        name="sitemap_airline_routes",
    ),
    path(
        "sitemap-airline-airports-<int:part>.xml",
        sitemap_view,
        {"section": "airline-airports"},
        name="sitemap_airline_airports",
    ),
    path("robots.txt", view=robots_txt, name="robots"),
]
