import logging
import xml.etree.ElementTree as ET
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from http import HTTPStatus

import mongomock
import pytest
from pymongo.errors import ServerSelectionTimeoutError

from triposia.seo.entity_roles import ENTITY_ROLES
from triposia.seo.entity_roles import EntityRole
from triposia.seo.entity_roles import get_entity_role
from triposia.seo.entity_roles import get_sitemap_priority
from triposia.seo.sitemaps import AirlineAirportSitemap
from triposia.seo.sitemaps import AirlineRouteSitemap
from triposia.seo.sitemaps import AirlineSitemap
from triposia.seo.sitemaps import AirportSitemap
from triposia.seo.sitemaps import BlogSitemap
from triposia.seo.sitemaps import ChangeFrequency
from triposia.seo.sitemaps import FlightSitemap
from triposia.seo.sitemaps import IndexSitemap
from triposia.seo.sitemaps import PartitionPage
from triposia.seo.sitemaps import StaticSitemap
from triposia.seo.sitemaps import resolve_code
from triposia.seo.sitemaps import route_quality_score
from triposia.utils.mongodb import DataAccessError

BASE_URL = "https://triposia.test"
NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
NS = {"sm": SITEMAP_NAMESPACE}


def _parse_urls(xml: str | bytes) -> list[dict[str, str]]:
    root = ET.fromstring(xml)  # noqa: S314
    assert root.tag == f"{{{SITEMAP_NAMESPACE}}}urlset"
    return [
        {child.tag.split("}")[1]: child.text for child in url}
        for url in root.findall("sm:url", NS)
    ]


def _locations(sitemap) -> list[str]:
    return [url["location"] for url in sitemap.get_urls()]


def _blog_lastmods(sitemap: BlogSitemap) -> dict[str, datetime]:
    return {blog["slug"]: sitemap.lastmod(blog) for blog in sitemap.items()}


@pytest.fixture
def failing_store(monkeypatch):
    """Make every collection query fail as if the server were unreachable."""

    def find(self, *args, **kwargs):
        msg = "No servers available"
        raise ServerSelectionTimeoutError(msg)

    monkeypatch.setattr(mongomock.collection.Collection, "find", find)


class TestEntityRoles:
    """Tests for the role table and priority lookup."""

    @pytest.mark.parametrize(
        ("kind", "role"),
        [
            ("airport", EntityRole.HUB),
            ("airline", EntityRole.HUB),
            ("route", EntityRole.LEAF),
            ("blog", EntityRole.EDITORIAL),
            ("something-else", EntityRole.LEAF),
        ],
    )
    def test_get_entity_role(self, kind, role):
        """Test known kinds map to their role and unknown kinds are leaves."""
        assert get_entity_role(kind) == role

    def test_base_priorities(self):
        """Test each role's base priority is its table value over 100."""
        assert get_sitemap_priority(EntityRole.HUB) == 1.0
        assert get_sitemap_priority(EntityRole.EDITORIAL) == 0.75
        assert get_sitemap_priority(EntityRole.LEAF) == 0.5

    def test_leaf_quality_boost_is_capped(self):
        """Test leaves gain a tenth of their quality score, at most 0.2."""
        assert get_sitemap_priority(EntityRole.LEAF, quality_score=1) == pytest.approx(0.6)
        assert get_sitemap_priority(EntityRole.LEAF, quality_score=4) == pytest.approx(0.7)
        assert get_sitemap_priority(EntityRole.LEAF, quality_score=50) == pytest.approx(0.7)

    def test_quality_does_not_change_hubs(self):
        """Test the quality boost only applies to leaves."""
        assert get_sitemap_priority(EntityRole.HUB, quality_score=10) == 1.0

    def test_role_table_is_read_only(self):
        """Test the role table cannot be modified at runtime."""
        with pytest.raises(TypeError):
            ENTITY_ROLES[EntityRole.HUB] = None


class TestPartitionPage:
    def test_rejects_priority_out_of_range(self):
        """Test a priority above 1.0 is refused."""
        with pytest.raises(ValueError, match="priority"):
            PartitionPage("/flights", priority=1.5)


class TestResolveCode:
    def test_prefers_first_field(self):
        """Test the IATA code wins over the fallback code."""
        assert resolve_code({"iata": "AA", "code": "AAL"}) == "aa"

    def test_falls_back_to_second_field(self):
        """Test the fallback code is used when IATA is missing."""
        assert resolve_code({"iata": None, "code": "DL"}) == "dl"

    @pytest.mark.parametrize("document", [{}, {"iata": "", "code": "  "}, {"iata": 42}])
    def test_missing_code(self, document):
        """Test documents without a usable string code resolve to None."""
        assert resolve_code(document) is None


class TestIndexSitemap:
    """Tests for the top-level manifest."""

    def test_fixed_shape(self):
        """Test the index lists four single files and five parts of three partitions."""
        locations = _locations(IndexSitemap(now=NOW))

        assert locations[:4] == [
            f"{BASE_URL}/sitemap-static.xml",
            f"{BASE_URL}/sitemap-airports.xml",
            f"{BASE_URL}/sitemap-airlines.xml",
            f"{BASE_URL}/sitemap-blogs.xml",
        ]
        for partition in ("flights", "airline-routes", "airline-airports"):
            parts = [loc for loc in locations if f"/sitemap-{partition}-" in loc]
            assert parts == [
                f"{BASE_URL}/sitemap-{partition}-{part}.xml" for part in range(1, 6)
            ]
        assert len(locations) == 4 + 3 * 5

    def test_frequency_and_priority_per_partition(self):
        """Test every partition carries its own change frequency and priority."""
        urls = {url["location"]: url for url in IndexSitemap(now=NOW).get_urls()}

        def meta(filename):
            url = urls[f"{BASE_URL}/{filename}"]
            return url["changefreq"], url["priority"]

        assert meta("sitemap-static.xml") == (ChangeFrequency.MONTHLY, "1.0")
        assert meta("sitemap-airports.xml") == (ChangeFrequency.DAILY, "0.9")
        assert meta("sitemap-airlines.xml") == (ChangeFrequency.WEEKLY, "0.8")
        assert meta("sitemap-blogs.xml") == (ChangeFrequency.WEEKLY, "0.5")
        assert meta("sitemap-flights-3.xml") == (ChangeFrequency.DAILY, "0.9")
        assert meta("sitemap-airline-routes-1.xml") == (ChangeFrequency.DAILY, "0.7")
        assert meta("sitemap-airline-airports-5.xml") == (ChangeFrequency.DAILY, "0.6")

    def test_lastmod_is_generation_time(self):
        """Test index entries are stamped with the generation time."""
        assert {url["lastmod"] for url in IndexSitemap(now=NOW).get_urls()} == {NOW}

    def test_part_count_follows_setting(self, settings):
        """Test the number of parts per partition comes from settings."""
        settings.SITEMAP_PART_COUNT = 2
        assert len(IndexSitemap(now=NOW).items()) == 4 + 3 * 2


class TestStaticSitemap:
    """Tests for the fixed list of informational pages."""

    def test_lists_eight_pages(self):
        """Test the static pages are listed in order with the home page bare."""
        assert _locations(StaticSitemap(now=NOW)) == [
            BASE_URL,
            f"{BASE_URL}/flights",
            f"{BASE_URL}/airports",
            f"{BASE_URL}/airlines",
            f"{BASE_URL}/manifesto",
            f"{BASE_URL}/how-we-help",
            f"{BASE_URL}/editorial-policy",
            f"{BASE_URL}/corrections",
        ]

    def test_lastmod_is_a_week_old_and_shared(self):
        """Test every page shares one lastmod seven days before generation."""
        urls = StaticSitemap(now=NOW).get_urls()
        assert {url["lastmod"] for url in urls} == {NOW - timedelta(days=7)}

    def test_uses_site_url_over_request_host(self, settings):
        """Test locations follow SITE_URL, including its scheme."""
        settings.SITE_URL = "http://example.com/"
        assert _locations(StaticSitemap(now=NOW))[:2] == [
            "http://example.com",
            "http://example.com/flights",
        ]


class TestAirlineSitemap:
    def test_skips_airlines_without_code(self, flights_db):
        """Test airlines are listed by code and code-less ones are dropped."""
        sitemap = AirlineSitemap(db=flights_db, now=NOW)
        urls = sitemap.get_urls()

        assert [url["location"] for url in urls] == [
            f"{BASE_URL}/airlines/aa",
            f"{BASE_URL}/airlines/dl",
        ]
        assert {url["priority"] for url in urls} == {"1.0"}
        assert {url["changefreq"] for url in urls} == {ChangeFrequency.WEEKLY}

    def test_empty_collection(self, mongo_db):
        """Test an empty collection gives an empty sitemap."""
        assert AirlineSitemap(db=mongo_db, now=NOW).items() == []

    @pytest.mark.usefixtures("failing_store")
    def test_store_failure_raises(self, mongo_db):
        """Test a store failure surfaces as DataAccessError."""
        with pytest.raises(DataAccessError):
            AirlineSitemap(db=mongo_db, now=NOW).items()


class TestAirportSitemap:
    def test_lists_indexable_airports_busiest_first(self, flights_db):
        """Test quiet and destination-less airports are left out."""
        sitemap = AirportSitemap(db=flights_db, now=NOW)

        assert _locations(sitemap) == [
            f"{BASE_URL}/airports/jfk",
            f"{BASE_URL}/airports/lax",
        ]
        assert {url["changefreq"] for url in sitemap.get_urls()} == {ChangeFrequency.DAILY}

    def test_skips_airports_without_code(self, mongo_db):
        """Test airports without an IATA code are dropped."""
        mongo_db.airports.insert_one(
            {"departure_count": 50, "arrival_count": 50, "destinations_count": 10},
        )
        assert AirportSitemap(db=mongo_db, now=NOW).items() == []


class TestBlogSitemap:
    def test_lists_published_blogs(self, mongo_db):
        """Test only published blogs with a slug are listed."""
        mongo_db.blogs.insert_many(
            [
                {"slug": "best-time-to-fly", "status": "published"},
                {"slug": "draft-post", "status": "draft"},
                {"status": "published"},
            ],
        )
        urls = BlogSitemap(db=mongo_db, now=NOW).get_urls()

        assert [url["location"] for url in urls] == [f"{BASE_URL}/blog/best-time-to-fly"]
        assert urls[0]["priority"] == "0.75"
        assert urls[0]["changefreq"] == ChangeFrequency.MONTHLY
        assert urls[0]["lastmod"] == NOW - timedelta(days=7)

    def test_recent_edits_use_blog_date(self, mongo_db):
        """Test blogs edited within fifteen days carry their own date."""
        recent = NOW - timedelta(days=2)
        mongo_db.blogs.insert_many(
            [
                {"slug": "fresh", "status": "published", "updated_at": recent},
                {
                    "slug": "iso-date",
                    "status": "published",
                    "published_at": (NOW - timedelta(days=1)).isoformat(),
                },
                {
                    "slug": "stale",
                    "status": "published",
                    "updated_at": NOW - timedelta(days=60),
                },
            ],
        )
        lastmods = _blog_lastmods(BlogSitemap(db=mongo_db, now=NOW))

        assert lastmods["fresh"] == recent
        assert lastmods["iso-date"] == NOW - timedelta(days=1)
        assert lastmods["stale"] == NOW - timedelta(days=7)

    def test_impossible_date_uses_default_lastmod(self, mongo_db):
        """Test a well formatted but impossible date does not abort the sitemap."""
        mongo_db.blogs.insert_many(
            [
                {"slug": "ok", "status": "published"},
                {"slug": "bad", "status": "published", "updated_at": "2026-02-30T10:00:00"},
            ],
        )
        lastmods = _blog_lastmods(BlogSitemap(db=mongo_db, now=NOW))

        assert lastmods == {
            "ok": NOW - timedelta(days=7),
            "bad": NOW - timedelta(days=7),
        }

    def test_future_date_is_capped_at_generation_time(self, mongo_db):
        """Test a blog dated in the future is stamped with the generation time."""
        mongo_db.blogs.insert_one(
            {"slug": "scheduled", "status": "published", "updated_at": NOW + timedelta(days=3)},
        )
        assert _blog_lastmods(BlogSitemap(db=mongo_db, now=NOW)) == {"scheduled": NOW}

    @pytest.mark.usefixtures("failing_store")
    def test_store_failure_yields_empty_sitemap(self, mongo_db, caplog):
        """Test a failing blogs collection is logged and gives no items."""
        with caplog.at_level(logging.WARNING):
            assert BlogSitemap(db=mongo_db, now=NOW).items() == []
        assert "Blogs unavailable" in caplog.text


class TestFlightSitemap:
    def test_route_quality_score(self):
        """Test each available data point adds one to the score."""
        assert route_quality_score({}) == 0
        assert route_quality_score(
            {
                "has_flight_data": True,
                "flights_per_day": "3 flights",
                "typical_duration": "2h",
                "origin_iata": "JFK",
                "destination_iata": "LAX",
            },
        ) == 4  # noqa: PLR2004

    def test_lists_active_routes(self, flights_db):
        """Test routes without flights or a destination are left out."""
        sitemap = FlightSitemap(1, db=flights_db, now=NOW)

        assert sorted(_locations(sitemap)) == [
            f"{BASE_URL}/flights/jfk-lax",
            f"{BASE_URL}/flights/lax-jfk",
        ]
        assert all(page.priority == pytest.approx(0.7) for page in sitemap.items())

    def test_skips_non_string_codes(self, flights_db):
        """Test a route with a numeric code is skipped instead of failing the part."""
        flights_db.routes.insert_one(
            {
                "origin_iata": 123,
                "destination_iata": "LAX",
                "has_flight_data": True,
                "flights_per_day": "5 flights",
            },
        )
        assert len(FlightSitemap(1, db=flights_db, now=NOW).items()) == 2  # noqa: PLR2004

    def test_empty_part_falls_back_to_landing_page(self, flights_db):
        """Test a part past the last route lists the flights landing page."""
        sitemap = FlightSitemap(2, db=flights_db, now=NOW)

        assert sitemap.items() == [PartitionPage("/flights", 0.8)]
        assert _locations(sitemap) == [f"{BASE_URL}/flights"]

    def test_parts_page_through_routes(self, flights_db, settings):
        """Test consecutive parts list disjoint slices of the routes."""
        settings.SITEMAP_URLS_PER_PART = 2
        first = _locations(FlightSitemap(1, db=flights_db, now=NOW))
        second = _locations(FlightSitemap(2, db=flights_db, now=NOW))

        assert set(first).isdisjoint(second)
        assert sorted(first + second) == [
            f"{BASE_URL}/flights/jfk-lax",
            f"{BASE_URL}/flights/lax-jfk",
        ]

    def test_warns_when_last_part_overflows(self, flights_db, settings, caplog):
        """Test routes beyond the last part are reported."""
        settings.SITEMAP_PART_COUNT = 1
        settings.SITEMAP_URLS_PER_PART = 2

        with caplog.at_level(logging.WARNING, logger="triposia.seo.sitemaps"):
            FlightSitemap(1, db=flights_db, now=NOW).items()

        assert "Sitemap partition truncated" in caplog.text


class TestAirlineRouteSitemap:
    def test_lists_routes_flown_by_each_airline(self, flights_db):
        """Test airline routes need both departures and route flight data."""
        sitemap = AirlineRouteSitemap(1, db=flights_db, now=NOW)

        assert sorted(_locations(sitemap)) == [
            f"{BASE_URL}/airlines/aa/jfk-lax",
            f"{BASE_URL}/airlines/aa/lax-jfk",
            f"{BASE_URL}/airlines/dl/lax-jfk",
        ]
        assert {url["priority"] for url in sitemap.get_urls()} == {"0.7"}

    def test_skips_non_string_codes(self, flights_db):
        """Test a departure with a numeric code is skipped instead of failing the part."""
        flights_db.departures.insert_one(
            {"airline_iata": "AA", "origin_iata": 123, "destination_iata": "LAX"},
        )
        assert len(AirlineRouteSitemap(1, db=flights_db, now=NOW).items()) == 3  # noqa: PLR2004

    def test_paginates(self, flights_db, settings):
        """Test parts split the list and an exhausted part falls back."""
        settings.SITEMAP_URLS_PER_PART = 2

        assert len(AirlineRouteSitemap(1, db=flights_db, now=NOW).items()) == 2  # noqa: PLR2004
        assert len(AirlineRouteSitemap(2, db=flights_db, now=NOW).items()) == 1
        assert _locations(AirlineRouteSitemap(3, db=flights_db, now=NOW)) == [
            f"{BASE_URL}/airlines",
        ]

    def test_warns_when_capacity_exceeded(self, flights_db, settings, caplog):
        """Test pages beyond the capacity of all parts are reported."""
        settings.SITEMAP_PART_COUNT = 1
        settings.SITEMAP_URLS_PER_PART = 2

        with caplog.at_level(logging.WARNING, logger="triposia.seo.sitemaps"):
            pages = AirlineRouteSitemap(1, db=flights_db, now=NOW).items()

        assert len(pages) == 2  # noqa: PLR2004
        assert "Sitemap partition truncated" in caplog.text


class TestAirlineAirportSitemap:
    def test_lists_active_airports_per_airline(self, flights_db):
        """Test each airline lists the active airports it departs from or flies to."""
        sitemap = AirlineAirportSitemap(1, db=flights_db, now=NOW)

        assert sorted(_locations(sitemap)) == [
            f"{BASE_URL}/airlines/aa/jfk",
            f"{BASE_URL}/airlines/aa/lax",
            f"{BASE_URL}/airlines/dl/jfk",
            f"{BASE_URL}/airlines/dl/lax",
        ]
        assert {url["priority"] for url in sitemap.get_urls()} == {"0.6"}

    def test_skips_non_string_codes(self, flights_db):
        """Test a departure with a numeric airport code is skipped."""
        flights_db.departures.insert_one(
            {"airline_iata": "DL", "origin_iata": "JFK", "destination_iata": 404},
        )
        assert len(AirlineAirportSitemap(1, db=flights_db, now=NOW).items()) == 4  # noqa: PLR2004

    def test_empty_store_falls_back(self, mongo_db):
        """Test an empty store lists the airlines landing page."""
        sitemap = AirlineAirportSitemap(1, db=mongo_db, now=NOW)
        assert _locations(sitemap) == [f"{BASE_URL}/airlines"]


class TestSitemapViews:
    """Tests for the HTTP surface."""

    def test_index(self, client):
        """Test the index is served as XML listing all nineteen files."""
        response = client.get("/sitemap.xml")

        assert response.status_code == HTTPStatus.OK
        assert response["Content-Type"] == "application/xml"
        urls = _parse_urls(response.content)
        assert len(urls) == 19  # noqa: PLR2004
        assert urls[0]["loc"] == "https://triposia.test/sitemap-static.xml"

    def test_responses_are_not_cached(self, client):
        """Test sitemaps are generated fresh on every request."""
        response = client.get("/sitemap-static.xml")
        assert "no-cache" in response["Cache-Control"]

    def test_static(self, client):
        """Test the static sitemap renders every url element in full."""
        response = client.get("/sitemap-static.xml")
        urls = _parse_urls(response.content)

        assert response.status_code == HTTPStatus.OK
        assert len(urls) == 8  # noqa: PLR2004
        assert all(0.0 <= float(url["priority"]) <= 1.0 for url in urls)
        assert len({url["lastmod"] for url in urls}) == 1
        assert urls[0] == {
            "loc": BASE_URL,
            "lastmod": urls[0]["lastmod"],
            "changefreq": "daily",
            "priority": "1.0",
        }

    def test_uses_configured_site_url(self, client, settings):
        """Test the configured site URL wins over the request host."""
        settings.SITE_URL = "https://example.com/"
        response = client.get("/sitemap-static.xml")
        assert _parse_urls(response.content)[1]["loc"] == "https://example.com/flights"

    @pytest.mark.usefixtures("flights_db")
    def test_airlines(self, client):
        """Test the airlines sitemap lists airlines from the store."""
        response = client.get("/sitemap-airlines.xml")

        assert response.status_code == HTTPStatus.OK
        assert [url["loc"] for url in _parse_urls(response.content)] == [
            "https://triposia.test/airlines/aa",
            "https://triposia.test/airlines/dl",
        ]

    def test_escapes_markup_in_locations(self, client, mongo_db):
        """Test unusual codes still produce well-formed XML."""
        mongo_db.airlines.insert_one({"iata": "A&B"})
        response = client.get("/sitemap-airlines.xml")
        assert _parse_urls(response.content)[0]["loc"] == "https://triposia.test/airlines/a&b"

    @pytest.mark.usefixtures("flights_db")
    @pytest.mark.parametrize(
        "path",
        [
            "/sitemap-airports.xml",
            "/sitemap-blogs.xml",
            "/sitemap-flights-1.xml",
            "/sitemap-airline-routes-5.xml",
            "/sitemap-airline-airports-2.xml",
        ],
    )
    def test_partitions_render(self, client, path):
        """Test every partition is served as well-formed XML."""
        response = client.get(path)

        assert response.status_code == HTTPStatus.OK
        assert response["Content-Type"] == "application/xml"
        _parse_urls(response.content)

    @pytest.mark.parametrize(
        "path",
        [
            "/sitemap-flights-0.xml",
            "/sitemap-flights-6.xml",
            "/sitemap-airline-routes-6.xml",
            "/sitemap-airline-airports-99.xml",
        ],
    )
    def test_unknown_parts_are_not_found(self, client, path):
        """Test parts outside 1 to SITEMAP_PART_COUNT do not exist."""
        assert client.get(path).status_code == HTTPStatus.NOT_FOUND

    @pytest.mark.usefixtures("failing_store")
    def test_store_failure_is_a_server_error(self, client):
        """Test a store failure gives a generic 500 and no partial document."""
        response = client.get("/sitemap-airlines.xml")

        assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.content == b"Internal server error"

    @pytest.mark.usefixtures("failing_store")
    def test_blog_store_failure_is_an_empty_sitemap(self, client):
        """Test the blogs sitemap degrades to an empty document."""
        response = client.get("/sitemap-blogs.xml")

        assert response.status_code == HTTPStatus.OK
        assert _parse_urls(response.content) == []

    def test_impossible_blog_date_is_served(self, client, mongo_db):
        """Test one bad blog date does not fail the blogs sitemap."""
        mongo_db.blogs.insert_one(
            {"slug": "bad", "status": "published", "updated_at": "2026-02-30T10:00:00"},
        )
        response = client.get("/sitemap-blogs.xml")

        assert response.status_code == HTTPStatus.OK
        assert [url["loc"] for url in _parse_urls(response.content)] == [
            "https://triposia.test/blog/bad",
        ]

    def test_requires_get(self, client):
        """Test other methods are refused."""
        response = client.post("/sitemap.xml")
        assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED


class TestRobotsTxt:
    def test_lists_every_sitemap(self, client):
        """Test robots.txt advertises the index and every partition file."""
        response = client.get("/robots.txt")

        assert response.status_code == HTTPStatus.OK
        assert response["Content-Type"].startswith("text/plain")
        sitemap_lines = [
            line for line in response.content.decode().splitlines()
            if line.startswith("Sitemap: ")
        ]
        assert sitemap_lines[0] == "Sitemap: https://triposia.test/sitemap.xml"
        assert "Sitemap: https://triposia.test/sitemap-airline-airports-5.xml" in sitemap_lines
        assert len(sitemap_lines) == 20  # noqa: PLR2004

    def test_blocks_scrapers(self, client):
        """Test scraping tools are disallowed and private areas blocked."""
        content = client.get("/robots.txt").content.decode()

        assert "User-agent: Scrapy\nDisallow: /\n" in content
        assert "Disallow: /admin/" in content
        assert "Crawl-delay: 1" in content
