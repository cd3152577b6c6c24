"""
Sitemaps for static pages, airports, airlines, blogs and routes.

Every partition is a django.contrib.sitemaps Sitemap, served through the
framework's sitemap view. Locations are made absolute against SITE_URL, and
the last-modified timestamp is computed once per sitemap instance and shared
by all of its items (blogs may use their own recent edit date instead).
"""

import logging
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from enum import StrEnum
from urllib.parse import urlsplit

import attrs
from django.conf import settings
from django.contrib.sitemaps import Sitemap
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from pymongo import DESCENDING
from pymongo.database import Database

from triposia.seo.entity_roles import get_entity_role
from triposia.seo.entity_roles import get_sitemap_priority
from triposia.utils.company import get_site_url
from triposia.utils.mongodb import DataAccessError
from triposia.utils.mongodb import find_documents
from triposia.utils.mongodb import get_database

logger = logging.getLogger(__name__)

DEFAULT_PART_COUNT = 5
DEFAULT_URLS_PER_PART = 10000
ENTITY_QUERY_LIMIT = 10000
ROUTE_QUERY_LIMIT = 50000
AIRLINE_ROUTE_DEPARTURES_LIMIT = 1000
AIRLINE_AIRPORT_DEPARTURES_LIMIT = 2000

LASTMOD_AGE = timedelta(days=7)
BLOG_FRESHNESS_WINDOW = timedelta(days=15)

EMPTY_FLIGHTS_PER_DAY = ("0 flights", "0-0 flights")
MIN_ROUTE_QUALITY_SCORE = 2
MIN_AIRPORT_ACTIVITY = 5

AIRLINE_ROUTE_PRIORITY = 0.7
AIRLINE_AIRPORT_PRIORITY = 0.6
FALLBACK_PRIORITY = 0.8


class ChangeFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _check_priority(instance, attribute, value):
    if not 0.0 <= value <= 1.0:
        msg = f"{attribute.name} must be between 0 and 1, got {value}"
        raise ValueError(msg)


@attrs.frozen
class PartitionPage:
    """A page listed in a numbered sitemap part, relative to the site root."""

    path: str
    priority: float = attrs.field(validator=_check_priority)


@attrs.frozen
class Partition:
    """A sitemap file listed in the index."""

    name: str
    change_frequency: ChangeFrequency
    priority: float
    numbered: bool = False

    def filenames(self, part_count: int) -> list[str]:
        if not self.numbered:
            return [f"sitemap-{self.name}.xml"]
        return [f"sitemap-{self.name}-{part}.xml" for part in range(1, part_count + 1)]


INDEX_PARTITIONS = (
    Partition("static", ChangeFrequency.MONTHLY, 1.0),
    Partition("airports", ChangeFrequency.DAILY, 0.9),
    Partition("airlines", ChangeFrequency.WEEKLY, 0.8),
    Partition("blogs", ChangeFrequency.WEEKLY, 0.5),
    Partition("flights", ChangeFrequency.DAILY, 0.9, numbered=True),
    Partition("airline-routes", ChangeFrequency.DAILY, 0.7, numbered=True),
    Partition("airline-airports", ChangeFrequency.DAILY, 0.6, numbered=True),
)

# path: (change frequency, priority)
STATIC_PAGES = {
    "": (ChangeFrequency.DAILY, 1.0),
    "/flights": (ChangeFrequency.DAILY, 0.9),
    "/airports": (ChangeFrequency.DAILY, 0.9),
    "/airlines": (ChangeFrequency.WEEKLY, 0.8),
    "/manifesto": (ChangeFrequency.MONTHLY, 0.8),
    "/how-we-help": (ChangeFrequency.MONTHLY, 0.8),
    "/editorial-policy": (ChangeFrequency.MONTHLY, 0.8),
    "/corrections": (ChangeFrequency.MONTHLY, 0.8),
}


def get_part_count() -> int:
    return getattr(settings, "SITEMAP_PART_COUNT", DEFAULT_PART_COUNT)


def get_urls_per_part() -> int:
    return getattr(settings, "SITEMAP_URLS_PER_PART", DEFAULT_URLS_PER_PART)


def default_last_modified(now: datetime | None = None) -> datetime:
    """Freshness heuristic: a week before generation time."""
    return (now or timezone.now()) - LASTMOD_AGE


def sitemap_filenames(part_count: int | None = None) -> list[str]:
    """All partition filenames in index order."""
    part_count = get_part_count() if part_count is None else part_count
    return [
        filename
        for partition in INDEX_PARTITIONS
        for filename in partition.filenames(part_count)
    ]


def resolve_code(document: dict, fields: tuple[str, ...] = ("iata", "code")) -> str | None:
    """
    Return the first non-empty code field of a document, lowercased.

    Documents without any usable code return None and are left out of sitemaps.
    """
    for field in fields:
        value = document.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


def _upper_code(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return None


def format_route_slug(origin: str, destination: str) -> str:
    return f"{origin.lower()}-{destination.lower()}"


def should_index_airport(airport: dict) -> bool:
    """Airports need activity, at least one destination and enough flights."""
    total_activity = (airport.get("departure_count") or 0) + (
        airport.get("arrival_count") or 0
    )
    if total_activity == 0:
        return False
    if not airport.get("destinations_count"):
        return False
    return total_activity >= MIN_AIRPORT_ACTIVITY


def route_quality_score(route: dict) -> int:
    """Count the data points a route page can show."""
    score = 0
    if route.get("has_flight_data"):
        score += 1
    if route.get("flights_per_day"):
        score += 1
    if route.get("average_duration") or route.get("typical_duration"):
        score += 1
    if route.get("origin_iata") and route.get("destination_iata"):
        score += 1
    return score


def _has_active_schedule(route: dict) -> bool:
    flights_per_day = route.get("flights_per_day")
    return bool(flights_per_day) and flights_per_day not in EMPTY_FLIGHTS_PER_DAY


def _as_aware_datetime(value) -> datetime | None:
    if isinstance(value, str):
        try:
            value = parse_datetime(value)
        except ValueError:
            # Well formatted but impossible, e.g. February 30th
            return None
    if not isinstance(value, datetime):
        return None
    if timezone.is_naive(value):
        # pymongo hands back naive UTC datetimes by default
        value = value.replace(tzinfo=UTC)
    return value


def _warn_truncated(partition: str, part_count: int, overflow: int) -> None:
    logger.warning(
        "Sitemap partition truncated",
        extra={
            "partition": partition,
            "part_count": part_count,
            "overflow": overflow,
        },
    )


class SiteSitemap(Sitemap):
    """
    Base for every sitemap of the site.

    Locations are absolute against SITE_URL rather than the requesting host.
    """

    def __init__(self, now: datetime | None = None):
        self.now = now or timezone.now()
        self.last_modified = default_last_modified(self.now)

    def get_protocol(self, protocol=None):
        return urlsplit(get_site_url()).scheme or super().get_protocol(protocol)

    def get_domain(self, site=None):
        site_url = urlsplit(get_site_url())
        return f"{site_url.netloc}{site_url.path}"

    def lastmod(self, item):
        return self.last_modified


class IndexSitemap(SiteSitemap):
    """
    Top-level manifest listing every sitemap file.

    The shape is fixed: static, airports, airlines and blogs once each, then
    flights, airline-routes and airline-airports once per numbered part.
    """

    def __init__(self, part_count: int | None = None, now: datetime | None = None):
        super().__init__(now)
        self.part_count = get_part_count() if part_count is None else part_count

    def items(self):
        return [
            (partition, filename)
            for partition in INDEX_PARTITIONS
            for filename in partition.filenames(self.part_count)
        ]

    def location(self, item):
        return f"/{item[1]}"

    def lastmod(self, item):
        return self.now

    def changefreq(self, item):
        return item[0].change_frequency

    def priority(self, item):
        return item[0].priority


class StaticSitemap(SiteSitemap):
    """Sitemap for the informational pages that have no documents."""

    def items(self):
        return list(STATIC_PAGES)

    def location(self, item):
        return item

    def changefreq(self, item):
        return STATIC_PAGES[item][0]

    def priority(self, item):
        return STATIC_PAGES[item][1]


class DocumentSitemap(SiteSitemap):
    """Sitemap whose items come from the flights database."""

    entity_kind = None

    def __init__(self, db: Database | None = None, now: datetime | None = None):
        super().__init__(now)
        self._db = db

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = get_database()
        return self._db

    def priority(self, item):
        return get_sitemap_priority(get_entity_role(self.entity_kind))


class AirportSitemap(DocumentSitemap):
    entity_kind = "airport"
    changefreq = ChangeFrequency.DAILY

    def items(self):
        """Codes of indexable airports, busiest first."""
        airports = find_documents(
            self.db,
            "airports",
            {"$or": [{"departure_count": {"$gt": 0}}, {"arrival_count": {"$gt": 0}}]},
            sort=[("departure_count", DESCENDING)],
            limit=ENTITY_QUERY_LIMIT,
        )
        codes = []
        for airport in airports:
            iata = resolve_code(airport, fields=("iata_from",))
            if iata is not None and should_index_airport(airport):
                codes.append(iata)
        return codes

    def location(self, item):
        return f"/airports/{item}"


class AirlineSitemap(DocumentSitemap):
    entity_kind = "airline"
    changefreq = ChangeFrequency.WEEKLY

    def items(self):
        airlines = find_documents(self.db, "airlines", {}, limit=ENTITY_QUERY_LIMIT)
        codes = (resolve_code(airline) for airline in airlines)
        return [code for code in codes if code is not None]

    def location(self, item):
        return f"/airlines/{item}"


class BlogSitemap(DocumentSitemap):
    """
    Sitemap for published blogs.

    A missing or failing blogs collection yields an empty sitemap rather than
    an error.
    """

    entity_kind = "blog"
    changefreq = ChangeFrequency.MONTHLY

    def items(self):
        try:
            blogs = find_documents(
                self.db,
                "blogs",
                {"status": "published"},
                limit=ENTITY_QUERY_LIMIT,
            )
        except DataAccessError:
            logger.warning("Blogs unavailable, emitting empty sitemap", exc_info=True)
            return []
        return [blog for blog in blogs if blog.get("slug")]

    def location(self, item):
        return f"/blog/{item['slug']}"

    def lastmod(self, item):
        """Recently edited blogs carry their own date, never later than now."""
        blog_date = _as_aware_datetime(item.get("updated_at") or item.get("published_at"))
        if blog_date is not None and blog_date > self.now - BLOG_FRESHNESS_WINDOW:
            return min(blog_date, self.now)
        return self.last_modified


class NumberedSitemap(DocumentSitemap):
    """
    One numbered part of a partition too large for a single file.

    A part with nothing to list falls back to a landing page so the document
    is never empty.
    """

    partition = None
    fallback_path = None
    changefreq = ChangeFrequency.DAILY

    def __init__(
        self,
        part: int,
        db: Database | None = None,
        now: datetime | None = None,
    ):
        super().__init__(db, now)
        self.part = part

    def items(self):
        pages = self.pages()
        if not pages:
            return [PartitionPage(self.fallback_path, FALLBACK_PRIORITY)]
        return pages

    def pages(self) -> list[PartitionPage]:
        raise NotImplementedError

    def location(self, item):
        return item.path

    def priority(self, item):
        return item.priority

    def paginate(self, pages: list[PartitionPage]) -> list[PartitionPage]:
        part_count = get_part_count()
        urls_per_part = get_urls_per_part()
        capacity = part_count * urls_per_part
        if self.part == part_count and len(pages) > capacity:
            _warn_truncated(self.partition, part_count, len(pages) - capacity)
        return pages[(self.part - 1) * urls_per_part : self.part * urls_per_part]

    def airline_codes(self) -> list[str]:
        airlines = find_documents(self.db, "airlines", {}, limit=ENTITY_QUERY_LIMIT)
        codes = (resolve_code(airline) for airline in airlines)
        return [code for code in codes if code is not None]

    def airline_departures(self, code: str, limit: int) -> list[dict]:
        return find_documents(
            self.db,
            "departures",
            {"airline_iata": code.upper()},
            limit=limit,
        )


class FlightSitemap(NumberedSitemap):
    """Routes with flight data, busiest first, paged through the database."""

    partition = "flights"
    fallback_path = "/flights"

    def pages(self):
        part_count = get_part_count()
        urls_per_part = get_urls_per_part()
        is_last_part = self.part == part_count

        routes = find_documents(
            self.db,
            "routes",
            {"has_flight_data": True},
            sort=[("flights_per_day", DESCENDING)],
            skip=(self.part - 1) * urls_per_part,
            # Fetch one extra on the last part to detect overflow
            limit=urls_per_part + 1 if is_last_part else urls_per_part,
        )
        if len(routes) > urls_per_part:
            _warn_truncated(self.partition, part_count, len(routes) - urls_per_part)
            routes = routes[:urls_per_part]

        role = get_entity_role("route")
        pages = []
        for route in routes:
            origin = _upper_code(route.get("origin_iata"))
            destination = _upper_code(route.get("destination_iata"))
            if not origin or not destination or not route.get("has_flight_data"):
                continue
            if not _has_active_schedule(route):
                continue
            quality_score = route_quality_score(route)
            if quality_score < MIN_ROUTE_QUALITY_SCORE:
                continue
            pages.append(
                PartitionPage(
                    f"/flights/{format_route_slug(origin, destination)}",
                    get_sitemap_priority(role, quality_score),
                ),
            )
        return pages


class AirlineRouteSitemap(NumberedSitemap):
    """
    Routes flown by each airline.

    An airline route is listed when the airline has departures on it and the
    route itself has flight data.
    """

    partition = "airline-routes"
    fallback_path = "/airlines"

    def pages(self):
        routes = find_documents(
            self.db,
            "routes",
            {"has_flight_data": True},
            sort=[("flights_per_day", DESCENDING)],
            limit=ROUTE_QUERY_LIMIT,
        )
        known_routes = {
            (_upper_code(route.get("origin_iata")), _upper_code(route.get("destination_iata")))
            for route in routes
            if route.get("has_flight_data")
        }

        pages = []
        for code in self.airline_codes():
            # dict keeps first-seen order while dropping duplicates
            pairs = {}
            for flight in self.airline_departures(code, AIRLINE_ROUTE_DEPARTURES_LIMIT):
                origin = _upper_code(flight.get("origin_iata"))
                destination = _upper_code(flight.get("destination_iata"))
                if origin and destination:
                    pairs[(origin, destination)] = None
            pages.extend(
                PartitionPage(
                    f"/airlines/{code}/{format_route_slug(origin, destination)}",
                    AIRLINE_ROUTE_PRIORITY,
                )
                for origin, destination in pairs
                if (origin, destination) in known_routes
            )
        return self.paginate(pages)


class AirlineAirportSitemap(NumberedSitemap):
    """Airports each airline serves, limited to airports with activity."""

    partition = "airline-airports"
    fallback_path = "/airlines"

    def active_airport_codes(self) -> set[str]:
        airports = find_documents(
            self.db,
            "airports",
            {"$or": [{"departure_count": {"$gt": 0}}, {"arrival_count": {"$gt": 0}}]},
            limit=ENTITY_QUERY_LIMIT,
        )
        codes = set()
        for airport in airports:
            for field in ("iata_from", "iata"):
                code = _upper_code(airport.get(field))
                if code:
                    codes.add(code)
        return codes

    def pages(self):
        active_airports = self.active_airport_codes()

        pages = []
        for code in self.airline_codes():
            airports = {}
            for flight in self.airline_departures(code, AIRLINE_AIRPORT_DEPARTURES_LIMIT):
                for field in ("origin_iata", "destination_iata"):
                    iata = _upper_code(flight.get(field))
                    if iata:
                        airports[iata] = None
            pages.extend(
                PartitionPage(f"/airlines/{code}/{iata.lower()}", AIRLINE_AIRPORT_PRIORITY)
                for iata in airports
                if iata in active_airports
            )
        return self.paginate(pages)


sitemaps = {
    "index": IndexSitemap,
    "static": StaticSitemap,
    "airports": AirportSitemap,
    "airlines": AirlineSitemap,
    "blogs": BlogSitemap,
    "flights": FlightSitemap,
    "airline-routes": AirlineRouteSitemap,
    "airline-airports": AirlineAirportSitemap,
}
