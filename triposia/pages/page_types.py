"""
Classification of URL paths into semantic page types.

Classification depends only on the shape of the path (its literal prefix and
segment count) and never raises: anything unrecognised is ``PageType.OTHER``.
"""

from enum import StrEnum

import attrs

FLIGHTS_PREFIX = "/flights/"
AIRPORTS_PREFIX = "/airports/"
AIRLINES_PREFIX = "/airlines/"
BLOG_PREFIX = "/blog/"

# "/airlines/AA".split("/") -> ["", "airlines", "AA"]
AIRLINE_SEGMENT_COUNT = 3
AIRLINE_ROUTE_SEGMENT_COUNT = 4


class PageType(StrEnum):
    HOME = "home"
    FLIGHT_ROUTE = "flight_route"
    AIRPORT = "airport"
    AIRLINE = "airline"
    AIRLINE_ROUTE = "airline_route"
    BLOG = "blog"
    OTHER = "other"


@attrs.frozen
class PageClassification:
    """Page type of a path plus the entity identifiers embedded in it."""

    path: str
    page_type: PageType
    entity_primary: str | None = None
    entity_secondary: str | None = None


def get_page_type(path: str) -> PageType:
    """
    Determine the page type of a URL path.

    Rules are checked in order and the first match wins.
    """
    if not isinstance(path, str) or not path:
        return PageType.OTHER
    if path == "/":
        return PageType.HOME
    if path.startswith(FLIGHTS_PREFIX) and "-" in path[len(FLIGHTS_PREFIX) :]:
        return PageType.FLIGHT_ROUTE
    if path.startswith(AIRPORTS_PREFIX):
        return PageType.AIRPORT
    if path.startswith(AIRLINES_PREFIX):
        segment_count = len(path.split("/"))
        if segment_count == AIRLINE_SEGMENT_COUNT:
            return PageType.AIRLINE
        if segment_count == AIRLINE_ROUTE_SEGMENT_COUNT:
            return PageType.AIRLINE_ROUTE
    if path.startswith(BLOG_PREFIX):
        return PageType.BLOG
    return PageType.OTHER


def _after(path: str, prefix: str) -> str:
    return path.partition(prefix)[2]


def get_entity_primary(path: str, page_type: PageType) -> str | None:
    """
    Extract the primary entity identifier of a classified path.

    Examples:
        /flights/jfk-lax  -> "jfk-lax" (raw route token)
        /airports/jfk     -> "JFK"
        /airlines/aa/jfk  -> "AA"
    """
    match page_type:
        case PageType.FLIGHT_ROUTE:
            identifier = _after(path, FLIGHTS_PREFIX)
        case PageType.AIRPORT:
            identifier = _after(path, AIRPORTS_PREFIX).split("/")[0].upper()
        case PageType.AIRLINE | PageType.AIRLINE_ROUTE:
            identifier = _after(path, AIRLINES_PREFIX).split("/")[0].upper()
        case _:
            return None
    return identifier or None


def get_entity_secondary(path: str, page_type: PageType) -> str | None:
    """
    Extract the secondary entity identifier of a classified path.

    Flight routes yield the uppercased destination code. Airline routes yield
    the segment after the airline code as written in the path (not uppercased,
    unlike the primary identifier; callers may depend on the original case).
    """
    if page_type == PageType.AIRLINE_ROUTE:
        parts = _after(path, AIRLINES_PREFIX).split("/")
        if len(parts) > 1 and parts[1]:
            return parts[1]
        return None
    if page_type == PageType.FLIGHT_ROUTE:
        route = _after(path, FLIGHTS_PREFIX)
        if "-" in route:
            destination = route.split("-")[1]
            return destination.upper() or None
    return None


def classify_path(path: str) -> PageClassification:
    page_type = get_page_type(path)
    return PageClassification(
        path=path,
        page_type=page_type,
        entity_primary=get_entity_primary(path, page_type),
        entity_secondary=get_entity_secondary(path, page_type),
    )
