import logging

import pytest
from django.http import HttpResponse
from django.test import RequestFactory

from config.logging import RequestContextFilter
from config.logging import RequestContextMiddleware
from config.logging import page_type_var
from config.logging import request_id_var
from triposia.pages.page_types import PageClassification
from triposia.pages.page_types import PageType
from triposia.pages.page_types import classify_path
from triposia.pages.page_types import get_entity_primary
from triposia.pages.page_types import get_entity_secondary
from triposia.pages.page_types import get_page_type


class TestGetPageType:
    """Tests for path classification."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/", PageType.HOME),
            ("/flights/jfk-lax", PageType.FLIGHT_ROUTE),
            ("/airports/jfk", PageType.AIRPORT),
            ("/airports/jfk/arrivals", PageType.AIRPORT),
            ("/airlines/AA", PageType.AIRLINE),
            ("/airlines/AA/JFK", PageType.AIRLINE_ROUTE),
            ("/airlines/aa/jfk-lax", PageType.AIRLINE_ROUTE),
            ("/blog/my-post", PageType.BLOG),
            ("/unknown/path", PageType.OTHER),
            ("/manifesto", PageType.OTHER),
        ],
    )
    def test_classifies_paths(self, path, expected):
        """Test each path family maps to its page type."""
        assert get_page_type(path) == expected

    def test_flights_token_without_hyphen_is_not_a_route(self):
        """The hyphen separates origin and destination; without it there is no route."""
        assert get_page_type("/flights/jfk") != PageType.FLIGHT_ROUTE
        assert get_page_type("/flights/jfk") == PageType.OTHER

    def test_flights_index_is_other(self):
        """Test the flights landing page is not a route."""
        assert get_page_type("/flights") == PageType.OTHER

    def test_airlines_with_extra_segments_is_other(self):
        """Test airline paths deeper than two segments are unmatched."""
        assert get_page_type("/airlines/AA/JFK/extra") == PageType.OTHER

    @pytest.mark.parametrize("path", ["", "flights/jfk-lax", "//", None])
    def test_empty_or_malformed_paths_are_other(self, path):
        """Test empty, relative and non-string paths are unmatched."""
        assert get_page_type(path) == PageType.OTHER

    def test_any_hyphenated_flights_token_is_a_route(self):
        """Test any hyphen in the flights token makes it a route."""
        assert get_page_type("/flights/from-jfk") == PageType.FLIGHT_ROUTE


class TestEntityExtraction:
    """Tests for primary and secondary identifier extraction."""

    @pytest.mark.parametrize("code", ["aa", "AA", "b6", "Dl"])
    def test_airline_primary_is_uppercased(self, code):
        """Test the airline code is uppercased and there is no secondary."""
        path = f"/airlines/{code}"
        assert get_page_type(path) == PageType.AIRLINE
        assert get_entity_primary(path, PageType.AIRLINE) == code.upper()
        assert get_entity_secondary(path, PageType.AIRLINE) is None

    @pytest.mark.parametrize(("code", "sub"), [("aa", "jfk"), ("DL", "LAX"), ("b6", "Jfk-Lax")])
    def test_airline_route_secondary_keeps_case(self, code, sub):
        """Test the airline route secondary keeps its path case."""
        path = f"/airlines/{code}/{sub}"
        assert get_page_type(path) == PageType.AIRLINE_ROUTE
        assert get_entity_primary(path, PageType.AIRLINE_ROUTE) == code.upper()
        assert get_entity_secondary(path, PageType.AIRLINE_ROUTE) == sub

    @pytest.mark.parametrize(("origin", "destination"), [("jfk", "lax"), ("DEL", "bom")])
    def test_flight_route_identifiers(self, origin, destination):
        """Test the route token is primary and the destination is secondary."""
        path = f"/flights/{origin}-{destination}"
        assert get_page_type(path) == PageType.FLIGHT_ROUTE
        assert get_entity_primary(path, PageType.FLIGHT_ROUTE) == f"{origin}-{destination}"
        assert get_entity_secondary(path, PageType.FLIGHT_ROUTE) == destination.upper()

    def test_airport_primary_is_uppercased(self):
        """Test the airport code is uppercased."""
        assert get_entity_primary("/airports/jfk", PageType.AIRPORT) == "JFK"
        assert get_entity_secondary("/airports/jfk", PageType.AIRPORT) is None

    def test_airport_primary_is_first_segment(self):
        """Test only the first segment after the airports prefix is used."""
        assert get_entity_primary("/airports/jfk/departures", PageType.AIRPORT) == "JFK"

    @pytest.mark.parametrize(
        ("path", "page_type"),
        [
            ("/", PageType.HOME),
            ("/blog/my-post", PageType.BLOG),
            ("/unknown/path", PageType.OTHER),
        ],
    )
    def test_other_types_have_no_identifiers(self, path, page_type):
        """Test home, blog and unmatched pages carry no identifiers."""
        assert get_entity_primary(path, page_type) is None
        assert get_entity_secondary(path, page_type) is None

    def test_empty_segments_yield_no_identifier(self):
        """Test empty segments give None instead of an empty string."""
        assert get_entity_primary("/airlines/", PageType.AIRLINE) is None
        assert get_entity_secondary("/airlines/AA/", PageType.AIRLINE_ROUTE) is None


class TestClassifyPath:
    def test_combines_type_and_identifiers(self):
        """Test classification bundles the type with both identifiers."""
        assert classify_path("/airlines/aa/jfk") == PageClassification(
            path="/airlines/aa/jfk",
            page_type=PageType.AIRLINE_ROUTE,
            entity_primary="AA",
            entity_secondary="jfk",
        )

    def test_unmatched_path(self):
        """Test an unmatched path has no identifiers."""
        classification = classify_path("/team")
        assert classification.page_type == PageType.OTHER
        assert classification.entity_primary is None
        assert classification.entity_secondary is None


def _make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)


class TestRequestContextMiddleware:
    """Tests for request classification in the logging context."""

    def test_attaches_classification_and_log_context(self, rf: RequestFactory):
        """Test the request and its log records carry the classification."""
        captured = {}

        def get_response(request):
            record = _make_record()
            RequestContextFilter().filter(record)
            captured["record"] = record
            return HttpResponse()

        request = rf.get("/flights/jfk-lax")
        RequestContextMiddleware(get_response)(request)

        assert request.page_classification.page_type == PageType.FLIGHT_ROUTE
        record = captured["record"]
        assert record.page_type == "flight_route"
        assert record.entity_primary == "jfk-lax"
        assert record.entity_secondary == "LAX"
        assert record.path == "/flights/jfk-lax"
        assert record.method == "GET"
        assert record.ip_address == "127.0.0.1"
        assert record.request_id

    def test_prefers_forwarded_client_ip(self, rf: RequestFactory):
        """Test the first forwarded address is logged as the client IP."""
        captured = {}

        def get_response(request):
            record = _make_record()
            RequestContextFilter().filter(record)
            captured["record"] = record
            return HttpResponse()

        request = rf.get("/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1")
        RequestContextMiddleware(get_response)(request)

        assert captured["record"].ip_address == "203.0.113.7"
        assert captured["record"].page_type == "home"

    def test_clears_context_after_response(self, rf: RequestFactory):
        """Test the logging context is reset after each request."""
        middleware = RequestContextMiddleware(lambda request: HttpResponse())
        middleware(rf.get("/airports/jfk"))

        assert request_id_var.get() is None
        assert page_type_var.get() is None

    def test_filter_keeps_explicit_values(self):
        """Test values passed explicitly to a log call are kept."""
        record = _make_record()
        record.page_type = "explicit"
        RequestContextFilter().filter(record)
        assert record.page_type == "explicit"
        assert record.request_id is None
