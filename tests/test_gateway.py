"""Unit tests for EventGateway against a mocked HTTP transport."""
import asyncio

import httpx

from conftest import event_payload
from eventsaround.gateway import EventGateway
from eventsaround.query import Category, SearchQuery
from eventsaround.results import ErrorKind, Failure, Success
from eventsaround.settings import DEFAULT_COORDINATES


def run(coro):
    return asyncio.run(coro)


QUERY = SearchQuery(keyword="jazz", category=Category.MUSIC, location="Los Angeles")


class TestSearchEvents:
    """Test cases for search_events."""

    def test_success_parses_embedded_events(self, gateway_factory):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"_embedded": {"events": [event_payload("E1"), event_payload("E2", "Play")]}},
            )

        result = run(gateway_factory(handler).search_events(QUERY))

        assert isinstance(result, Success)
        assert [e.id for e in result.value] == ["E1", "E2"]
        assert result.value[0].venue.name == "Hollywood Bowl"
        assert seen[0].url.path == "/api/search"
        assert seen[0].url.params["keyword"] == "jazz"
        assert seen[0].url.params["segmentId"] == "KZFzniwnSyZfZ7v7nJ"
        assert seen[0].url.params["location"] == "Los Angeles"

    def test_missing_embedded_is_empty_success(self, gateway_factory):
        """Test absence of results is not an error."""
        gateway = gateway_factory(lambda request: httpx.Response(200, json={"page": {"totalElements": 0}}))

        result = run(gateway.search_events(QUERY))

        assert result == Success([])

    def test_non_2xx_reports_status(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(503))

        result = run(gateway.search_events(QUERY))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.API_ERROR
        assert result.status == 503
        assert "503" in result.message

    def test_transport_error_retries_then_fails(self, gateway_factory):
        """Test connection errors are retried and then reported as TRANSPORT."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        result = run(gateway_factory(handler).search_events(QUERY))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TRANSPORT
        assert len(calls) == 2

    def test_transport_error_recovers_on_retry(self, gateway_factory):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"_embedded": {"events": [event_payload("E1")]}})

        result = run(gateway_factory(handler).search_events(QUERY))

        assert isinstance(result, Success)
        assert len(result.value) == 1

    def test_malformed_json_is_api_error(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(200, text="<html>oops</html>"))

        result = run(gateway.search_events(QUERY))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.API_ERROR


class TestEventDetails:
    """Test cases for get_event_details."""

    def test_success(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(200, json=event_payload("E1", "Concert")))

        result = run(gateway.get_event_details("E1"))

        assert isinstance(result, Success)
        assert result.value.name == "Concert"
        assert result.value.to_event().id == "E1"

    def test_empty_body_is_not_found(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(200, json={}))

        result = run(gateway.get_event_details("E1"))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.NOT_FOUND

    def test_404_is_not_found(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(404))

        result = run(gateway.get_event_details("missing"))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.NOT_FOUND

    def test_server_error_is_api_error(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(500))

        result = run(gateway.get_event_details("E1"))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.API_ERROR
        assert result.status == 500


class TestAutocomplete:
    """Test cases for get_autocomplete_suggestions."""

    def test_blank_keyword_skips_network(self, gateway_factory):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        result = run(gateway_factory(handler).get_autocomplete_suggestions("  "))

        assert result == Success([])
        assert calls == []

    def test_names_from_attractions(self, gateway_factory):
        def handler(request):
            assert request.url.params["keyword"] == "tay"
            return httpx.Response(
                200,
                json={"_embedded": {"attractions": [{"id": "1", "name": "Taylor Swift"}, {"id": "2", "name": "Tayc"}]}},
            )

        result = run(gateway_factory(handler).get_autocomplete_suggestions("tay"))

        assert result == Success(["Taylor Swift", "Tayc"])

    def test_failures_degrade_to_empty(self, gateway_factory):
        """Test autocomplete never surfaces an error."""
        def refused(request):
            raise httpx.ConnectError("down", request=request)

        for handler in (lambda request: httpx.Response(500), refused):
            result = run(gateway_factory(handler).get_autocomplete_suggestions("tay"))
            assert result == Success([])


class TestEnrichment:
    """Test cases for artist, album and venue lookups."""

    ARTIST = {
        "id": "ART1",
        "name": "Taylor Swift",
        "followers": {"total": 1000},
        "popularity": 99,
        "genres": ["pop"],
        "images": [],
        "external_urls": {"spotify": "https://open.spotify.com/artist/ART1"},
    }

    def test_artist_found(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(200, json=self.ARTIST))

        result = run(gateway.search_artist("Taylor Swift"))

        assert isinstance(result, Success)
        assert result.value.followers.total == 1000

    def test_artist_404_is_absent(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(404))

        assert run(gateway.search_artist("Nobody")) == Success(None)

    def test_artist_server_error_is_failure(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(502))

        result = run(gateway.search_artist("Taylor Swift"))

        assert isinstance(result, Failure)
        assert result.status == 502

    def test_albums_sorted_newest_first(self, gateway_factory):
        albums = [
            {"id": "a", "name": "Old", "release_date": "2010-01-01", "total_tracks": 10},
            {"id": "b", "name": "New", "release_date": "2024-04-19", "total_tracks": 16},
        ]
        gateway = gateway_factory(lambda request: httpx.Response(200, json={"items": albums}))

        result = run(gateway.get_artist_albums("ART1"))

        assert [a.name for a in result.value] == ["New", "Old"]

    def test_venue_details(self, gateway_factory):
        venue = {
            "name": "Hollywood Bowl",
            "address": {"line1": "2301 N Highland Ave"},
            "city": {"name": "Los Angeles"},
            "state": {"stateCode": "CA"},
            "postalCode": "90068",
            "boxOfficeInfo": {"phoneNumberDetail": "323-850-2000"},
        }
        gateway = gateway_factory(lambda request: httpx.Response(200, json=venue))

        result = run(gateway.get_venue_details("Hollywood Bowl"))

        assert result.value.full_address() == "2301 N Highland Ave, Los Angeles, CA, 90068"
        assert result.value.box_office_info.phone_number_detail == "323-850-2000"


class TestCurrentLocation:
    def test_parses_loc(self, gateway_factory):
        def handler(request):
            assert request.url.host == "ipinfo.test"
            return httpx.Response(200, json={"loc": "40.7128,-74.0060", "city": "New York"})

        result = run(gateway_factory(handler).get_current_location())

        assert result == Success((40.7128, -74.006))

    def test_failure_uses_default(self, gateway_factory):
        gateway = gateway_factory(lambda request: httpx.Response(200, json={"loc": "nowhere"}))

        assert run(gateway.get_current_location()) == Success(DEFAULT_COORDINATES)


class TestUnexpectedHttpErrors:
    """Test cases for httpx errors other than transport failures."""

    @staticmethod
    def redirecting_gateway(settings):
        def handler(request):
            return httpx.Response(302, headers={"Location": str(request.url)})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url=settings.api_base_url,
            follow_redirects=True,
        )
        return EventGateway(settings, client=client)

    def test_redirect_loop_fails_search(self, settings):
        result = run(self.redirecting_gateway(settings).search_events(QUERY))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TRANSPORT

    def test_redirect_loop_is_silent_for_autocomplete(self, settings):
        result = run(self.redirecting_gateway(settings).get_autocomplete_suggestions("taylor"))

        assert result == Success([])

    def test_undecodable_body_fails_details(self, gateway_factory):
        """Test a corrupt gzip body is reported instead of raising."""
        gateway = gateway_factory(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"
            )
        )

        result = run(gateway.get_event_details("E1"))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.TRANSPORT


def test_path_ids_are_escaped(gateway_factory):
    """Test ids with reserved characters stay inside their path segment."""
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(404)

    gateway = gateway_factory(handler)
    details = run(gateway.get_event_details("a/b?c"))
    albums = run(gateway.get_artist_albums("x/y"))

    assert isinstance(details, Failure)
    assert details.kind is ErrorKind.NOT_FOUND
    assert albums == Success([])
    assert seen == [b"/api/events/a%2Fb%3Fc", b"/api/spotify/artist/x%2Fy/albums"]
