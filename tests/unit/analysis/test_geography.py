import httpx
import pytest

from backend.analysis.geography import GazetteerGeocoder, extract_location_phrases
from backend.config.settings import settings

CUSCO_RESULT = [{
    "display_name": "Cusco, Cusco, Peru",
    "lat": "-13.5319",
    "lon": "-71.9675",
    "type": "city",
    "importance": 0.5,
    "address": {"city": "Cusco", "state": "Cusco", "country": "Peru"},
}]


def test_extract_location_phrases_drops_trailing_qualifier():
    phrases = extract_location_phrases("Reef work in New York City")

    assert phrases == ["Reef", "New York", "New", "York"]


class TestGazetteerLookup:

    def test_city(self, geocoder):
        location = geocoder.find_local("London")

        assert location.city == "London"
        assert location.state == "England"
        assert location.country == "United Kingdom"
        assert location.administrative_level == "city"
        assert location.confidence == 95

    def test_state(self, geocoder):
        location = geocoder.find_local("Queensland")

        assert location.state == "Queensland"
        assert location.country == "Australia"
        assert location.confidence == 90

    def test_country_alias(self, geocoder):
        location = geocoder.find_local("USA")

        assert location.country == "United States"
        assert location.administrative_level == "country"
        assert location.confidence == 95

    @pytest.mark.asyncio
    async def test_unknown_place_without_remote(self, geocoder):
        assert await geocoder.resolve_location("Atlantis") is None

    @pytest.mark.asyncio
    async def test_extract_locations_dedupes(self, geocoder):
        locations = await geocoder.extract_locations("Kenya needs help. Kenya has reefs near Mombasa.")

        assert [loc.name for loc in locations] == ["Kenya", "Mombasa"]


class TestNominatimFallback:

    @pytest.mark.asyncio
    async def test_remote_lookup_and_cache(self):
        """Test that an unknown place is resolved remotely once and then cached."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=CUSCO_RESULT)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GazetteerGeocoder(remote_enabled=True, rate_limit_seconds=0, client=client)
            first = await geocoder.resolve_location("Cusco")
            second = await geocoder.resolve_location("cusco")

        assert first.source == "nominatim"
        assert first.country == "Peru"
        assert first.administrative_level == "city"
        assert first.confidence == 85
        assert second == first
        assert len(calls) == 1
        assert calls[0].url.params["q"] == "Cusco"
        assert calls[0].headers["User-Agent"] == settings.nominatim_user_agent

    @pytest.mark.asyncio
    async def test_remote_miss_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GazetteerGeocoder(remote_enabled=True, rate_limit_seconds=0, client=client)
            assert await geocoder.resolve_location("Nowhere") is None

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GazetteerGeocoder(remote_enabled=True, rate_limit_seconds=0, client=client)
            assert await geocoder.resolve_location("Cusco") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>rate limited</html>"),
        httpx.Response(200, json=[{"display_name": "Cusco, Peru", "address": {}}]),
    ], ids=["non-json-body", "missing-coordinates"])
    async def test_malformed_response_returns_none(self, response):
        def handler(request: httpx.Request) -> httpx.Response:
            return response

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GazetteerGeocoder(remote_enabled=True, rate_limit_seconds=0, client=client)
            assert await geocoder.resolve_location("Cusco") is None

    @pytest.mark.asyncio
    async def test_gazetteer_hit_skips_remote(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("remote lookup should not happen")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            geocoder = GazetteerGeocoder(remote_enabled=True, rate_limit_seconds=0, client=client)
            location = await geocoder.resolve_location("Nairobi")

        assert location.source == "local"
        assert location.state == "Nairobi County"
