"""
Tests for the HTTP data providers, driven through httpx.MockTransport.

Tests cover:
- NASA NEO browse success and each failure mode
- Read-timeout retries
- USGS elevation success and degraded fallback
"""

import httpx
import pytest

from defense_api.catalog import FALLBACK_PROFILES, CatalogStore
from defense_api.config import Settings
from defense_api.errors import CatalogFetchError
from defense_api.providers import ElevationClient, NeoCatalogClient

SETTINGS = Settings(nasa_api_key="abcdef123456", http_attempts=1)


def neo_payload(n):
    return {"near_earth_objects": [
        {
            "id": str(1000 + i),
            "name": f"NEO {i}",
            "estimated_diameter": {"kilometers": {"estimated_diameter_min": 0.2, "estimated_diameter_max": 0.4}},
            "is_potentially_hazardous_asteroid": i % 2 == 0,
            "close_approach_data": [{"relative_velocity": {"kilometers_per_second": "12.5"}}],
        }
        for i in range(n)
    ]}


def neo_client(handler, settings=SETTINGS):
    return NeoCatalogClient(settings, transport=httpx.MockTransport(handler))


# =============================================================================
# NASA NEO
# =============================================================================

class TestNeoCatalogClient:

    def test_success(self):
        seen = {}

        def handler(request):
            seen["api_key"] = request.url.params["api_key"]
            return httpx.Response(200, json=neo_payload(12))

        profiles = neo_client(handler).fetch_catalog()
        assert seen["api_key"] == "abcdef123456"
        assert len(profiles) == 10
        first = profiles["asteroid-0"]
        assert first.name == "NEO 0"
        assert first.diameter_km == pytest.approx(0.3)
        assert first.velocity_kms == pytest.approx(12.5)
        assert first.is_hazardous

    def test_catalog_size_setting(self):
        client = neo_client(lambda r: httpx.Response(200, json=neo_payload(12)),
                            Settings(http_attempts=1, catalog_size=3))
        assert len(client.fetch_catalog()) == 3

    def test_rate_limited(self):
        with pytest.raises(CatalogFetchError, match="rate limit"):
            neo_client(lambda r: httpx.Response(429)).fetch_catalog()

    def test_forbidden(self):
        with pytest.raises(CatalogFetchError, match="forbidden"):
            neo_client(lambda r: httpx.Response(403)).fetch_catalog()

    def test_server_error(self):
        with pytest.raises(CatalogFetchError, match="500"):
            neo_client(lambda r: httpx.Response(500, text="boom")).fetch_catalog()

    def test_non_json(self):
        with pytest.raises(CatalogFetchError, match="non-JSON"):
            neo_client(lambda r: httpx.Response(200, text="<html>")).fetch_catalog()

    def test_empty_list(self):
        with pytest.raises(CatalogFetchError, match="No asteroids"):
            neo_client(lambda r: httpx.Response(200, json={"near_earth_objects": []})).fetch_catalog()

    @pytest.mark.parametrize("objects", [
        [{"name": "x", "close_approach_data": ["bad"]}],
        ["not an object"],
        [{"name": "y", "estimated_diameter": "wide"}],
    ])
    def test_malformed_entries(self, objects):
        client = neo_client(lambda r: httpx.Response(200, json={"near_earth_objects": objects}))
        with pytest.raises(CatalogFetchError, match="malformed"):
            client.fetch_catalog()

    def test_malformed_entries_install_fallback(self):
        client = neo_client(lambda r: httpx.Response(
            200, json={"near_earth_objects": [{"name": "x", "close_approach_data": ["bad"]}]}))
        store = CatalogStore()
        assert store.refresh(client.fetch_catalog)
        assert store.table.source == "fallback"
        assert "malformed" in store.table.error
        assert store.retry_available
        assert set(FALLBACK_PROFILES) <= set(store.table.profiles)

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CatalogFetchError, match="unreachable"):
            neo_client(handler).fetch_catalog()

    def test_read_timeout_retried(self, monkeypatch):
        monkeypatch.setattr("defense_api.providers.time.sleep", lambda s: None)
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json=neo_payload(2))

        profiles = neo_client(handler, Settings(http_attempts=3)).fetch_catalog()
        assert len(calls) == 3
        assert len(profiles) == 2

    def test_read_timeout_exhausted(self, monkeypatch):
        monkeypatch.setattr("defense_api.providers.time.sleep", lambda s: None)

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CatalogFetchError):
            neo_client(handler, Settings(http_attempts=2)).fetch_catalog()


# =============================================================================
# USGS ELEVATION
# =============================================================================

class TestElevationClient:

    def elevation(self, handler, lat=35.0, lon=-100.0):
        return ElevationClient(SETTINGS, transport=httpx.MockTransport(handler)).elevation(lat, lon)

    def test_success(self):
        seen = {}

        def handler(request):
            seen["geometry"] = request.url.params["geometry"]
            return httpx.Response(200, json={"samples": [{"value": "812.4"}]})

        sample = self.elevation(handler)
        assert sample.elevation_m == pytest.approx(812.4)
        assert sample.source == "usgs-3dep"
        assert seen["geometry"] == "-100.0,35.0"

    def test_http_error_falls_back(self):
        sample = self.elevation(lambda r: httpx.Response(503))
        assert sample.elevation_m is None
        assert sample.source == "fallback"

    def test_no_samples_falls_back(self):
        sample = self.elevation(lambda r: httpx.Response(200, json={"samples": []}))
        assert sample.source == "fallback"

    def test_nodata_value(self):
        sample = self.elevation(lambda r: httpx.Response(200, json={"samples": [{"value": "NoData"}]}))
        assert sample.elevation_m is None
        assert sample.source == "usgs-3dep"

    def test_non_json_falls_back(self):
        assert self.elevation(lambda r: httpx.Response(200, text="nope")).source == "fallback"
