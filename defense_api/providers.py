from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .catalog import AsteroidProfile, profiles_from_neo
from .config import Settings, mask_key
from .errors import CatalogFetchError

log = logging.getLogger(__name__)


def _get_with_retries(client: httpx.Client, url: str, params: Dict[str, Any],
                      attempts: int = 3, timeout_note: str = "") -> httpx.Response:
    last_exc = None
    for i in range(1, attempts + 1):
        try:
            log.debug(f"[http.try] attempt={i} url={url}")
            r = client.get(url, params=params)
            log.debug(f"[http.try] status={r.status_code} attempt={i}")
            return r
        except httpx.ReadTimeout as e:
            last_exc = e
            log.warning(f"[http.timeout] attempt={i} {timeout_note} error={e}")
            if i < attempts:
                time.sleep(0.8 * i)
            continue
    raise last_exc


# -------------------------------
# NASA NEO browse
# -------------------------------

class NeoCatalogClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.settings.http_timeout_s, transport=self._transport)

    def fetch_catalog(self) -> dict[str, AsteroidProfile]:
        s = self.settings
        params = {"api_key": s.nasa_api_key}
        log.info(f"[catalog.fetch] GET {s.nasa_neo_url} key={mask_key(s.nasa_api_key)}")
        try:
            with self._client() as client:
                r = _get_with_retries(client, s.nasa_neo_url, params, attempts=s.http_attempts,
                                      timeout_note="neo")
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"NASA API unreachable: {e}") from e

        if r.status_code == 429:
            raise CatalogFetchError("NASA API rate limit exceeded. DEMO_KEY has strict limits; "
                                    "try again later or use a personal API key from api.nasa.gov")
        if r.status_code == 403:
            raise CatalogFetchError("NASA API access forbidden. The API key may be invalid or expired.")
        if r.is_error:
            raise CatalogFetchError(f"NASA API error: {r.status_code} {r.reason_phrase} - {r.text[:200]}")

        try:
            data = r.json()
        except ValueError as je:
            raise CatalogFetchError(f"NASA API returned non-JSON: {je}") from je

        objects = (data.get("near_earth_objects") or []) if isinstance(data, dict) else []
        log.info(f"[catalog.fetch] near_earth_objects={len(objects)}")
        if not objects:
            raise CatalogFetchError("No asteroids found in NASA API response")
        try:
            return profiles_from_neo(objects, limit=s.catalog_size)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CatalogFetchError(f"NASA API returned malformed asteroid data: {e!r}") from e


# -------------------------------
# USGS 3DEP point elevation
# -------------------------------

@dataclass(frozen=True)
class ElevationSample:
    elevation_m: Optional[float]
    source: str          # "usgs-3dep" | "fallback"


class ElevationClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def elevation(self, lat: float, lon: float) -> ElevationSample:
        """Point elevation; any failure yields ElevationSample(None, 'fallback')."""
        params = {
            "geometry": f"{lon},{lat}",
            "geometryType": "esriGeometryPoint",
            "returnFirstValueOnly": "true",
            "f": "json",
        }
        try:
            with httpx.Client(timeout=self.settings.http_timeout_s, transport=self._transport) as client:
                r = _get_with_retries(client, self.settings.elevation_url, params,
                                      attempts=self.settings.http_attempts, timeout_note="elevation")
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(f"[elevation] lookup failed lat={lat} lon={lon}: {e}")
            return ElevationSample(None, "fallback")

        samples = data.get("samples") if isinstance(data, dict) else None
        if not samples:
            return ElevationSample(None, "fallback")
        value = samples[0].get("value")
        try:
            z = float(value)
        except (TypeError, ValueError):
            z = None
        return ElevationSample(z, "usgs-3dep")
