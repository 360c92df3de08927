from __future__ import annotations
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

log = logging.getLogger(__name__)

NASA_NEO_BROWSE_URL = "https://api.nasa.gov/neo/rest/v1/neo/browse"
USGS_3DEP_URL = ("https://elevation.nationalmap.gov/arcgis/rest/services/"
                 "3DEPElevation/ImageServer/getSamples")


@dataclass(frozen=True)
class Settings:
    nasa_api_key: str = "DEMO_KEY"
    nasa_neo_url: str = NASA_NEO_BROWSE_URL
    elevation_url: str = USGS_3DEP_URL
    http_timeout_s: float = 10.0
    http_attempts: int = 3
    catalog_size: int = 10
    retry_delay_s: float = 5.0
    countdown_s: int = 15
    log_level: str = "INFO"


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        log.warning(f"[config] {name}={raw!r} is not a valid {cast.__name__}; using {default}")
        return default


def load_settings() -> Settings:
    """Read settings from the environment (and a .env file when present)."""
    load_dotenv()
    return Settings(
        nasa_api_key=os.getenv("NASA_API_KEY", "DEMO_KEY"),
        nasa_neo_url=os.getenv("NASA_NEO_URL", NASA_NEO_BROWSE_URL),
        elevation_url=os.getenv("ELEVATION_URL", USGS_3DEP_URL),
        http_timeout_s=_env_number("HTTP_TIMEOUT_S", 10.0, float),
        http_attempts=max(1, _env_number("HTTP_ATTEMPTS", 3, int)),
        catalog_size=max(1, _env_number("CATALOG_SIZE", 10, int)),
        retry_delay_s=max(0.0, _env_number("CATALOG_RETRY_DELAY_S", 5.0, float)),
        countdown_s=max(1, _env_number("COUNTDOWN_S", 15, int)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def mask_key(s: str | None) -> str | None:
    if not s:
        return s
    return s[:3] + "***" + s[-3:] if len(s) > 6 else "***"
