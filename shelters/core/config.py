"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SOURCES = {"safety", "dssp", "fixture"}

_DEFAULT_ENDPOINTS = {
    "safety": ("https://apis.data.go.kr", "/1741000/TsunamiShelter3/getTsunamiShelter1List"),
    "dssp": ("https://www.safetydata.go.kr", "/V2/api/DSSP-IF-10944"),
    "fixture": ("", ""),
}


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


@dataclass(frozen=True)
class Settings:
    source: str = "safety"
    service_key: str = ""
    base_url: str = ""
    endpoint: str = ""
    fixture_path: str = ""
    database_url: str = ""
    page_size: int = 1000
    max_pages: int = 100
    page_delay: float = 0.1
    request_timeout: float = 10.0
    stop_on_short_page: bool = False
    nearest_radius_km: float = 50.0
    nearest_default_limit: int = 10
    staged_reinitialize: bool = False
    port: int = 8080

    @property
    def source_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.endpoint}"


def _get_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    source = os.getenv("SHELTER_SOURCE", "safety").strip().lower()
    if source not in SOURCES:
        raise ConfigError(f"SHELTER_SOURCE must be one of {sorted(SOURCES)}, got {source!r}")

    default_base_url, default_endpoint = _DEFAULT_ENDPOINTS[source]
    service_key = os.getenv("DATA_SERVICE_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    fixture_path = os.getenv("FIXTURE_PATH", "")

    page_size = _get_int("INGEST_PAGE_SIZE", 1000)
    if page_size <= 0:
        raise ConfigError("INGEST_PAGE_SIZE must be positive")
    nearest_default_limit = _get_int("NEAREST_DEFAULT_LIMIT", 10)
    if nearest_default_limit <= 0:
        raise ConfigError("NEAREST_DEFAULT_LIMIT must be positive")

    if source != "fixture" and not service_key:
        logger.warning("DATA_SERVICE_KEY is not configured; shelter API requests will fail.")
    if source == "fixture" and not fixture_path:
        logger.warning("FIXTURE_PATH is not set; the fixture source has nothing to serve.")
    if not database_url:
        logger.warning("DATABASE_URL is not set; shelters are kept in memory only.")

    return Settings(
        source=source,
        service_key=service_key,
        base_url=os.getenv("DATA_BASE_URL") or default_base_url,
        endpoint=os.getenv("DATA_ENDPOINT") or default_endpoint,
        fixture_path=fixture_path,
        database_url=database_url,
        page_size=page_size,
        max_pages=_get_int("INGEST_MAX_PAGES", 100),
        page_delay=_get_float("INGEST_PAGE_DELAY", 0.1),
        request_timeout=_get_float("INGEST_REQUEST_TIMEOUT", 10.0),
        stop_on_short_page=_get_bool("INGEST_STOP_ON_SHORT_PAGE"),
        nearest_radius_km=_get_float("NEAREST_SEARCH_RADIUS_KM", 50.0),
        nearest_default_limit=nearest_default_limit,
        staged_reinitialize=_get_bool("REINIT_STAGED"),
        port=_get_int("PORT", 8080),
    )
