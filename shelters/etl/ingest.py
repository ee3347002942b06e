"""Sequential page walker that collects normalized shelters from a data source."""

import logging
import threading
import time
from typing import List, Optional

import requests

from shelters.core.config import ConfigError, Settings
from shelters.core.models import FetchResult, ShelterRecord
from shelters.etl.transform import normalize_item
from shelters.vendors.base import DataSourceError, ShelterDataSource
from shelters.vendors.dssp import DsspDataSource
from shelters.vendors.fixture import FixtureDataSource
from shelters.vendors.safety_data import SafetyDataSource

logger = logging.getLogger(__name__)


def build_data_source(settings: Settings) -> ShelterDataSource:
    if settings.source == "safety":
        return SafetyDataSource(settings.source_url, settings.service_key, timeout=settings.request_timeout)
    if settings.source == "dssp":
        return DsspDataSource(settings.source_url, settings.service_key, timeout=settings.request_timeout)
    if settings.source == "fixture":
        if not settings.fixture_path:
            raise ConfigError("FIXTURE_PATH is required for the fixture source")
        return FixtureDataSource(settings.fixture_path)
    raise ConfigError(f"Unknown shelter source: {settings.source}")


class ShelterIngestor:
    """Walks a data source from page 1 with at most one page request in flight.

    Stops when the reported total has been reached, when a page comes back
    empty, when ``max_pages`` is hit, when ``cancel_event`` is set between
    pages, or when a page fails. A failed page ends the walk with whatever was
    gathered so far and ``complete=False``. With ``stop_on_short_page`` a page
    holding fewer items than requested is also treated as the last one.
    """

    def __init__(
        self,
        source: ShelterDataSource,
        *,
        page_size: int = 1000,
        max_pages: int = 100,
        page_delay: float = 0.1,
        stop_on_short_page: bool = False,
        sleep=time.sleep,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.source = source
        self.page_size = page_size
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.stop_on_short_page = stop_on_short_page
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShelterIngestor":
        return cls(
            build_data_source(settings),
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            page_delay=settings.page_delay,
            stop_on_short_page=settings.stop_on_short_page,
        )

    def fetch_all(self, cancel_event: Optional[threading.Event] = None) -> FetchResult:
        records: List[ShelterRecord] = []
        total_count: Optional[int] = None
        items_seen = 0
        pages_fetched = 0
        page_no = 1

        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Ingestion cancelled before page %d", page_no)
                return FetchResult(records, False, total_count, pages_fetched, items_seen, "cancelled")

            try:
                page = self.source.fetch_page(page_no, self.page_size)
            except (DataSourceError, requests.RequestException, ValueError) as exc:
                logger.error("Page %d failed, keeping %d shelters gathered so far: %s", page_no, len(records), exc)
                return FetchResult(records, False, total_count, pages_fetched, items_seen, str(exc))

            pages_fetched += 1
            if page.total_count_reported is not None:
                total_count = page.total_count_reported

            kept = 0
            for item in page.items:
                record = normalize_item(item, self.source.schema)
                if record is not None:
                    records.append(record)
                    kept += 1
            items_seen += len(page.items)
            logger.info(
                "Page %d: %d items, %d kept (accumulated=%d, totalCount=%s)",
                page_no,
                len(page.items),
                kept,
                len(records),
                total_count,
            )

            if total_count is not None and (len(records) >= total_count or items_seen >= total_count):
                break
            if not page.items:
                break
            if self.stop_on_short_page and len(page.items) < self.page_size:
                break
            if pages_fetched >= self.max_pages:
                logger.warning("Stopping after max_pages=%d with %d shelters", self.max_pages, len(records))
                return FetchResult(records, False, total_count, pages_fetched, items_seen, "max_pages reached")

            page_no += 1
            if self.page_delay > 0:
                self._sleep(self.page_delay)

        complete = total_count is None or items_seen >= total_count
        if not complete:
            logger.warning("Feed reported %d items but only %d arrived", total_count, items_seen)
        logger.info("Ingestion finished: %d shelters over %d pages", len(records), pages_fetched)
        return FetchResult(records, complete, total_count, pages_fetched, items_seen)
