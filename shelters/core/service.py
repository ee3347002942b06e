"""Use-case layer: reinitialization, proximity queries and keyword search."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional

from shelters.core.config import Settings
from shelters.core.geo import distance, search_bounds
from shelters.core.models import ReinitializeResult, ShelterMatch, ShelterRecord
from shelters.core.store import ShelterStore, build_store
from shelters.etl.ingest import ShelterIngestor

logger = logging.getLogger(__name__)

DEFAULT_NEAREST_RADIUS_KM = 50.0


def rank_by_distance(records: Iterable[ShelterRecord], latitude: float, longitude: float) -> List[ShelterMatch]:
    """Annotate spatially valid records with their distance, nearest first (stable)."""
    matches = [
        ShelterMatch(record, distance(latitude, longitude, record.latitude, record.longitude))
        for record in records
        if record.is_spatially_valid
    ]
    matches.sort(key=lambda match: match.distance_km)
    return matches


class ShelterService:
    def __init__(
        self,
        store: ShelterStore,
        ingestor: ShelterIngestor,
        *,
        nearest_radius_km: float = DEFAULT_NEAREST_RADIUS_KM,
        staged: bool = False,
    ):
        self.store = store
        self.ingestor = ingestor
        self.nearest_radius_km = nearest_radius_km
        self.staged = staged
        self._reinit_lock = threading.Lock()

    def reinitialize(self, cancel_event: Optional[threading.Event] = None) -> ReinitializeResult:
        """Reload the store from the data source; only one run at a time.

        Default mode empties the store before fetching, so a fetch that
        yields nothing leaves it empty. Staged mode fetches first and swaps in
        one step, leaving the store untouched on failure.
        """
        if not self._reinit_lock.acquire(blocking=False):
            logger.warning("Reinitialization already running; rejecting concurrent request")
            return ReinitializeResult.failure("reinitialization already in progress")
        try:
            if self.staged:
                return self._reinitialize_staged(cancel_event)
            return self._reinitialize_in_place(cancel_event)
        finally:
            self._reinit_lock.release()

    def _reinitialize_in_place(self, cancel_event: Optional[threading.Event]) -> ReinitializeResult:
        logger.info("Shelter reinitialization started")
        self.store.delete_all()

        fetched = self.ingestor.fetch_all(cancel_event)
        if not fetched.records:
            logger.warning("No shelters to store (error=%s); store left empty", fetched.error)
            return ReinitializeResult.failure(fetched.error or "data source returned no shelters")

        saved = self.store.save_all(fetched.records)
        logger.info("Stored %d shelters (complete=%s)", len(saved), fetched.complete)
        return ReinitializeResult.ok(len(saved), complete=fetched.complete)

    def _reinitialize_staged(self, cancel_event: Optional[threading.Event]) -> ReinitializeResult:
        logger.info("Staged shelter reinitialization started")
        fetched = self.ingestor.fetch_all(cancel_event)
        if not fetched.records:
            logger.warning("No shelters fetched (error=%s); keeping current data", fetched.error)
            return ReinitializeResult.failure(fetched.error or "data source returned no shelters")

        saved = self.store.replace_all(fetched.records)
        logger.info("Swapped in %d shelters (complete=%s)", len(saved), fetched.complete)
        return ReinitializeResult.ok(len(saved), complete=fetched.complete)

    def find_nearest(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        *,
        radius_km: Optional[float] = None,
        prefilter: bool = True,
    ) -> List[ShelterMatch]:
        """Up to ``limit`` shelters ordered by distance.

        With ``prefilter`` only shelters inside the search radius box are
        ranked, so nothing beyond roughly ``radius_km`` is returned.
        """
        logger.info("Nearest shelters: lat=%s lng=%s limit=%s", latitude, longitude, limit)
        if limit <= 0:
            return []
        if prefilter:
            radius = self.nearest_radius_km if radius_km is None else radius_km
            bounds = search_bounds(latitude, longitude, radius).normalized()
            candidates = self.store.find_in_bounding_box(*bounds)
        else:
            candidates = self.store.find_all()
        return rank_by_distance(candidates, latitude, longitude)[:limit]

    def find_within_radius(self, latitude: float, longitude: float, radius_km: float) -> List[ShelterMatch]:
        logger.info("Shelters within %skm of lat=%s lng=%s", radius_km, latitude, longitude)
        if radius_km < 0:
            return []
        bounds = search_bounds(latitude, longitude, radius_km).normalized()
        candidates = self.store.find_in_bounding_box(*bounds)
        return [match for match in rank_by_distance(candidates, latitude, longitude) if match.distance_km <= radius_km]

    def search_by_field(self, kind: str, keyword: str) -> List[ShelterRecord]:
        logger.info("Shelter search: type=%s keyword=%s", kind, keyword)
        if kind == "address":
            return self.store.find_by_address_substring(keyword)
        if kind == "name":
            return self.store.find_by_name_substring(keyword)
        return []

    def find_all(self) -> List[ShelterRecord]:
        return self.store.find_all()

    def find_by_id(self, record_id: int) -> Optional[ShelterRecord]:
        return self.store.find_by_id(record_id)

    def count(self) -> int:
        return self.store.count()


def build_service(settings: Settings) -> ShelterService:
    return ShelterService(
        build_store(settings),
        ShelterIngestor.from_settings(settings),
        nearest_radius_km=settings.nearest_radius_km,
        staged=settings.staged_reinitialize,
    )
