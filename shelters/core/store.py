"""Storage gateway contract and the in-memory implementation."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Sequence

from shelters.core.config import Settings
from shelters.core.db import PostgresShelterStore
from shelters.core.models import ShelterRecord, assign_ids

logger = logging.getLogger(__name__)


class ShelterStore(Protocol):
    """Everything the query layer needs from persistence.

    Reads come back in storage order. Substring matches are case-sensitive.
    ``save_all`` appends without deduplication.
    """

    def delete_all(self) -> None: ...

    def save_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]: ...

    def replace_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]: ...

    def find_all(self) -> List[ShelterRecord]: ...

    def find_by_id(self, record_id: int) -> Optional[ShelterRecord]: ...

    def find_in_bounding_box(
        self, min_lat: float, max_lat: float, min_lng: float, max_lng: float
    ) -> List[ShelterRecord]: ...

    def find_by_address_substring(self, text: str) -> List[ShelterRecord]: ...

    def find_by_name_substring(self, text: str) -> List[ShelterRecord]: ...

    def count(self) -> int: ...


class InMemoryShelterStore:
    """Process-local store. Readers get a snapshot list, so writers never mutate what they iterate."""

    def __init__(self) -> None:
        self._records: List[ShelterRecord] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def delete_all(self) -> None:
        with self._lock:
            self._records = []

    def save_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]:
        with self._lock:
            saved = assign_ids(records, self._next_id)
            self._next_id += len(saved)
            self._records = self._records + saved
        logger.debug("Stored %d shelters in memory", len(saved))
        return saved

    def replace_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]:
        with self._lock:
            saved = assign_ids(records, self._next_id)
            self._next_id += len(saved)
            self._records = saved
        return saved

    def _snapshot(self) -> List[ShelterRecord]:
        with self._lock:
            return self._records

    def find_all(self) -> List[ShelterRecord]:
        return list(self._snapshot())

    def find_by_id(self, record_id: int) -> Optional[ShelterRecord]:
        for record in self._snapshot():
            if record.id == record_id:
                return record
        return None

    def find_in_bounding_box(
        self, min_lat: float, max_lat: float, min_lng: float, max_lng: float
    ) -> List[ShelterRecord]:
        return [
            record
            for record in self._snapshot()
            if record.latitude is not None
            and record.longitude is not None
            and min_lat <= record.latitude <= max_lat
            and min_lng <= record.longitude <= max_lng
        ]

    def find_by_address_substring(self, text: str) -> List[ShelterRecord]:
        return [record for record in self._snapshot() if text in (record.address or "")]

    def find_by_name_substring(self, text: str) -> List[ShelterRecord]:
        return [record for record in self._snapshot() if text in (record.name or "")]

    def count(self) -> int:
        return len(self._snapshot())


def build_store(settings: Settings) -> ShelterStore:
    if settings.database_url:
        store = PostgresShelterStore(settings.database_url)
        store.ensure_schema()
        return store
    logger.warning("DATABASE_URL is not set; using the in-memory shelter store.")
    return InMemoryShelterStore()
