"""Core data models shared by the ingestion pipeline and the query layer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True, slots=True)
class ShelterRecord:
    """Normalized emergency shelter. ``id`` is assigned by the store on first write."""

    name: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accommodation_capacity: Optional[int] = None
    managing_agency: str = ""
    contact_number: str = ""
    designation_date: str = ""
    facility_area: str = ""
    id: Optional[int] = None

    @property
    def is_spatially_valid(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and self.latitude != 0.0
            and self.longitude != 0.0
        )

    def with_id(self, record_id: int) -> "ShelterRecord":
        return replace(self, id=record_id)

    def to_json(self) -> Dict[str, Any]:
        """Serialize with the keys the map client reads."""
        return {
            "id": self.id,
            "shelterName": self.name,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "facilityArea": self.facility_area,
            "accommodationCapacity": self.accommodation_capacity,
            "managementAgency": self.managing_agency,
            "contactNumber": self.contact_number,
            "designationDate": self.designation_date,
        }


@dataclass(frozen=True, slots=True)
class ShelterMatch:
    """A stored shelter annotated with its distance from one query point."""

    record: ShelterRecord
    distance_km: float

    def to_json(self) -> Dict[str, Any]:
        payload = self.record.to_json()
        payload["distanceFromUser"] = self.distance_km
        return payload


@dataclass(slots=True)
class ExternalPage:
    page_number: int
    page_size_requested: int
    total_count_reported: Optional[int]
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class FetchResult:
    """Outcome of one ingestion walk; ``complete`` is False when a page failed."""

    records: List[ShelterRecord]
    complete: bool
    total_count: Optional[int] = None
    pages_fetched: int = 0
    items_seen: int = 0
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ReinitializeResult:
    success: bool
    count: int = 0
    reason: Optional[str] = None
    complete: bool = True

    @classmethod
    def ok(cls, count: int, complete: bool = True) -> "ReinitializeResult":
        return cls(success=True, count=count, complete=complete)

    @classmethod
    def failure(cls, reason: str) -> "ReinitializeResult":
        return cls(success=False, reason=reason, complete=False)


def assign_ids(records: Sequence[ShelterRecord], start: int) -> List[ShelterRecord]:
    return [record.with_id(start + offset) for offset, record in enumerate(records)]
