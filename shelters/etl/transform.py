"""Utilities for turning raw feed items into ShelterRecord objects."""

import logging
import math
from typing import Any, Callable, Dict, Optional

from shelters.core.models import ShelterRecord

logger = logging.getLogger(__name__)

PLACEHOLDER = "정보 없음"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_float(value: Any, field: str = "value") -> Optional[float]:
    """Blank input leaves the field unset; garbage also does, with a warning."""
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        logger.warning("Non-numeric %s %r; leaving it unset", field, value)
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric %s %r; leaving it unset", field, value)
        return None
    if not math.isfinite(parsed):
        logger.warning("Non-finite %s %r; leaving it unset", field, value)
        return None
    return parsed


def parse_capacity(value: Any, field: str = "capacity") -> Optional[int]:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        logger.warning("Non-numeric %s %r; leaving it unset", field, value)
        return None
    if isinstance(value, int):
        parsed: Any = value
    elif isinstance(value, float):
        parsed = int(value) if value.is_integer() else None
    else:
        cleaned = str(value).strip().replace(",", "")
        try:
            parsed = int(cleaned)
        except ValueError:
            try:
                as_float = float(cleaned)
            except ValueError:
                as_float = None
            parsed = int(as_float) if as_float is not None and as_float.is_integer() else None
    if parsed is None or parsed < 0:
        logger.warning("Invalid %s %r; leaving it unset", field, value)
        return None
    return parsed


def from_verbose_item(item: Dict[str, Any]) -> ShelterRecord:
    return ShelterRecord(
        name=_text(item.get("shnt_nm")),
        address=_text(item.get("dtl_adres")),
        latitude=parse_float(item.get("ydnts"), "latitude"),
        longitude=parse_float(item.get("xcnts"), "longitude"),
        accommodation_capacity=parse_capacity(item.get("vt_acmd_psbl_nmpr")),
        managing_agency=_text(item.get("mngnt_instt_nm")),
        contact_number=_text(item.get("cntct_no")),
        designation_date=_text(item.get("dsgntn_de")),
        facility_area=_text(item.get("fclty_ar")),
    )


def from_compact_item(item: Dict[str, Any]) -> ShelterRecord:
    # The compact feed has no agency, contact, area or designation columns.
    return ShelterRecord(
        name=_text(item.get("SHNT_PLACE_NM")),
        address=_text(item.get("SHNT_PLACE_DTL_POSITION")),
        latitude=parse_float(item.get("LA"), "latitude"),
        longitude=parse_float(item.get("LO"), "longitude"),
        accommodation_capacity=parse_capacity(item.get("PSBL_NMPR")),
        managing_agency=PLACEHOLDER,
        contact_number=PLACEHOLDER,
        designation_date=PLACEHOLDER,
        facility_area=PLACEHOLDER,
    )


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], ShelterRecord]] = {
    "verbose": from_verbose_item,
    "compact": from_compact_item,
}


def normalize_item(item: Dict[str, Any], schema: str = "verbose") -> Optional[ShelterRecord]:
    """Build a record, or return None when its coordinates are missing or zero."""
    try:
        builder = _BUILDERS[schema]
    except KeyError:
        raise ValueError(f"Unknown item schema: {schema}") from None

    record = builder(item)
    if not record.is_spatially_valid:
        logger.debug("Dropping shelter %r without usable coordinates", record.name)
        return None
    return record
