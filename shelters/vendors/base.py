"""Data source interface shared by every shelter feed."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from shelters.core.models import ExternalPage

logger = logging.getLogger(__name__)

SUCCESS_CODES = {"00", "0"}


class DataSourceError(RuntimeError):
    """Raised when a page cannot be fetched or decoded."""


class ShelterDataSource(ABC):
    """One paginated feed. ``schema`` names the item layout the normalizer must expect."""

    schema: str = "verbose"

    @abstractmethod
    def fetch_page(self, page_no: int, num_of_rows: int) -> ExternalPage:
        ...


def check_header(header: Any, source: str) -> None:
    if not header:
        return
    if not isinstance(header, dict):
        raise DataSourceError(f"{source} header is not an object: {header!r}")
    code = str(header.get("resultCode", "")).strip()
    if code and code not in SUCCESS_CODES:
        message = header.get("resultMsg") or header.get("errorMsg") or code
        logger.error("%s returned resultCode=%s resultMsg=%s", source, code, message)
        raise DataSourceError(f"{source} error {code}: {message}")


def parse_count(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric totalCount %r", value)
        return None
