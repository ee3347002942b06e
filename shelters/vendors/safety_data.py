"""Client for the public-data tsunami shelter list (verbose, string-typed schema)."""

import logging
from typing import Any, Dict, List

import requests

from shelters.core.models import ExternalPage
from shelters.vendors.base import DataSourceError, ShelterDataSource, check_header, parse_count

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


def _extract_items(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """``items`` can be a dict holding ``item``, a bare list, or empty on the last page."""
    items = body.get("items")
    if isinstance(items, list):
        return [item for item in items if isinstance(item, dict)]
    if not isinstance(items, dict):
        return []
    item = items.get("item")
    if isinstance(item, dict):
        return [item]
    if isinstance(item, list):
        return [entry for entry in item if isinstance(entry, dict)]
    return []


class SafetyDataSource(ShelterDataSource):
    schema = "verbose"

    def __init__(self, url: str, service_key: str, timeout: float = 10.0):
        self.url = url
        self.service_key = service_key
        self.timeout = timeout

    def fetch_page(self, page_no: int, num_of_rows: int) -> ExternalPage:
        params = {
            "serviceKey": self.service_key,
            "pageNo": page_no,
            "numOfRows": num_of_rows,
            "type": "json",
        }
        logger.info("Requesting shelter page %d (numOfRows=%d) from %s", page_no, num_of_rows, self.url)
        response = _SESSION.get(self.url, params=params, timeout=self.timeout)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataSourceError(f"page {page_no} is not valid JSON") from exc

        envelope = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(envelope, dict):
            raise DataSourceError(f"page {page_no} has no response envelope")

        check_header(envelope.get("header"), "shelter API")
        body = envelope.get("body") or {}
        if not isinstance(body, dict):
            raise DataSourceError(f"page {page_no} body is not an object: {str(body)[:100]!r}")
        return ExternalPage(
            page_number=page_no,
            page_size_requested=num_of_rows,
            total_count_reported=parse_count(body.get("totalCount")),
            items=_extract_items(body),
        )
