"""Client for the disaster-safety portal feed (compact keys, numeric coordinates)."""

import logging
from typing import Any, Dict, List

import requests

from shelters.core.models import ExternalPage
from shelters.vendors.base import DataSourceError, ShelterDataSource, check_header, parse_count

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class DsspDataSource(ShelterDataSource):
    schema = "compact"

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
        logger.info("Requesting DSSP page %d (numOfRows=%d)", page_no, num_of_rows)
        response = _SESSION.get(self.url, params=params, timeout=self.timeout)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataSourceError(f"DSSP page {page_no} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise DataSourceError(f"DSSP page {page_no} is not a JSON object")

        check_header(payload.get("header"), "DSSP")
        body = payload.get("body") or []
        if not isinstance(body, list):
            raise DataSourceError(f"DSSP page {page_no} body is not a list: {str(body)[:100]!r}")
        items: List[Dict[str, Any]] = [item for item in body if isinstance(item, dict)]
        return ExternalPage(
            page_number=page_no,
            page_size_requested=num_of_rows,
            total_count_reported=parse_count(payload.get("totalCount")),
            items=items,
        )
