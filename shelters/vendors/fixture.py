"""Local JSON fixture served page by page, for development without an API key."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from shelters.core.models import ExternalPage
from shelters.vendors.base import DataSourceError, ShelterDataSource, parse_count

logger = logging.getLogger(__name__)


class FixtureDataSource(ShelterDataSource):
    """Serves ``{"totalCount": n, "items": [...]}`` from disk using verbose item keys."""

    schema = "verbose"

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._items: Optional[List[Dict[str, Any]]] = None
        self._total: Optional[int] = None

    def _load(self) -> List[Dict[str, Any]]:
        if self._items is None:
            try:
                with self.path.open("r", encoding="utf-8") as fh:
                    document = json.load(fh)
            except (OSError, ValueError) as exc:
                raise DataSourceError(f"cannot read fixture {self.path}: {exc}") from exc
            raw_items = document.get("items") if isinstance(document, dict) else document
            if raw_items is not None and not isinstance(raw_items, list):
                raise DataSourceError(f"fixture {self.path} items must be a list")
            self._items = [item for item in raw_items or [] if isinstance(item, dict)]
            reported = parse_count(document.get("totalCount")) if isinstance(document, dict) else None
            self._total = reported if reported is not None else len(self._items)
            logger.info("Loaded %d fixture shelters from %s", len(self._items), self.path)
        return self._items

    def fetch_page(self, page_no: int, num_of_rows: int) -> ExternalPage:
        items = self._load()
        start = (page_no - 1) * num_of_rows
        return ExternalPage(
            page_number=page_no,
            page_size_requested=num_of_rows,
            total_count_reported=self._total,
            items=items[start:start + num_of_rows],
        )
