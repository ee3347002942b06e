"""CLI job that reloads the shelter store from the configured data source."""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from shelters.core.config import SOURCES, ConfigError, get_settings
from shelters.core.models import ReinitializeResult
from shelters.core.service import build_service

logger = logging.getLogger(__name__)


def run_reinitialize_job(
    *,
    source: Optional[str] = None,
    page_size: Optional[int] = None,
    max_pages: Optional[int] = None,
    staged: Optional[bool] = None,
) -> ReinitializeResult:
    settings = get_settings()
    changes = {
        "source": source,
        "page_size": page_size,
        "max_pages": max_pages,
        "staged_reinitialize": staged,
    }
    settings = dataclasses.replace(settings, **{k: v for k, v in changes.items() if v is not None})
    if settings.page_size <= 0:
        raise ConfigError("page size must be positive")

    logger.info(
        "Reinitializing shelters from source=%s page_size=%d max_pages=%d staged=%s",
        settings.source,
        settings.page_size,
        settings.max_pages,
        settings.staged_reinitialize,
    )
    service = build_service(settings)
    result = service.reinitialize()
    if result.success:
        logger.info("Completed run: stored=%d complete=%s", result.count, result.complete)
    else:
        logger.error("Reinitialization failed: %s", result.reason)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reload emergency shelters from the public data feed")
    parser.add_argument("--source", choices=sorted(SOURCES), help="Data source to ingest from")
    parser.add_argument("--page-size", dest="page_size", type=int, help="Rows requested per page")
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=int,
        default=get_settings().max_pages,
        help="Maximum number of pages to request",
    )
    parser.add_argument(
        "--staged",
        action="store_true",
        default=None,
        help="Fetch first and swap the store only when new data arrived",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    try:
        args = build_parser().parse_args(argv)
        result = run_reinitialize_job(
            source=args.source,
            page_size=args.page_size,
            max_pages=args.max_pages,
            staged=args.staged,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
