"""
Run one ingestion pass over the configured government sources.

Examples:
  python scripts/run_ingestion.py
  python scripts/run_ingestion.py --tier provincial
  python scripts/run_ingestion.py --data-type bills --report-file status/last_run.json
  python scripts/run_ingestion.py --sources-file sources.yaml

Exit codes: 0 when the run completed (even with per-source errors),
2 on configuration errors, 1 on anything unexpected.
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine, create_session_factory
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.fetcher import Fetcher
from ingestion.loaders.upsert_store import UpsertStore
from ingestion.registry import SourceRegistry
from ingestion.runner import IngestionRunner
from models.base import DataType, SourceTier
from schemas.report import RunReport
import logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch, extract, normalize and upsert Canadian government data",
        epilog=__doc__.split("Examples:")[1],
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--tier",
        choices=[t.value for t in SourceTier],
        help="Only process sources of this level of government",
    )
    parser.add_argument(
        "--data-type",
        dest="data_type",
        choices=[d.value for d in DataType],
        help="Only process this data type",
    )
    parser.add_argument(
        "--sources-file",
        dest="sources_file",
        default=settings.SOURCES_FILE,
        help="YAML source catalog (default: built-in catalog)",
    )
    parser.add_argument(
        "--report-file",
        dest="report_file",
        default=settings.RUN_REPORT_PATH,
        help="Write the run report as JSON to this path",
    )
    parser.add_argument(
        "--database-url",
        dest="database_url",
        default=None,
        help="Override DATABASE_URL",
    )
    return parser


def load_registry(sources_file: Optional[str]) -> SourceRegistry:
    if sources_file:
        return SourceRegistry.from_yaml(sources_file)
    return SourceRegistry.default()


async def run(args: argparse.Namespace) -> RunReport:
    registry = load_registry(args.sources_file)

    engine = create_engine(args.database_url)
    try:
        async with Fetcher() as fetcher:
            runner = IngestionRunner(
                registry=registry,
                fetcher=fetcher,
                store=UpsertStore(create_session_factory(engine)),
            )
            return await runner.run_ingestion(tier=args.tier, data_type=args.data_type)
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        report = asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_CONFIGURATION
    except Exception:
        logger.exception("Ingestion run aborted")
        return EXIT_UNEXPECTED

    logger.info(report.to_json())
    if args.report_file:
        path = report.write(args.report_file)
        logger.info(f"Run report written to {path}")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
