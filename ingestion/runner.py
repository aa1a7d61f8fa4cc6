# ============================================================================
# File: ingestion/runner.py
# Description: Ingestion orchestrator with per-item error isolation
# ============================================================================
"""
Ingestion Runner - Orchestrates Fetch, Extract, Normalize, Upsert.

This module provides best-effort orchestration over a source registry:
- Sources are processed sequentially in registry order
- A failed fetch aborts only that (source, data type)
- A failed record write is recorded with its natural key and skipped
- Politeness delay between sources, whatever the previous outcome
- Cooperative cancellation between sources
- Every error ends up in the RunReport; only ConfigurationError propagates
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Union

from core.exceptions import (
    ExtractionError,
    FetchError,
    IngestionError,
    PersistenceError,
    UnresolvedSpeakerError,
)
from ingestion.extractors.document_extractor import DocumentExtractor
from ingestion.fetcher import Fetcher
from ingestion.loaders.upsert_store import UpsertStore
from ingestion.registry import SourceDescriptor, SourceRegistry, parse_filter_value
from ingestion.transformers.normalizer import Normalizer
from models.base import DataType, SourceOutcome, SourceTier
from schemas.report import RecordCounts, RunError, RunReport, SourceReport
import logging

logger = logging.getLogger(__name__)


class IngestionRunner:
    """
    Ingestion Orchestrator

    Responsibilities:
    - Walk the registry: fetch -> extract -> normalize -> upsert
    - Isolate failures per source, per data type and per record
    - Honour politeness intervals and cancellation
    - Produce an accurate RunReport
    """

    def __init__(
        self,
        registry: SourceRegistry,
        fetcher: Fetcher,
        store: UpsertStore,
        extractor: Optional[DocumentExtractor] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.registry = registry
        self.fetcher = fetcher
        self.store = store
        self.extractor = extractor or DocumentExtractor()
        self._sleep = sleep

    async def run_ingestion(
        self,
        tier: Union[SourceTier, str, None] = None,
        data_type: Union[DataType, str, None] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> RunReport:
        """
        Run one ingestion pass over the matching sources.

        Args:
            tier: Only sources of this tier
            data_type: Only sources declaring this data type, and only that data type
            cancel_event: Checked between sources; when set, the rest are skipped

        Returns:
            RunReport with per-source outcomes, totals and errors

        Raises:
            ConfigurationError: Unknown tier or data type (before any network activity)
        """
        tier = parse_filter_value(SourceTier, tier, "tier")
        data_type = parse_filter_value(DataType, data_type, "data_type")
        sources = self.registry.list_sources(tier=tier, data_type=data_type)

        report = RunReport(filter={
            "tier": tier.value if tier else None,
            "data_type": data_type.value if data_type else None,
        })
        report.start()
        logger.info(
            f"Starting ingestion run {report.run_id}: {len(sources)} sources "
            f"(tier={report.filter['tier']}, data_type={report.filter['data_type']})"
        )

        for index, source in enumerate(sources):
            if cancel_event is not None and cancel_event.is_set():
                self._skip_remaining(report, sources[index:])
                break

            source_report = await self._run_source(source, data_type, report)
            report.sources.append(source_report)

            is_last = index == len(sources) - 1
            cancelled = cancel_event is not None and cancel_event.is_set()
            if not is_last and not cancelled and source.politeness_interval_ms > 0:
                await self._sleep(source.politeness_interval_ms / 1000)

        report.finish()

        totals = report.totals
        logger.info(
            f"Ingestion run {report.run_id} {report.status.value}: "
            f"extracted={totals.extracted}, inserted={totals.inserted}, "
            f"updated={totals.updated}, unchanged={totals.unchanged}, "
            f"rejected={totals.rejected}, failed={totals.failed}, "
            f"errors={len(report.errors)}"
            + (" (cancelled)" if report.cancelled else "")
        )
        return report

    def _skip_remaining(self, report: RunReport, remaining: List[SourceDescriptor]):
        logger.warning(f"Run cancelled; skipping {len(remaining)} remaining sources")
        report.cancelled = True
        for source in remaining:
            report.sources.append(SourceReport(
                source_name=source.name,
                tier=source.tier.value,
                outcome=SourceOutcome.SKIPPED,
            ))

    async def _run_source(
        self,
        source: SourceDescriptor,
        data_type: Optional[DataType],
        report: RunReport
    ) -> SourceReport:
        source_report = SourceReport(source_name=source.name, tier=source.tier.value)
        normalizer = Normalizer(source)

        data_types = [
            dt for dt in source.declared_data_types
            if data_type is None or dt == data_type
        ]
        fetch_failures = 0
        other_failures = 0

        logger.info(f"Processing {source.name} ({', '.join(dt.value for dt in data_types)})")

        for dt in data_types:
            counts = source_report.counts_for(dt.value)

            # --------------------------------------------------
            # FETCH
            # --------------------------------------------------
            try:
                document = await self.fetcher.fetch(source, dt)
            except FetchError as e:
                fetch_failures += 1
                self._record_error(report, source_report, source, dt, e)
                logger.error(f"Fetch failed for {source.name}/{dt.value}: {e.message}")
                continue
            except Exception as e:
                fetch_failures += 1
                error = IngestionError(
                    f"Unexpected error fetching {source.name}/{dt.value}",
                    context={"source_name": source.name, "data_type": dt.value},
                    original_exception=e
                )
                self._record_error(report, source_report, source, dt, error)
                logger.exception(f"Unexpected fetch failure for {source.name}/{dt.value}")
                continue

            # --------------------------------------------------
            # EXTRACT + NORMALIZE
            # --------------------------------------------------
            try:
                result = await asyncio.to_thread(self.extractor.extract, document, dt)
                normalized = [normalizer.normalize(record) for record in result]
            except Exception as e:
                other_failures += 1
                error = ExtractionError(
                    f"Extraction failed for {document.url}",
                    context={"source_name": source.name, "data_type": dt.value},
                    original_exception=e
                )
                self._record_error(report, source_report, source, dt, error)
                logger.exception(f"Extraction failed for {source.name}/{dt.value}")
                continue

            records = [record for record in normalized if record.has_natural_key()]
            counts.extracted += len(records)
            counts.rejected += result.rejected + (len(normalized) - len(records))

            # --------------------------------------------------
            # UPSERT
            # --------------------------------------------------
            other_failures += await self._store_records(report, source_report, source, dt, records, counts)

        if data_types and fetch_failures == len(data_types):
            source_report.outcome = SourceOutcome.FAILED
        elif fetch_failures or other_failures:
            source_report.outcome = SourceOutcome.PARTIAL
        else:
            source_report.outcome = SourceOutcome.SUCCESS

        totals = source_report.totals
        logger.info(
            f"{source.name}: {source_report.outcome.value} "
            f"(extracted={totals.extracted}, inserted={totals.inserted}, "
            f"updated={totals.updated}, unchanged={totals.unchanged}, "
            f"rejected={totals.rejected}, failed={totals.failed})"
        )
        return source_report

    async def _store_records(
        self,
        report: RunReport,
        source_report: SourceReport,
        source: SourceDescriptor,
        data_type: DataType,
        records: list,
        counts: RecordCounts
    ) -> int:
        """Upsert records in extraction order; returns the number that failed"""
        failures = 0
        for record in records:
            try:
                result = await self.store.upsert(record)
            except UnresolvedSpeakerError as e:
                # Moves from extracted to rejected
                counts.extracted -= 1
                counts.rejected += 1
                logger.warning(f"{source.name}: {e.message}; statement dropped")
                continue
            except PersistenceError as e:
                failures += 1
                counts.failed += 1
                self._record_error(report, source_report, source, data_type, e)
                logger.error(f"Persist failed for {source.name} {e.natural_key}: {e.message}")
                continue
            except Exception as e:
                failures += 1
                counts.failed += 1
                error = PersistenceError(
                    "Unexpected error while persisting record",
                    natural_key=record.natural_key(),
                    context={"source_name": source.name, "data_type": data_type.value},
                    original_exception=e
                )
                self._record_error(report, source_report, source, data_type, error)
                logger.exception(f"Unexpected persist failure for {source.name}")
                continue

            outcome = result.outcome.value
            setattr(counts, outcome, getattr(counts, outcome) + 1)
        return failures

    @staticmethod
    def _record_error(
        report: RunReport,
        source_report: SourceReport,
        source: SourceDescriptor,
        data_type: DataType,
        error: IngestionError
    ):
        source_report.error_count += 1
        report.errors.append(RunError(
            source_name=source.name,
            data_type=data_type.value,
            error_kind=error.error_kind,
            message=error.message,
            attempts=getattr(error, "attempts", None),
            status_code=getattr(error, "status_code", None),
            natural_key=getattr(error, "natural_key", None) or None,
        ))
