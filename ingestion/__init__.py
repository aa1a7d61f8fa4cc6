"""
Ingestion pipeline for Canadian government data.

Modules:
    registry: SourceDescriptor and the immutable SourceRegistry
    sources: Built-in catalog of federal, provincial and municipal sources
    fetcher: HTTP retrieval with retry, backoff and politeness headers
    runner: Orchestrator producing a RunReport

Subpackages:
    extractors: Selector fallback chains, HTML and feed extraction
    transformers: Text cleanup, classification and normalization
    loaders: Natural-key upsert store

Architecture:
    Per source, per declared data type:

    1. Fetch - GET the endpoint, retrying with exponential backoff
    2. Extract - Pick a container strategy, evaluate field chains per node
    3. Normalize - Clean text, infer jurisdiction, category and tier
    4. Upsert - Insert, update or leave unchanged by natural key

    Failures are isolated per source, per data type and per record.

Usage:
    from ingestion.registry import SourceRegistry
    from ingestion.fetcher import Fetcher
    from ingestion.loaders.upsert_store import UpsertStore
    from ingestion.runner import IngestionRunner

Example:
    async with Fetcher() as fetcher:
        runner = IngestionRunner(SourceRegistry.default(), fetcher, UpsertStore(session_factory))
        report = await runner.run_ingestion(tier="provincial")

    print(report.totals.inserted)
"""

__all__ = [
    "SourceDescriptor",
    "SourceRegistry",
    "Fetcher",
    "RawDocument",
    "DocumentExtractor",
    "Normalizer",
    "UpsertStore",
    "IngestionRunner",
]
