"""
Core utilities and configuration for the civic ingestion pipeline.

Modules:
    config: Settings loaded from environment variables / .env
    database: Async engine and session factory
    exceptions: Structured exception hierarchy
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_factory
    from core.exceptions import ConfigurationError, FetchError
    from core.logging import setup_logging

Example:
    setup_logging()
    engine = create_engine()
    session_factory = create_session_factory(engine)
"""

__all__ = [
    "settings",
    "create_engine",
    "create_session_factory",
    "setup_logging",
    # Exceptions
    "IngestionError",
    "ConfigurationError",
    "FetchError",
    "FetchErrorKind",
    "ExtractionError",
    "PersistenceError",
    "UnresolvedSpeakerError",
]
