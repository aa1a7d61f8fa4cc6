"""
SQLAlchemy ORM models for the persisted government dataset.

Models:
    base: Base declarative class and shared enums (SourceTier, DataType, RunStatus, ...)
    politician: Politician and PoliticianStatement
    legislation: Bill and VotingRecord
    committee: Committee
    election: Election

Every table carries a unique index on its natural key so the database
enforces what the upsert store relies on. Rows are only ever inserted or
updated by the pipeline, never deleted.

Usage:
    from models import Base, Politician, Bill
    from models.base import DataType, SourceTier
"""

from models.base import (
    Base,
    DataType,
    RunStatus,
    SourceOutcome,
    SourceTier,
    UpsertOutcome,
)
from models.politician import Politician, PoliticianStatement
from models.legislation import Bill, VotingRecord
from models.committee import Committee
from models.election import Election

__all__ = [
    "Base",
    "DataType",
    "RunStatus",
    "SourceOutcome",
    "SourceTier",
    "UpsertOutcome",
    "Politician",
    "PoliticianStatement",
    "Bill",
    "VotingRecord",
    "Committee",
    "Election",
]
