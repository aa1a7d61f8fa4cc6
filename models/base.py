from datetime import datetime, timezone
from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import JSONB
import enum

Base = declarative_base()

# BIGINT ids on PostgreSQL; SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============================================================================
# ENUMS
# ============================================================================

class SourceTier(str, enum.Enum):
    """Level of government a source belongs to"""
    FEDERAL = "federal"
    PROVINCIAL = "provincial"
    MUNICIPAL = "municipal"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class DataType(str, enum.Enum):
    """Data-type tags; each tag doubles as the entity kind it yields"""
    POLITICIANS = "politicians"
    BILLS = "bills"
    VOTES = "votes"
    COMMITTEES = "committees"
    ELECTIONS = "elections"
    STATEMENTS = "statements"


class RunStatus(str, enum.Enum):
    """Ingestion run lifecycle"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


class SourceOutcome(str, enum.Enum):
    """Per-source result inside a run"""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


class UpsertOutcome(str, enum.Enum):
    """What the upsert store did with one record"""
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
