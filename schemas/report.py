"""
RunReport: the observable outcome of one ingestion run.

Serialized as a single JSON log line and optionally written to a status
file; never persisted by the pipeline.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, computed_field

from models.base import RunStatus, SourceOutcome


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecordCounts(BaseModel):
    extracted: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    rejected: int = 0
    failed: int = 0

    def add(self, other: "RecordCounts") -> "RecordCounts":
        for name in type(self).model_fields:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        return self


class RunError(BaseModel):
    """One error entry, in the order it happened"""
    source_name: str
    data_type: Optional[str] = None
    error_kind: str
    message: str
    attempts: Optional[int] = None
    status_code: Optional[int] = None
    natural_key: Optional[Tuple[Any, ...]] = None


class SourceReport(BaseModel):
    source_name: str
    tier: str
    outcome: SourceOutcome = SourceOutcome.SUCCESS
    counts: Dict[str, RecordCounts] = Field(default_factory=dict)
    error_count: int = 0

    def counts_for(self, data_type: str) -> RecordCounts:
        return self.counts.setdefault(data_type, RecordCounts())

    @computed_field
    @property
    def totals(self) -> RecordCounts:
        total = RecordCounts()
        for counts in self.counts.values():
            total.add(counts)
        return total


class RunReport(BaseModel):
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    status: RunStatus = RunStatus.NOT_STARTED
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    cancelled: bool = False
    filter: Dict[str, Optional[str]] = Field(default_factory=dict)
    sources: List[SourceReport] = Field(default_factory=list)
    errors: List[RunError] = Field(default_factory=list)

    def start(self):
        self.status = RunStatus.RUNNING
        self.started_at = _now()

    def finish(self):
        """
        Close the run. A cancelled run is partial, so it finishes as
        completed_with_errors even when nothing failed; `cancelled` tells the
        two apart.
        """
        has_errors = self.cancelled or bool(self.errors) or any(
            s.outcome in (SourceOutcome.FAILED, SourceOutcome.PARTIAL) for s in self.sources
        )
        self.status = RunStatus.COMPLETED_WITH_ERRORS if has_errors else RunStatus.COMPLETED
        self.finished_at = _now()

    def source(self, name: str) -> Optional[SourceReport]:
        for report in self.sources:
            if report.source_name == name:
                return report
        return None

    @computed_field
    @property
    def totals_by_kind(self) -> Dict[str, RecordCounts]:
        totals: Dict[str, RecordCounts] = {}
        for report in self.sources:
            for data_type, counts in report.counts.items():
                totals.setdefault(data_type, RecordCounts()).add(counts)
        return totals

    @computed_field
    @property
    def totals(self) -> RecordCounts:
        total = RecordCounts()
        for counts in self.totals_by_kind.values():
            total.add(counts)
        return total

    @computed_field
    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_json(self) -> str:
        return self.model_dump_json()

    def write(self, path: Union[str, Path]) -> Path:
        """Write the report as a JSON status file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path
