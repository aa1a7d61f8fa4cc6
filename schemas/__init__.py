"""
Pydantic schemas for extracted records and run reporting.

Schemas:
    records: Transient records produced by extraction (PoliticianRecord, BillRecord, ...)
    report: RunReport, SourceReport, RecordCounts, RunError

Usage:
    from schemas.records import PoliticianRecord, RECORD_TYPES
    from schemas.report import RunReport

Example:
    record = PoliticianRecord(name="Jane Doe", party="  ")
    assert record.party is None  # blank strings become None
    assert record.natural_key() == ("Jane Doe", "")
"""

__all__ = [
    "RecordBase",
    "PoliticianRecord",
    "BillRecord",
    "VoteRecord",
    "CommitteeRecord",
    "ElectionRecord",
    "StatementRecord",
    "RECORD_TYPES",
    "RunReport",
    "SourceReport",
    "RecordCounts",
    "RunError",
]
