"""
Normalize extracted records before they are persisted.

- Free-text fields go through clean_text
- Contact values, URLs, dates and statement bodies only get whitespace cleanup
- Missing jurisdictions are inferred from the source host
- Bills get a category, politicians a tier and (if empty) a default role title
"""

from typing import Any, Dict

from ingestion.registry import SourceDescriptor
from ingestion.transformers.classifiers import (
    DEFAULT_ROLE_BY_TIER,
    infer_category,
    infer_jurisdiction,
    infer_tier,
)
from ingestion.transformers.text import clean_contact, clean_text
from schemas.records import (
    BillRecord,
    CommitteeRecord,
    ElectionRecord,
    PoliticianRecord,
    RecordBase,
    StatementRecord,
    VoteRecord,
)
import logging

logger = logging.getLogger(__name__)


class Normalizer:
    """
    Normalize records coming from one source.

    Pure: returns a new record and never mutates its input.
    """

    def __init__(self, source: SourceDescriptor):
        self.source = source
        self.jurisdiction = infer_jurisdiction(source.host)

    def normalize(self, record: RecordBase) -> RecordBase:
        if isinstance(record, PoliticianRecord):
            update = self._politician(record)
        elif isinstance(record, BillRecord):
            update = self._bill(record)
        elif isinstance(record, VoteRecord):
            update = self._vote(record)
        elif isinstance(record, CommitteeRecord):
            update = self._committee(record)
        elif isinstance(record, ElectionRecord):
            update = self._election(record)
        elif isinstance(record, StatementRecord):
            update = self._statement(record)
        else:
            logger.warning(f"No normalization rules for {type(record).__name__}")
            update = {}

        update["source_name"] = clean_contact(record.source_name) or self.source.name
        update["source_url"] = clean_contact(record.source_url)
        return record.model_copy(update=update)

    def _jurisdiction(self, value) -> str:
        return clean_text(value) or self.jurisdiction

    def _politician(self, record: PoliticianRecord) -> Dict[str, Any]:
        role = clean_text(record.role)
        tier = infer_tier(role, self.source.tier)
        return {
            "name": clean_text(record.name),
            "role": role or DEFAULT_ROLE_BY_TIER[self.source.tier],
            "party": clean_text(record.party),
            "constituency": clean_text(record.constituency),
            "jurisdiction": self._jurisdiction(record.jurisdiction),
            "contact": record.contact.model_copy(update={
                "phone": clean_contact(record.contact.phone),
                "email": clean_contact(record.contact.email),
                "website": clean_contact(record.contact.website),
            }),
            "image_url": clean_contact(record.image_url),
            "source_id": clean_contact(record.source_id),
            "tier": tier.label,
        }

    def _bill(self, record: BillRecord) -> Dict[str, Any]:
        title = clean_text(record.title)
        return {
            "bill_number": clean_text(record.bill_number),
            "title": title,
            "status": clean_text(record.status),
            "sponsor": clean_text(record.sponsor),
            "summary": clean_text(record.summary),
            "category": clean_text(record.category) or infer_category(title),
            "jurisdiction": self._jurisdiction(record.jurisdiction),
            "source_id": clean_contact(record.source_id),
        }

    def _vote(self, record: VoteRecord) -> Dict[str, Any]:
        return {
            "bill_number": clean_text(record.bill_number),
            "date": clean_contact(record.date),
            "result": clean_text(record.result),
            "jurisdiction": self._jurisdiction(record.jurisdiction),
        }

    def _committee(self, record: CommitteeRecord) -> Dict[str, Any]:
        members = [clean_text(m) for m in record.members]
        return {
            "name": clean_text(record.name),
            "committee_type": clean_text(record.committee_type),
            "chair": clean_text(record.chair),
            "members": [m for m in members if m],
            "jurisdiction": self._jurisdiction(record.jurisdiction),
        }

    def _election(self, record: ElectionRecord) -> Dict[str, Any]:
        return {
            "name": clean_text(record.name),
            "date": clean_contact(record.date),
            "election_type": clean_text(record.election_type),
            "status": clean_text(record.status),
            "jurisdiction": self._jurisdiction(record.jurisdiction),
            "results_url": clean_contact(record.results_url),
        }

    def _statement(self, record: StatementRecord) -> Dict[str, Any]:
        return {
            "speaker_name": clean_text(record.speaker_name),
            "content": clean_contact(record.content),
            "date": clean_contact(record.date),
            "context": clean_text(record.context),
            "jurisdiction": self._jurisdiction(record.jurisdiction),
        }
