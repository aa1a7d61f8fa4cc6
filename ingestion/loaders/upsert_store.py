"""
Persist normalized records with natural-key upserts (idempotency).

Each record is written in its own session and transaction, so one bad
record never rolls back its neighbours. Existing rows only take new values
that are present and different; a repeated run over unchanged input reports
every record as unchanged and leaves updated_at alone.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Type

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import PersistenceError, UnresolvedSpeakerError
from models import (
    Base,
    Bill,
    Committee,
    Election,
    Politician,
    PoliticianStatement,
    VotingRecord,
)
from models.base import UpsertOutcome, utcnow
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


@dataclass(frozen=True)
class UpsertResult:
    outcome: UpsertOutcome
    natural_key: Tuple[Any, ...]
    changed_fields: Tuple[str, ...] = field(default_factory=tuple)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class UpsertStore:
    """
    Keyed upsert target for every entity kind.

    Usage:
        store = UpsertStore(create_session_factory(engine))
        result = await store.upsert(record)
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def upsert(self, record: RecordBase) -> UpsertResult:
        """
        Insert or update the row identified by the record's natural key.

        Raises:
            UnresolvedSpeakerError: Statement whose speaker matches no politician
            PersistenceError: Any other failure writing this record
        """
        if not record.has_natural_key():
            raise PersistenceError(
                f"{type(record).__name__} is missing {', '.join(record.missing_key_fields())}",
                natural_key=record.natural_key(),
                context={"entity_kind": record.kind.value}
            )

        natural_key = record.natural_key()
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    model, key, values = await self._row(session, record)
                    natural_key = tuple(key.values())
                    return await self._write(session, model, key, values)

        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to upsert {record.kind.value} record",
                natural_key=natural_key,
                context={"entity_kind": record.kind.value, "source_name": record.source_name},
                original_exception=e
            )

    async def _write(
        self,
        session: AsyncSession,
        model: Type[Base],
        key: Dict[str, Any],
        values: Dict[str, Any]
    ) -> UpsertResult:
        natural_key = tuple(key.values())
        existing = (
            await session.execute(select(model).filter_by(**key))
        ).scalar_one_or_none()

        if existing is None:
            present = {k: v for k, v in values.items() if v is not None}
            session.add(model(**key, **present))
            logger.debug(f"Inserted {model.__tablename__} {natural_key}")
            return UpsertResult(UpsertOutcome.INSERTED, natural_key, tuple(present))

        changed = tuple(
            name for name, value in values.items()
            if value is not None and getattr(existing, name) != value
        )
        if not changed:
            return UpsertResult(UpsertOutcome.UNCHANGED, natural_key)

        for name in changed:
            setattr(existing, name, values[name])
        existing.updated_at = utcnow()
        logger.debug(f"Updated {model.__tablename__} {natural_key}: {', '.join(changed)}")
        return UpsertResult(UpsertOutcome.UPDATED, natural_key, changed)

    async def _row(self, session: AsyncSession, record: RecordBase):
        """(model, natural key columns, mutable columns) for one record"""
        lineage = {"source_name": record.source_name, "source_url": record.source_url}

        if isinstance(record, PoliticianRecord):
            return Politician, {
                "name": record.name,
                "jurisdiction": record.jurisdiction or "",
            }, {
                "role": record.role,
                "tier": record.tier,
                "party": record.party,
                "constituency": record.constituency,
                "phone": record.contact.phone,
                "email": record.contact.email,
                "website": record.contact.website,
                "image_url": record.image_url,
                "source_id": record.source_id,
                **lineage,
            }

        if isinstance(record, BillRecord):
            return Bill, {
                "bill_number": record.bill_number,
                "title": record.title,
            }, {
                "status": record.status,
                "sponsor": record.sponsor,
                "summary": record.summary,
                "category": record.category,
                "jurisdiction": record.jurisdiction,
                "source_id": record.source_id,
                **lineage,
            }

        if isinstance(record, VoteRecord):
            return VotingRecord, {
                "bill_number": record.bill_number,
                "vote_date": record.date or "",
                "jurisdiction": record.jurisdiction or "",
            }, {
                "result": record.result,
                "yes_count": record.yes_count,
                "no_count": record.no_count,
                "abstain_count": record.abstain_count,
                **lineage,
            }

        if isinstance(record, CommitteeRecord):
            return Committee, {
                "name": record.name,
                "jurisdiction": record.jurisdiction or "",
            }, {
                "committee_type": record.committee_type,
                "chair": record.chair,
                "members": record.members or None,
                **lineage,
            }

        if isinstance(record, ElectionRecord):
            return Election, {
                "name": record.name,
                "election_date": record.date or "",
                "jurisdiction": record.jurisdiction or "",
            }, {
                "election_type": record.election_type,
                "status": record.status,
                "results_url": record.results_url,
                **lineage,
            }

        if isinstance(record, StatementRecord):
            politician_id = await self._resolve_speaker(session, record)
            return PoliticianStatement, {
                "politician_id": politician_id,
                "statement_date": record.date or "",
                "content_hash": content_hash(record.content),
            }, {
                "content": record.content,
                "context": record.context,
                "jurisdiction": record.jurisdiction,
                **lineage,
            }

        raise PersistenceError(
            f"No table for {type(record).__name__}",
            natural_key=record.natural_key()
        )

    async def _resolve_speaker(self, session: AsyncSession, record: StatementRecord) -> int:
        """Politician id for the speaker, preferring one from the same jurisdiction"""
        candidates = (
            await session.execute(
                select(Politician.id, Politician.jurisdiction)
                .where(Politician.name == record.speaker_name)
                .order_by(Politician.id)
            )
        ).all()

        if not candidates:
            raise UnresolvedSpeakerError(
                f"No politician named {record.speaker_name!r}",
                natural_key=record.natural_key(),
                context={"entity_kind": record.kind.value, "source_name": record.source_name}
            )

        for politician_id, jurisdiction in candidates:
            if jurisdiction == record.jurisdiction:
                return politician_id
        return candidates[0][0]
