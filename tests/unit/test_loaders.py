"""
Unit tests for the upsert store (SQLite via aiosqlite)
"""

import pytest
from sqlalchemy import func, select

from core.exceptions import PersistenceError, UnresolvedSpeakerError
from ingestion.loaders.upsert_store import UpsertStore, content_hash
from models import Bill, Committee, Election, Politician, PoliticianStatement, VotingRecord
from models.base import UpsertOutcome
from schemas.records import (
    BillRecord,
    CommitteeRecord,
    ElectionRecord,
    PoliticianRecord,
    StatementRecord,
    VoteRecord,
)


async def count_rows(session_factory, model):
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def fetch_one(session_factory, model, **key):
    async with session_factory() as session:
        return (await session.execute(select(model).filter_by(**key))).scalar_one()


class TestPoliticianUpsert:
    """Natural-key dedup for politicians"""

    @pytest.mark.asyncio
    async def test_insert_then_unchanged(self, store, session_factory):
        record = PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Green")

        first = await store.upsert(record)
        second = await store.upsert(record)

        assert first.outcome == UpsertOutcome.INSERTED
        assert first.natural_key == ("Jane Doe", "Ontario")
        assert second.outcome == UpsertOutcome.UNCHANGED
        assert await count_rows(session_factory, Politician) == 1

    @pytest.mark.asyncio
    async def test_later_party_wins(self, store, session_factory):
        await store.upsert(PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Green"))
        result = await store.upsert(PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Liberal"))

        assert result.outcome == UpsertOutcome.UPDATED
        assert result.changed_fields == ("party",)
        assert await count_rows(session_factory, Politician) == 1

        row = await fetch_one(session_factory, Politician, name="Jane Doe", jurisdiction="Ontario")
        assert row.party == "Liberal"

    @pytest.mark.asyncio
    async def test_none_never_overwrites(self, store, session_factory):
        await store.upsert(PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Green"))
        result = await store.upsert(PoliticianRecord(name="Jane Doe", jurisdiction="Ontario"))

        assert result.outcome == UpsertOutcome.UNCHANGED
        row = await fetch_one(session_factory, Politician, name="Jane Doe", jurisdiction="Ontario")
        assert row.party == "Green"

    @pytest.mark.asyncio
    async def test_updated_at_only_moves_on_change(self, store, session_factory):
        record = PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Green")
        await store.upsert(record)
        before = await fetch_one(session_factory, Politician, name="Jane Doe")

        await store.upsert(record)
        after_same = await fetch_one(session_factory, Politician, name="Jane Doe")
        assert after_same.updated_at == before.updated_at

        await store.upsert(record.model_copy(update={"party": "NDP"}))
        after_change = await fetch_one(session_factory, Politician, name="Jane Doe")
        assert after_change.updated_at >= before.updated_at
        assert after_change.created_at == before.created_at

    @pytest.mark.asyncio
    async def test_same_name_other_jurisdiction_is_new_row(self, store, session_factory):
        await store.upsert(PoliticianRecord(name="Pat Lee", jurisdiction="Toronto"))
        await store.upsert(PoliticianRecord(name="Pat Lee", jurisdiction="Ottawa"))

        assert await count_rows(session_factory, Politician) == 2

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, store):
        with pytest.raises(PersistenceError):
            await store.upsert(PoliticianRecord(party="Green"))


class TestOtherKinds:
    """Bills, votes, committees and elections"""

    @pytest.mark.asyncio
    async def test_bill_title_is_part_of_identity(self, store, session_factory):
        await store.upsert(BillRecord(bill_number="C-21", title="An Act respecting firearms"))
        await store.upsert(BillRecord(bill_number="C-21", title="An Act respecting pensions"))
        await store.upsert(BillRecord(bill_number="C-21", title="An Act respecting firearms", status="Royal Assent"))

        assert await count_rows(session_factory, Bill) == 2
        row = await fetch_one(session_factory, Bill, bill_number="C-21", title="An Act respecting firearms")
        assert row.status == "Royal Assent"

    @pytest.mark.asyncio
    async def test_vote_key(self, store, session_factory):
        vote = VoteRecord(bill_number="C-21", date="2024-03-01", jurisdiction="Canada", yes_count=170)

        assert (await store.upsert(vote)).natural_key == ("C-21", "2024-03-01", "Canada")
        assert (await store.upsert(vote.model_copy(update={"yes_count": 171}))).outcome == UpsertOutcome.UPDATED
        assert await count_rows(session_factory, VotingRecord) == 1

    @pytest.mark.asyncio
    async def test_committee_members_json(self, store, session_factory):
        record = CommitteeRecord(
            name="Standing Committee on Finance", jurisdiction="Canada", members=["A. Smith", "B. Jones"]
        )
        await store.upsert(record)
        assert (await store.upsert(record)).outcome == UpsertOutcome.UNCHANGED

        row = await fetch_one(session_factory, Committee, name="Standing Committee on Finance")
        assert row.members == ["A. Smith", "B. Jones"]

    @pytest.mark.asyncio
    async def test_election(self, store, session_factory):
        result = await store.upsert(
            ElectionRecord(name="45th General Election", date="2025-04-28", jurisdiction="Canada")
        )

        assert result.outcome == UpsertOutcome.INSERTED
        assert await count_rows(session_factory, Election) == 1


class TestStatementUpsert:
    """Speaker resolution and statement keys"""

    @pytest.mark.asyncio
    async def test_statement_attached_to_speaker(self, store, session_factory):
        await store.upsert(PoliticianRecord(name="Jane Doe", jurisdiction="Canada"))
        statement = StatementRecord(
            speaker_name="Jane Doe", content="Mr. Speaker, I rise today.", date="2024-03-01",
            jurisdiction="Canada",
        )

        first = await store.upsert(statement)
        second = await store.upsert(statement)

        politician = await fetch_one(session_factory, Politician, name="Jane Doe")
        assert first.outcome == UpsertOutcome.INSERTED
        assert first.natural_key == (politician.id, "2024-03-01", content_hash("Mr. Speaker, I rise today."))
        assert second.outcome == UpsertOutcome.UNCHANGED
        assert await count_rows(session_factory, PoliticianStatement) == 1

    @pytest.mark.asyncio
    async def test_same_jurisdiction_preferred(self, store, session_factory):
        await store.upsert(PoliticianRecord(name="Pat Lee", jurisdiction="Toronto"))
        await store.upsert(PoliticianRecord(name="Pat Lee", jurisdiction="Ottawa"))

        result = await store.upsert(
            StatementRecord(speaker_name="Pat Lee", content="Motion carried.", jurisdiction="Ottawa")
        )

        ottawa = await fetch_one(session_factory, Politician, name="Pat Lee", jurisdiction="Ottawa")
        assert result.natural_key[0] == ottawa.id

    @pytest.mark.asyncio
    async def test_unresolved_speaker(self, store, session_factory):
        with pytest.raises(UnresolvedSpeakerError):
            await store.upsert(StatementRecord(speaker_name="Nobody Known", content="Hello"))

        assert await count_rows(session_factory, PoliticianStatement) == 0


class TestErrorIsolation:
    """A failing record does not affect the next one"""

    @pytest.mark.asyncio
    async def test_database_error_wrapped_and_isolated(self, store, session_factory):
        record = PoliticianRecord(name="Jane Doe", jurisdiction="Ontario", party="Green")
        broken = UpsertStore(session_factory)

        async def failing_write(*args, **kwargs):
            from sqlalchemy.exc import OperationalError
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        broken._write = failing_write

        with pytest.raises(PersistenceError) as exc_info:
            await broken.upsert(record)
        assert exc_info.value.natural_key == ("Jane Doe", "Ontario")

        assert (await store.upsert(record)).outcome == UpsertOutcome.INSERTED
