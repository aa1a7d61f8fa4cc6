"""
Integration tests for the complete ingestion pipeline:
Fetch (MockTransport) -> Extract -> Normalize -> Upsert (SQLite) -> RunReport
"""

import asyncio
import json

import httpx
import pytest
from sqlalchemy import func, select

from core.exceptions import ConfigurationError, FetchError, FetchErrorKind, PersistenceError
from ingestion.loaders.upsert_store import UpsertStore
from ingestion.registry import SourceDescriptor, SourceRegistry
from ingestion.runner import IngestionRunner
from models import Bill, Politician
from models.base import DataType, RunStatus, SourceOutcome, SourceTier


def members_page(*names):
    rows = "".join(f"<tr><td>{name}</td><td>MPP</td><td>Green</td><td>Guelph</td></tr>" for name in names)
    return f"<html><body><table><tr><th>Name</th></tr>{rows}</table></body></html>"


class RecordingSleep:
    def __init__(self, on_call=None):
        self.calls = []
        self.on_call = on_call

    async def __call__(self, delay):
        self.calls.append(delay)
        if self.on_call:
            self.on_call()


async def count_rows(session_factory, model):
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_two_row_table_end_to_end(make_source, make_fetcher, store, session_factory,
                                        members_table_html, html_response):
    """
    One extractable row and one row without a name:
    extracted 1, rejected 1, inserted 1
    """
    registry = SourceRegistry([make_source()])
    fetcher = make_fetcher(lambda request: html_response(members_table_html))
    runner = IngestionRunner(registry, fetcher, store, sleep=RecordingSleep())

    report = await runner.run_ingestion()

    assert report.status == RunStatus.COMPLETED
    assert report.totals.extracted == 1
    assert report.totals.rejected == 1
    assert report.totals.inserted == 1
    assert report.totals_by_kind["politicians"].inserted == 1
    assert report.sources[0].outcome == SourceOutcome.SUCCESS
    assert report.errors == []

    async with session_factory() as session:
        politician = (await session.execute(select(Politician))).scalar_one()
    assert politician.name == "Jane Doe"
    assert politician.jurisdiction == "Ontario"
    assert politician.tier == "Provincial"
    assert politician.party == "Green Party"
    assert politician.source_name == "Ontario Legislative Assembly"


@pytest.mark.asyncio
async def test_second_run_is_all_unchanged(make_source, make_fetcher, store, session_factory,
                                           members_table_html, html_response):
    registry = SourceRegistry([make_source()])
    fetcher = make_fetcher(lambda request: html_response(members_table_html))
    runner = IngestionRunner(registry, fetcher, store, sleep=RecordingSleep())

    await runner.run_ingestion()
    second = await runner.run_ingestion()

    assert second.totals.inserted == 0
    assert second.totals.updated == 0
    assert second.totals.unchanged == 1
    assert await count_rows(session_factory, Politician) == 1


@pytest.mark.asyncio
async def test_failing_source_is_isolated(make_source, make_fetcher, store, session_factory, html_response):
    """Five sources, the third always answers 503; all five are reported"""
    sources = [
        make_source(
            name=f"Source {n}",
            root_address=f"https://s{n}.example.ca",
            politeness_interval_ms=250,
        )
        for n in range(1, 6)
    ]

    def handler(request):
        if request.url.host == "s3.example.ca":
            return httpx.Response(503)
        number = request.url.host[1]
        return html_response(members_page(f"Member {number}"))

    fetcher = make_fetcher(handler, max_retries=3)
    runner_sleep = RecordingSleep()
    runner = IngestionRunner(SourceRegistry(sources), fetcher, store, sleep=runner_sleep)

    report = await runner.run_ingestion()

    assert [s.source_name for s in report.sources] == [f"Source {n}" for n in range(1, 6)]
    assert [s.outcome for s in report.sources] == [
        SourceOutcome.SUCCESS,
        SourceOutcome.SUCCESS,
        SourceOutcome.FAILED,
        SourceOutcome.SUCCESS,
        SourceOutcome.SUCCESS,
    ]
    assert report.status == RunStatus.COMPLETED_WITH_ERRORS
    assert report.totals.inserted == 4

    assert len(report.errors) == 1
    error = report.errors[0]
    assert error.source_name == "Source 3"
    assert error.data_type == "politicians"
    assert error.error_kind == "FetchError.http_status"
    assert error.attempts == 3
    assert error.status_code == 503

    # Politeness delay after every source but the last, failed ones included
    assert runner_sleep.calls == [0.25, 0.25, 0.25, 0.25]
    assert await count_rows(session_factory, Politician) == 4


@pytest.mark.asyncio
async def test_cancellation_skips_remaining_sources(make_source, make_fetcher, store, html_response):
    cancel = asyncio.Event()
    sources = [
        make_source(name=f"Source {n}", root_address=f"https://s{n}.example.ca")
        for n in range(1, 4)
    ]
    fetched = []

    def handler(request):
        fetched.append(request.url.host)
        return html_response(members_page("Someone"))

    runner = IngestionRunner(
        SourceRegistry(sources),
        make_fetcher(handler),
        store,
        sleep=RecordingSleep(on_call=cancel.set),
    )

    report = await runner.run_ingestion(cancel_event=cancel)

    assert report.cancelled is True
    assert fetched == ["s1.example.ca"]
    assert [s.outcome for s in report.sources] == [
        SourceOutcome.SUCCESS,
        SourceOutcome.SKIPPED,
        SourceOutcome.SKIPPED,
    ]
    # Partial run, though nothing failed
    assert report.status == RunStatus.COMPLETED_WITH_ERRORS
    assert report.errors == []


@pytest.mark.asyncio
async def test_invalid_filter_fails_before_network(make_source, make_fetcher, store):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200)

    runner = IngestionRunner(SourceRegistry([make_source()]), make_fetcher(handler), store)

    with pytest.raises(ConfigurationError):
        await runner.run_ingestion(tier="galactic")
    with pytest.raises(ConfigurationError):
        await runner.run_ingestion(data_type="lobbyists")

    assert requests == []


@pytest.mark.asyncio
async def test_data_type_filter_restricts_endpoints(make_source, make_fetcher, store, session_factory,
                                                    html_response):
    source = make_source(endpoints={DataType.POLITICIANS: "/members", DataType.BILLS: "/bills"})
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return html_response(
            '<div class="bill-item"><span class="bill-number">Bill 7</span>'
            '<span class="bill-title">An Act to Reduce Carbon Emissions</span></div>'
        )

    runner = IngestionRunner(SourceRegistry([source]), make_fetcher(handler), store)
    report = await runner.run_ingestion(data_type="bills")

    assert paths == ["/bills"]
    assert report.filter == {"tier": None, "data_type": "bills"}
    assert list(report.sources[0].counts) == ["bills"]

    async with session_factory() as session:
        bill = (await session.execute(select(Bill))).scalar_one()
    assert bill.category == "Environment"
    assert bill.jurisdiction == "Ontario"


@pytest.mark.asyncio
async def test_tier_filter(make_source, make_fetcher, store, html_response):
    registry = SourceRegistry([
        make_source(name="Parliament", root_address="https://www.parl.ca", tier=SourceTier.FEDERAL),
        make_source(name="Toronto", root_address="https://www.toronto.ca", tier=SourceTier.MUNICIPAL),
    ])
    fetcher = make_fetcher(lambda request: html_response(members_page("Pat Lee")))
    runner = IngestionRunner(registry, fetcher, store, sleep=RecordingSleep())

    report = await runner.run_ingestion(tier="municipal")

    assert [s.source_name for s in report.sources] == ["Toronto"]


@pytest.mark.asyncio
async def test_persistence_error_recorded_and_skipped(make_source, make_fetcher, session_factory, html_response):
    class FlakyStore(UpsertStore):
        async def upsert(self, record):
            if record.name == "Broken Row":
                raise PersistenceError("constraint violated", natural_key=record.natural_key())
            return await super().upsert(record)

    fetcher = make_fetcher(lambda request: html_response(members_page("Broken Row", "Good Row")))
    runner = IngestionRunner(
        SourceRegistry([make_source()]), fetcher, FlakyStore(session_factory), sleep=RecordingSleep()
    )

    report = await runner.run_ingestion()

    source_report = report.sources[0]
    assert source_report.outcome == SourceOutcome.PARTIAL
    assert source_report.totals.failed == 1
    assert source_report.totals.inserted == 1
    assert report.errors[0].error_kind == "PersistenceError"
    assert report.errors[0].natural_key == ("Broken Row", "Ontario")
    assert report.status == RunStatus.COMPLETED_WITH_ERRORS


@pytest.mark.asyncio
async def test_unresolved_speaker_counted_as_rejected(make_source, make_fetcher, store, html_response):
    source = make_source(
        name="House of Commons",
        root_address="https://www.ourcommons.ca",
        tier=SourceTier.FEDERAL,
        endpoints={DataType.STATEMENTS: "/hansard"},
    )
    page = (
        '<div class="intervention"><span class="speaker">Nobody Known</span>'
        '<p class="content">Mr. Speaker, on a point of order.</p></div>'
    )
    runner = IngestionRunner(
        SourceRegistry([source]), make_fetcher(lambda request: html_response(page)), store
    )

    report = await runner.run_ingestion()

    counts = report.sources[0].counts["statements"]
    assert counts.extracted == 0
    assert counts.rejected == 1
    assert counts.inserted == 0
    assert report.sources[0].outcome == SourceOutcome.SUCCESS
    assert report.errors == []


@pytest.mark.asyncio
async def test_report_serializes(make_source, make_fetcher, store, members_table_html, html_response, tmp_path):
    runner = IngestionRunner(
        SourceRegistry([make_source()]),
        make_fetcher(lambda request: html_response(members_table_html)),
        store,
    )
    report = await runner.run_ingestion()

    payload = json.loads(report.to_json())
    assert payload["run_id"] == report.run_id
    assert payload["totals"]["inserted"] == 1
    assert payload["sources"][0]["outcome"] == "success"

    path = report.write(tmp_path / "status" / "last_run.json")
    assert json.loads(path.read_text())["status"] == "completed"


def unvalidated_source(name, root_address):
    """Descriptor that skipped validation, as a hand-built registry could"""
    return SourceDescriptor.model_construct(
        name=name,
        root_address=root_address,
        endpoints={DataType.POLITICIANS: "/members"},
        tier=SourceTier.PROVINCIAL,
        declared_data_types=(DataType.POLITICIANS,),
        politeness_interval_ms=0,
        refresh_interval_hours=None,
    )


@pytest.mark.asyncio
async def test_invalid_url_does_not_abort_run(make_source, make_fetcher, store, session_factory, html_response):
    registry = SourceRegistry([
        unvalidated_source("Bad Port", "https://www.ola.org:80a"),
        make_source(name="Good", root_address="https://www.ola.org"),
    ])
    fetcher = make_fetcher(lambda request: html_response(members_page("Jane Doe")))
    runner = IngestionRunner(registry, fetcher, store, sleep=RecordingSleep())

    report = await runner.run_ingestion()

    assert [s.outcome for s in report.sources] == [SourceOutcome.FAILED, SourceOutcome.SUCCESS]
    assert report.errors[0].source_name == "Bad Port"
    assert report.errors[0].error_kind == "FetchError.network"
    assert report.errors[0].attempts == 1
    assert report.status == RunStatus.COMPLETED_WITH_ERRORS
    assert await count_rows(session_factory, Politician) == 1


@pytest.mark.asyncio
async def test_fetcher_does_not_retry_invalid_url(make_fetcher, sleep_recorder):
    fetcher = make_fetcher(lambda request: httpx.Response(200), max_retries=3)

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch(unvalidated_source("Bad Port", "https://www.ola.org:80a"), DataType.POLITICIANS)

    assert exc_info.value.kind == FetchErrorKind.NETWORK
    assert exc_info.value.attempts == 1
    assert sleep_recorder.calls == []


@pytest.mark.asyncio
async def test_unexpected_fetch_failure_recorded(make_source, make_fetcher, store, html_response):
    class BrokenFetcher:
        def __init__(self, inner):
            self.inner = inner

        async def fetch(self, source, data_type):
            if source.name == "Broken":
                raise RuntimeError("client closed")
            return await self.inner.fetch(source, data_type)

    registry = SourceRegistry([
        make_source(name="Broken", root_address="https://broken.example.ca"),
        make_source(name="Good", root_address="https://www.ola.org"),
    ])
    fetcher = BrokenFetcher(make_fetcher(lambda request: html_response(members_page("Jane Doe"))))
    runner = IngestionRunner(registry, fetcher, store, sleep=RecordingSleep())

    report = await runner.run_ingestion()

    assert [s.outcome for s in report.sources] == [SourceOutcome.FAILED, SourceOutcome.SUCCESS]
    assert report.errors[0].error_kind == "IngestionError"
    assert report.totals.inserted == 1
