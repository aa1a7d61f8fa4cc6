"""
Pytest configuration and fixtures
"""

from typing import Callable, Dict, List

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from core.database import create_session_factory
from ingestion.fetcher import Fetcher
from ingestion.loaders.upsert_store import UpsertStore
from ingestion.registry import SourceDescriptor
from models import Base
from models.base import DataType, SourceTier


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Engine on a throwaway SQLite file"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ingest_test.db'}",
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory):
    return UpsertStore(session_factory)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, delay: float):
        self.calls.append(delay)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_source() -> Callable[..., SourceDescriptor]:
    """Factory for SourceDescriptor values with test-friendly defaults"""

    def _make(
        name: str = "Ontario Legislative Assembly",
        root_address: str = "https://www.ola.org",
        tier: SourceTier = SourceTier.PROVINCIAL,
        endpoints: Dict[DataType, str] = None,
        politeness_interval_ms: int = 1000,
    ) -> SourceDescriptor:
        endpoints = endpoints or {DataType.POLITICIANS: "/members"}
        return SourceDescriptor(
            name=name,
            root_address=root_address,
            tier=tier,
            endpoints=endpoints,
            declared_data_types=tuple(endpoints),
            politeness_interval_ms=politeness_interval_ms,
        )

    return _make


@pytest.fixture
def make_fetcher(sleep_recorder) -> Callable[..., Fetcher]:
    """Fetcher over an httpx.MockTransport; handler maps request -> response"""

    def _make(handler, max_retries: int = 3, base_delay: float = 1.0) -> Fetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Fetcher(
            client=client,
            max_retries=max_retries,
            base_delay=base_delay,
            jitter=0,
            timeout=5.0,
            sleep=sleep_recorder,
        )

    return _make


MEMBERS_TABLE_HTML = """
<html><body>
  <table class="members">
    <tr><th>Name</th><th>Role</th><th>Party</th><th>Riding</th></tr>
    <tr>
      <td>Jane Doe</td><td>MPP</td><td>Green Party</td><td>Guelph</td>
    </tr>
    <tr>
      <td></td><td>MPP</td><td>Independent</td><td>Nowhere</td>
    </tr>
  </table>
</body></html>
"""


@pytest.fixture
def members_table_html():
    """Two data rows: one extractable, one missing its name"""
    return MEMBERS_TABLE_HTML


@pytest.fixture
def html_response() -> Callable[..., httpx.Response]:
    def _make(body: str, status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            text=body,
            headers={"Content-Type": "text/html; charset=utf-8"},
        )

    return _make
