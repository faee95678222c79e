"""Unit tests for database engine helpers."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from actuator_ai.core.database.utils import create_all, create_engine, create_sessionmaker


class TestCreateEngine:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/actuator",
            "postgresql://u:p@db:5432/actuator",
            "postgresql+psycopg://u:p@db:5432/actuator",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, url):
        engine = create_engine(url)
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "actuator"

    def test_memory_sqlite_shares_one_connection(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        assert isinstance(engine.pool, StaticPool)


class TestSchema:
    @pytest.mark.asyncio
    async def test_create_all_creates_tables(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        try:
            await create_all(engine)
            async with engine.connect() as conn:
                tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            assert {"act_audit_events", "act_approval_records", "act_execution_logs"} <= set(tables)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_sessionmaker_does_not_expire_on_commit(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        try:
            session_factory = create_sessionmaker(engine)
            assert session_factory.kw["expire_on_commit"] is False
            async with session_factory() as session:
                assert (await session.execute(text("select 1"))).scalar_one() == 1
        finally:
            await engine.dispose()
