"""
Unit tests for the run_ingestion command line entry point
"""

import json

import pytest

from scripts.run_ingestion import EXIT_CONFIGURATION, EXIT_OK, build_parser, main


class TestRunIngestionCli:
    """Argument parsing and exit codes"""

    def test_filters_parsed(self):
        args = build_parser().parse_args(["--tier", "provincial", "--data-type", "bills"])

        assert args.tier == "provincial"
        assert args.data_type == "bills"

    def test_unknown_tier_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--tier", "galactic"])

    def test_unreadable_catalog_is_configuration_error(self, tmp_path):
        exit_code = main(["--sources-file", str(tmp_path / "missing.yaml")])

        assert exit_code == EXIT_CONFIGURATION

    def test_catalog_without_sources_list(self, tmp_path):
        catalog = tmp_path / "sources.yaml"
        catalog.write_text("endpoints: []\n")

        assert main(["--sources-file", str(catalog)]) == EXIT_CONFIGURATION

    def test_empty_catalog_run_writes_report(self, tmp_path):
        catalog = tmp_path / "sources.yaml"
        catalog.write_text("sources: []\n")
        report_file = tmp_path / "status" / "last_run.json"

        exit_code = main([
            "--sources-file", str(catalog),
            "--report-file", str(report_file),
            "--database-url", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}",
        ])

        assert exit_code == EXIT_OK
        report = json.loads(report_file.read_text())
        assert report["status"] == "completed"
        assert report["sources"] == []


class TestInitDb:
    """Schema creation from the ORM metadata"""

    @pytest.mark.asyncio
    async def test_creates_every_table(self, tmp_path):
        from sqlalchemy import inspect
        from sqlalchemy.ext.asyncio import create_async_engine

        from scripts.init_db import init_database

        url = f"sqlite+aiosqlite:///{tmp_path / 'init.db'}"
        await init_database(url)

        engine = create_async_engine(url)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await engine.dispose()

        assert set(tables) == {
            "politicians",
            "politician_statements",
            "bills",
            "voting_records",
            "committees",
            "elections",
        }
