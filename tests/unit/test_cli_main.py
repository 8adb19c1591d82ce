from __future__ import annotations

from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

import daily_reports.cli.__main__ as cli
from daily_reports.cli.__main__ import _resolve_dsn, main
from daily_reports.db.batches import ImportBatch
from daily_reports.models.config_models import DatabaseConfig


@pytest.fixture()
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


@pytest.fixture()
def current_year_report(temp_workdir: Path, write_config, workbook_bytes, report_sheet) -> Path:
    year = date.today().year
    sheet = report_sheet().day(date(year, 1, 10)).day(date(year, 1, 11))
    path = temp_workdir / "data" / "report.xlsx"
    path.write_bytes(workbook_bytes({"Центр": sheet}))
    return path


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    assert main([]) == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_missing_source_directory_is_fatal(temp_workdir: Path, write_config, capsys):
    (temp_workdir / "data").rmdir()
    assert main([]) == 1
    assert "Directory not found" in capsys.readouterr().out


def test_config_option(temp_workdir: Path, capsys, no_db):
    other = temp_workdir / "other.yml"
    other.write_text("source_directory: ./data\n", encoding="utf-8")
    assert main(["--config", str(other)]) == 0
    assert "SUMMARY files=0/0" in capsys.readouterr().out


def test_dry_run_imports_in_mock_mode(current_year_report, capsys):
    code = main(["--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert "mode=mock" in out
    assert "SUMMARY files=1/1 success=1 failed=0 sheets=1 imported=2 skipped=3 errors=0" in out


def test_explicit_files(current_year_report, temp_workdir: Path, capsys, no_db):
    other = temp_workdir / "elsewhere.xlsx"
    other.write_bytes(current_year_report.read_bytes())
    assert main([str(other)]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY files=1/1" in out
    assert "Processing files from" not in out


def test_failed_file_exit_code(current_year_report, temp_workdir: Path, capsys, no_db):
    (temp_workdir / "data" / "broken.xlsx").write_bytes(b"junk")
    assert main([]) == 2
    out = capsys.readouterr().out
    assert "SUMMARY files=2/2 success=1 failed=1" in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_connection_failure_falls_back_to_mock(current_year_report, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    with patch.object(cli.psycopg2, "connect", side_effect=psycopg2.OperationalError("refused")):
        code = main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO DB connection failed -> fallback to mock mode" in out
    assert "mode=mock" in out


def test_live_mode_uses_connection(current_year_report, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    conn = MagicMock()
    result = cli.ProcessingResult(
        success_files=1, failed_files=0, total_sheets=1, total_imported_rows=2,
        total_skipped_rows=3, total_row_errors=0,
        start_time=MagicMock(), end_time=MagicMock(), elapsed_seconds=0.5,
    )
    with patch.object(cli.psycopg2, "connect", return_value=conn), \
         patch.object(cli, "process_all", return_value=result) as run:
        code = main([])
    assert code == 0
    assert conn.autocommit is False
    assert run.call_args.kwargs["cursor"] is conn.cursor.return_value.__enter__.return_value
    conn.close.assert_called_once()
    assert "mode=live" in capsys.readouterr().out


def test_debug_flag(current_year_report, capsys, no_db):
    main(["--debug"])
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_inspect_data(current_year_report, capsys):
    assert main(["--inspect-data"]) == 0
    out = capsys.readouterr().out
    assert "FILE: report.xlsx" in out
    assert "SHEET: Центр" in out
    assert "parsed=2 skipped=3" in out
    assert "SUMMARY" not in out


def test_list_batches(temp_workdir: Path, write_config, capsys):
    conn = MagicMock()
    batch = ImportBatch(id=3, file_name="jan.xlsx", imported_by=None, record_count=31, created_at=None, report_count=31)
    with patch.object(cli.psycopg2, "connect", return_value=conn), \
         patch.object(cli, "list_batches", return_value=([batch], 4)):
        assert main(["--list-batches"]) == 0
    out = capsys.readouterr().out
    assert "batch=3 file=jan.xlsx records=31 reports=31 imported_by=- created_at=-" in out
    assert "orphaned_reports=4" in out
    conn.commit.assert_called_once()


def test_delete_batch_not_found(temp_workdir: Path, write_config, capsys):
    conn = MagicMock()
    with patch.object(cli.psycopg2, "connect", return_value=conn), \
         patch.object(cli, "delete_batch", return_value=None):
        assert main(["--delete-batch", "77"]) == 1
    assert "batch not found: 77" in capsys.readouterr().out
    conn.commit.assert_not_called()


def test_delete_batch_and_purge(temp_workdir: Path, write_config, capsys):
    conn = MagicMock()
    with patch.object(cli.psycopg2, "connect", return_value=conn), \
         patch.object(cli, "delete_batch", return_value=12), \
         patch.object(cli, "delete_orphaned_reports", return_value=5):
        assert main(["--delete-batch", "3"]) == 0
        assert main(["--purge-orphaned"]) == 0
    out = capsys.readouterr().out
    assert "deleted batch=3 reports=12" in out
    assert "deleted orphaned reports=5" in out


def test_maintenance_without_database_is_fatal(temp_workdir: Path, write_config, capsys):
    with patch.object(cli.psycopg2, "connect", side_effect=psycopg2.OperationalError("refused")):
        assert main(["--list-batches"]) == 1
    assert "ERROR database:" in capsys.readouterr().out


def test_resolve_dsn_priority(monkeypatch):
    for var in ["DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"]:
        monkeypatch.delenv(var, raising=False)
    cfg = DatabaseConfig(host="db", port=6543, user="app", password="pw", database="reports")
    assert _resolve_dsn(cfg) == "host=db port=6543 user=app dbname=reports password=pw"
    monkeypatch.setenv("PGHOST", "envhost")
    assert _resolve_dsn(cfg).startswith("host=envhost port=6543")
    assert _resolve_dsn(DatabaseConfig(dsn="postgresql://cfg")) == "postgresql://cfg"
    monkeypatch.setenv("DATABASE_URL", "postgresql://env")
    assert _resolve_dsn(cfg) == "postgresql://env"


def test_env_file_overrides_environment(temp_workdir: Path, write_config, monkeypatch, capsys):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "0")
    (temp_workdir / ".env").write_text("DISABLE_DB_CONNECT=1\n", encoding="utf-8")
    with patch.object(cli.psycopg2, "connect") as connect:
        assert main([]) == 0
    connect.assert_not_called()
