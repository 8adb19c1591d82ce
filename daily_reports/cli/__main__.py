from __future__ import annotations

import argparse
import os
import sys
from contextlib import closing
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from daily_reports.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from daily_reports.db.batches import delete_batch, delete_orphaned_reports, list_batches
from daily_reports.logging.init import log_summary, set_debug, setup_logging
from daily_reports.models.config_models import DatabaseConfig, ImportConfig
from daily_reports.models.processing_result import ProcessingResult
from daily_reports.services.importer import ProcessingError, process_all, scan_excel_files
from daily_reports.services.inspect import inspect_workbook
from daily_reports.services.summary import render_summary_line

"""CLI entrypoint.

    python -m daily_reports.cli [FILES...] [--config PATH] [--debug] [--dry-run]
                                [--inspect-data] [--list-batches]
                                [--delete-batch ID] [--purge-orphaned]

Without FILES the configured source_directory is scanned. Every run ends
with a SUMMARY line. Batch maintenance commands need a database.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection string, in priority order:

    1. DATABASE_URL / PGDSN (whole DSN), then database.dsn from the config
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the remaining database section keys, then libpq defaults

    .env is loaded with override before this runs, so its values win.
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _connect(cfg: ImportConfig) -> Any:
    """Open a psycopg2 connection with explicit transactions (the importer issues BEGIN/COMMIT)."""
    conn = psycopg2.connect(_resolve_dsn(cfg.database))
    conn.autocommit = False
    return conn


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="daily_reports.cli",
        description="Import daily coffee shop report workbooks into PostgreSQL",
    )
    p.add_argument("files", nargs="*", type=Path, help="Workbooks to import (default: scan source_directory)")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file (default: %(default)s)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Parse and summarize without touching the database")
    p.add_argument("--inspect-data", action="store_true", help="Print detected layout and first parsed rows then exit")
    maintenance = p.add_mutually_exclusive_group()
    maintenance.add_argument("--list-batches", action="store_true", help="List import batches")
    maintenance.add_argument("--delete-batch", metavar="ID", help="Delete an import batch and its reports")
    maintenance.add_argument("--purge-orphaned", action="store_true", help="Delete reports that belong to no batch")
    return p.parse_args(argv)


def _select_files(cfg: ImportConfig, files: list[Path]) -> list[Path]:
    if files:
        return files
    return scan_excel_files(Path(cfg.source_directory))


def _inspect_data(cfg: ImportConfig, files: list[Path]) -> int:
    if not files:
        print("inspect: no Excel files")
        return EXIT_SUCCESS_ALL
    for f in files:
        inspect_workbook(f, options=cfg.parser)
    return EXIT_SUCCESS_ALL


def _run_maintenance(args: argparse.Namespace, cfg: ImportConfig, logger: Any) -> int:
    try:
        conn = _connect(cfg)
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL

    with closing(conn):
        try:
            with conn.cursor() as cur:
                if args.list_batches:
                    batches, orphaned = list_batches(cur)
                    for b in batches:
                        created = b.created_at.isoformat() if b.created_at else "-"
                        print(
                            f"batch={b.id} file={b.file_name} records={b.record_count} "
                            f"reports={b.report_count} imported_by={b.imported_by or '-'} created_at={created}"
                        )
                    print(f"orphaned_reports={orphaned}")
                elif args.delete_batch is not None:
                    deleted = delete_batch(cur, args.delete_batch)
                    if deleted is None:
                        conn.rollback()
                        logger.error(f"batch not found: {args.delete_batch}")
                        return EXIT_FATAL
                    logger.info(f"deleted batch={args.delete_batch} reports={deleted}")
                else:
                    deleted = delete_orphaned_reports(cur)
                    logger.info(f"deleted orphaned reports={deleted}")
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"database: {e}")
            return EXIT_FATAL
    return EXIT_SUCCESS_ALL


def _import(cfg: ImportConfig, files: list[Path], *, dry_run: bool, logger: Any) -> tuple[ProcessingResult, str]:
    """Run the import; returns the result and the db mode (live/mock)."""
    if dry_run or os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("database disabled -> mock mode")
        return process_all(cfg, cursor=None, files=files), "mock"

    try:
        conn = _connect(cfg)
    except psycopg2.Error as e:
        logger.info(f"DB connection failed -> fallback to mock mode: {e}")
        return process_all(cfg, cursor=None, files=files), "mock"

    with closing(conn), conn.cursor() as cur:
        result = process_all(cfg, cursor=cur, files=files)
    return result, "live"


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # An empty list means "no arguments"; only None reads sys.argv.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.list_batches or args.delete_batch is not None or args.purge_orphaned:
        return _run_maintenance(args, cfg, logger)

    try:
        files = _select_files(cfg, args.files)
    except ProcessingError as e:
        logger.error(f"{e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, files)

    if not args.files:
        logger.info(f"Processing files from: {cfg.source_directory}")

    try:
        result, db_mode = _import(cfg, files, dry_run=args.dry_run, logger=logger)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} imported_rows={result.total_imported_rows}")
    summary_line = render_summary_line(result.total_files, result)
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
