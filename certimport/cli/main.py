from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from certimport.config.loader import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    ConfigError,
    InvalidRowPolicy,
    load_config,
)
from certimport.db.company import CompanyConfigRepository
from certimport.db.employees import EmployeeRepository, RepositoryError
from certimport.db.history import CertificateHistoryRepository
from certimport.excel.reader import (
    SheetHeaderError,
    WorkbookReadError,
    build_header_map,
    normalize_sheet,
    read_first_sheet,
)
from certimport.excel.writer import default_export_name, write_export
from certimport.logging.init import log_summary, setup_logging
from certimport.models.processing_result import ImportStatus
from certimport.services.orchestrator import run_import
from certimport.services.summary import render_summary_line

"""Command line entry point.

    certimport import FILE [--dry-run] [--skip-invalid] [--chunk-size N]
    certimport export [--output PATH]
    certimport inspect FILE [--rows N]
    certimport history [--search TERM]
    certimport companies

Exit codes: 0 success, 1 fatal (config, unreadable workbook, database),
2 import refused because of invalid rows.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_REFUSED = 2


def resolve_dsn(cfg: AppConfig) -> str:
    """Connection string, by precedence:

    1. DATABASE_URL / PGDSN (after .env has been loaded with override)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the `database` section of the config file
    """
    db_cfg = cfg.database
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


@contextmanager
def _db_connection(cfg: AppConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """psycopg2 connection + cursor.

    autocommit is on: the committer issues BEGIN / COMMIT per chunk itself.
    """
    conn = psycopg2.connect(resolve_dsn(cfg))
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over the existing environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="certimport", description="Employee spreadsheet import / export")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Validate a workbook and upsert its employees")
    imp.add_argument("file", type=Path)
    imp.add_argument("--dry-run", action="store_true", help="Validate only, write nothing")
    imp.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Commit the valid rows even when some rows have errors",
    )
    imp.add_argument("--chunk-size", type=int, help="Rows per upsert statement")

    exp = sub.add_parser("export", help="Export all employees plus a blank template sheet")
    exp.add_argument("--output", type=Path, help="Target .xlsx (default empleados_YYYY-MM-DD.xlsx)")

    ins = sub.add_parser("inspect", help="Print the recognized headers and first rows of a workbook")
    ins.add_argument("file", type=Path)
    ins.add_argument("--rows", type=int, default=3)

    hist = sub.add_parser("history", help="List issued certificates")
    hist.add_argument("--search", help="Filter by name, document, type or verification code")

    sub.add_parser("companies", help="List the certificate branding configured per company")
    return p.parse_args(argv)


def _cmd_import(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging(args.debug)
    if args.chunk_size is not None:
        if args.chunk_size < 1:
            logger.error("--chunk-size must be positive")
            return EXIT_FATAL
        cfg = dataclasses.replace(
            cfg, storage=dataclasses.replace(cfg.storage, chunk_size=args.chunk_size)
        )
    policy = InvalidRowPolicy.SKIP_INVALID if args.skip_invalid else None

    logger.info(f"Importing employees from: {args.file}")
    if args.dry_run:
        result = run_import(args.file, None, cfg, policy=policy, dry_run=True)
    else:
        try:
            with _db_connection(cfg) as cur:
                result = run_import(args.file, cur, cfg, policy=policy)
        except psycopg2.Error as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL

    if result.commit is not None and result.commit.total_chunks:
        logger.info(
            f"chunks={result.commit.total_chunks} "
            f"avg_chunk_sec={result.commit.avg_chunk_seconds:.3f} "
            f"p95_chunk_sec={result.commit.p95_chunk_seconds:.3f}"
        )
    if result.ok:
        logger.info(result.message)
    else:
        logger.error(result.message)
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.status is ImportStatus.REFUSED:
        return EXIT_REFUSED
    if result.status is ImportStatus.FAILED:
        return EXIT_FATAL
    return EXIT_SUCCESS


def _cmd_export(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging(args.debug)
    output = args.output or Path(default_export_name())
    try:
        with _db_connection(cfg) as cur:
            employees = EmployeeRepository(cur, cfg.storage.employees_table).list_all()
    except (psycopg2.Error, RepositoryError) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    try:
        count = write_export(employees, output, cfg.defaults)
    except OSError as e:
        logger.error(f"export: cannot write {output}: {e}")
        return EXIT_FATAL
    logger.info(f"exported {count} employee(s) to {output}")
    return EXIT_SUCCESS


def _cmd_inspect(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging(args.debug)
    try:
        sheet_name, df = read_first_sheet(args.file)
        sheet = normalize_sheet(df, sheet_name, build_header_map(cfg.column_aliases))
    except (WorkbookReadError, SheetHeaderError) as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {args.file.name} SHEET: {sheet.sheet_name} rows={len(sheet.rows)}")
    print(f"  recognized={sheet.columns}")
    if sheet.unknown_columns:
        print(f"  ignored={sheet.unknown_columns}")
    for row in sheet.rows[: max(args.rows, 0)]:
        safe = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in row.values.items()}
        print(f"  row {row.row_number}: {safe}")
    return EXIT_SUCCESS


def _cmd_history(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging(args.debug)
    try:
        with _db_connection(cfg) as cur:
            records = CertificateHistoryRepository(cur, cfg.storage.history_table).list_all(args.search)
    except (psycopg2.Error, RepositoryError) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    for r in records:
        code = r.verification_code or "-"
        print(
            f"{r.generated_at:%Y-%m-%d %H:%M} {r.document_number} {r.employee_name} "
            f"{r.certificate_type} code={code}"
        )
    logger.info(f"{len(records)} certificate(s)")
    return EXIT_SUCCESS


def _cmd_companies(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging(args.debug)
    try:
        with _db_connection(cfg) as cur:
            configs = CompanyConfigRepository(cur, cfg.storage.company_configs_table).list_all()
    except (psycopg2.Error, RepositoryError) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    for c in configs:
        signers = ", ".join(f"{s.name} ({s.position})" for s in c.signatories) or "-"
        print(f"{c.company_name} NIT {c.nit} {c.city} color={c.header_color} signatories={signers}")
    logger.info(f"{len(configs)} company config(s)")
    return EXIT_SUCCESS


COMMANDS = {
    "import": _cmd_import,
    "export": _cmd_export,
    "inspect": _cmd_inspect,
    "history": _cmd_history,
    "companies": _cmd_companies,
}


def main(argv: list[str] | None = None) -> int:
    # An explicit [] must not fall back to sys.argv (pytest arguments would leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(args.debug)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.debug("debug mode enabled")
    return COMMANDS[args.command](args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
