# Shared pytest fixtures
from __future__ import annotations

import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pandas as pd
import psycopg2
import pytest

from certimport.logging.init import reset_logging
from certimport.models.employee import EMPLOYEE_COLUMNS

_INSERT_COLUMNS = re.compile(r"INSERT INTO \S+ \(([^)]*)\) VALUES")


@pytest.fixture(autouse=True)
def _clean_logging():
    # handlers keep a reference to the stdout captured for the test that created them
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: certificados
storage:
  employees_table: empleados
  history_table: certificaciones_historico
  chunk_size: 2
defaults:
  document_type: CC
  status: Activo
on_invalid_rows: abort
column_aliases:
  document_number: ["Identificación"]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def write_workbook(path: Path, rows: list[list[object]], sheet_name: str = "Empleados") -> Path:
    """Write rows (first one = header) as the first sheet of a real .xlsx file."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def make_workbook(tmp_path: Path):
    def _make(rows: list[list[object]], name: str = "empleados.xlsx", sheet_name: str = "Empleados") -> Path:
        return write_workbook(tmp_path / name, rows, sheet_name)
    return _make


class FakeCursor:
    """In-memory stand-in for a psycopg2 cursor on the employees table.

    Understands BEGIN / COMMIT / ROLLBACK, the upsert issued through the
    patched execute_values, and the SELECTs of EmployeeRepository.
    """

    def __init__(self, fail_on_upsert: int | None = None) -> None:
        self.statements: list[tuple[str, Any]] = []
        self.rows: dict[str, dict[str, Any]] = {}  # numero_documento -> column values
        self.upserts = 0
        self.fail_on_upsert = fail_on_upsert  # 1-based upsert call that raises
        self.rowcount = -1
        self._tx: dict[str, dict[str, Any]] | None = None
        self._result: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append((sql, params))
        keyword = sql.split(None, 1)[0].upper()
        if keyword == "BEGIN":
            self._tx = {k: dict(v) for k, v in self.rows.items()}
        elif keyword == "COMMIT":
            if self._tx is not None:
                self.rows = self._tx
            self._tx = None
        elif keyword == "ROLLBACK":
            self._tx = None
        elif keyword == "SELECT":
            stored = list(self.rows.values())
            if params:
                stored = [r for r in stored if r.get("numero_documento") == params[0]]
            else:
                stored.reverse()  # newest first
            self._result = [tuple(r.get(c) for c in EMPLOYEE_COLUMNS.values()) for r in stored]
            self.rowcount = len(self._result)

    def upsert(self, sql: str, rows: list[Any]) -> None:
        self.upserts += 1
        if self.fail_on_upsert == self.upserts:
            raise psycopg2.OperationalError("server closed the connection unexpectedly")
        match = _INSERT_COLUMNS.search(sql)
        assert match is not None, sql
        columns = [c.strip().strip('"') for c in match.group(1).split(",")]
        target = self._tx if self._tx is not None else self.rows
        for values in rows:
            row = dict(zip(columns, values))
            target.setdefault(row["numero_documento"], {}).update(row)

    @property
    def keywords(self) -> list[str]:
        return [sql.split(None, 1)[0].upper() for sql, _ in self.statements]

    def fetchone(self):
        return self._result[0] if self._result else None

    def fetchall(self):
        return list(self._result)


@pytest.fixture()
def patch_execute_values(monkeypatch):
    # execute_values is replaced inside the module so no live database is needed
    import certimport.db.batch_upsert as bu

    def fake_execute_values(cursor, sql, rows, page_size=1000, template=None):
        cursor.upsert(sql, rows)

    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return fake_execute_values


@pytest.fixture()
def fake_cursor(patch_execute_values) -> FakeCursor:
    return FakeCursor()


@pytest.fixture()
def cli_db(monkeypatch, fake_cursor) -> FakeCursor:
    """Route the CLI's database connection to the fake cursor."""
    import certimport.cli.main as cli

    @contextmanager
    def fake_connection(cfg):
        yield fake_cursor

    monkeypatch.setattr(cli, "_db_connection", fake_connection)
    return fake_cursor
