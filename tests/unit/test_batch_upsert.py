from __future__ import annotations

import psycopg2
import pytest

from certimport.db.batch_upsert import (
    BatchUpsertError,
    UpsertResult,
    batch_upsert,
    build_upsert_sql,
)


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list = []


@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import certimport.db.batch_upsert as bu

    def fake_execute_values(cursor, sql, rows, page_size=1000, template=None):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)
        cursor.page_size = page_size

    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return fake_execute_values


def test_build_upsert_sql():
    sql = build_upsert_sql("empleados", ["nombre", "numero_documento", "correo"], "numero_documento")
    assert sql == (
        'INSERT INTO empleados ("nombre","numero_documento","correo") VALUES %s '
        'ON CONFLICT ("numero_documento") DO UPDATE SET '
        '"nombre"=EXCLUDED."nombre","correo"=EXCLUDED."correo"'
    )


def test_build_upsert_sql_key_only():
    sql = build_upsert_sql("empleados", ["numero_documento"], "numero_documento")
    assert sql.endswith('ON CONFLICT ("numero_documento") DO NOTHING')


def test_build_upsert_sql_requires_conflict_column():
    with pytest.raises(BatchUpsertError, match="not among the written columns"):
        build_upsert_sql("empleados", ["nombre"], "numero_documento")


def test_batch_upsert_basic():
    cur = DummyCursor()
    res = batch_upsert(
        cur,
        table="empleados",
        columns=["numero_documento", "nombre"],
        rows=[("1", "Ana"), ("2", "Luis")],
        conflict_column="numero_documento",
        page_size=2,
    )
    assert res == UpsertResult(written_rows=2)
    assert len(cur.queries) == 1
    assert "VALUES %s" in cur.queries[0]
    assert cur.page_size == 2


def test_batch_upsert_empty_rows_skips_statement_and_metrics():
    cur = DummyCursor()
    captured = []
    res = batch_upsert(
        cur, "empleados", ["numero_documento"], [], "numero_documento", metrics_callback=captured.append
    )
    assert res.written_rows == 0
    assert cur.queries == []
    assert captured == []


def test_batch_upsert_metrics_callback():
    cur = DummyCursor()
    captured = []
    batch_upsert(
        cur,
        "empleados",
        ["numero_documento"],
        [("1",), ("2",), ("3",)],
        "numero_documento",
        metrics_callback=captured.append,
    )
    assert len(captured) == 1
    metrics = captured[0]
    assert metrics.chunk_size == 3
    assert metrics.elapsed_seconds >= 0
    assert metrics.elapsed_seconds == metrics.end_time - metrics.start_time


def test_batch_upsert_wraps_driver_errors(monkeypatch):
    import certimport.db.batch_upsert as bu

    def failing_execute_values(cursor, sql, rows, page_size=1000, template=None):
        raise psycopg2.IntegrityError("null value in column \"correo\"")

    monkeypatch.setattr(bu, "execute_values", failing_execute_values)
    captured = []
    with pytest.raises(BatchUpsertError, match="correo"):
        batch_upsert(
            DummyCursor(),
            "empleados",
            ["numero_documento"],
            [("1",)],
            "numero_documento",
            metrics_callback=captured.append,
        )
    # timing is still reported for the failed statement
    assert len(captured) == 1
