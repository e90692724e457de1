from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

"""Batch upsert through psycopg2.extras.execute_values.

One call = one `INSERT ... ON CONFLICT (key) DO UPDATE` statement per
page. Table and column names come from configuration that was checked
against an identifier pattern, values always travel as parameters.
"""

__all__ = [
    "BatchUpsertError",
    "ChunkMetrics",
    "UpsertResult",
    "batch_upsert",
    "build_upsert_sql",
]


class BatchUpsertError(Exception):
    pass


@dataclass(frozen=True)
class ChunkMetrics:
    """Timing of one batch_upsert call."""
    chunk_size: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class UpsertResult:
    written_rows: int


def build_upsert_sql(table: str, columns: Sequence[str], conflict_column: str) -> str:
    if conflict_column not in columns:
        raise BatchUpsertError(f"conflict column {conflict_column!r} is not among the written columns")
    cols_sql = ",".join(f'"{c}"' for c in columns)
    updates = ",".join(f'"{c}"=EXCLUDED."{c}"' for c in columns if c != conflict_column)
    sql = f'INSERT INTO {table} ({cols_sql}) VALUES %s ON CONFLICT ("{conflict_column}")'
    if updates:
        return f"{sql} DO UPDATE SET {updates}"
    return f"{sql} DO NOTHING"


def batch_upsert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_column: str,
    page_size: int = 1000,
    metrics_callback: Callable[[ChunkMetrics], None] | None = None,
) -> UpsertResult:
    """Insert rows, overwriting existing rows that share conflict_column.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier)
    columns: written columns, conflict_column included
    rows: value sequences in column order
    conflict_column: unique column used for conflict resolution
    page_size: execute_values page size
    metrics_callback: receives ChunkMetrics after the statement ran (not
        called for an empty row set)
    """
    rows_list = list(rows)
    if not rows_list:
        return UpsertResult(written_rows=0)

    sql = build_upsert_sql(table, columns, conflict_column)

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except psycopg2.Error as e:
        raise BatchUpsertError(str(e).strip() or type(e).__name__) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                ChunkMetrics(
                    chunk_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return UpsertResult(written_rows=len(rows_list))
