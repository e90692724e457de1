from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import date
from typing import Any

import psycopg2

from ..config.loader import DEFAULT_CHUNK_SIZE, CommitDefaults
from ..db.batch_upsert import BatchUpsertError, ChunkMetrics, batch_upsert
from ..models.employee import CONFLICT_FIELD, EMPLOYEE_COLUMNS, IMPORT_FIELDS, Employee
from ..models.processing_result import ChunkStatsAccumulator, CommitResult
from ..models.row_data import RowData
from .dates import normalize_date
from .progress import ChunkProgress
from .validator import as_text, parse_number

"""Upsert committer.

Turns validated rows into Employee records (commit-time defaults applied
here, not during validation) and writes them chunk by chunk, one
transaction per chunk. The first failing chunk stops the run; chunks that
were already committed stay committed.
"""

__all__ = [
    "CommitError",
    "build_employee",
    "chunked",
    "commit_employees",
]

logger = logging.getLogger(__name__)


class CommitError(Exception):
    """A chunk write was rejected by the database."""

    def __init__(self, message: str, committed_rows: int, failed_chunk: int, total_chunks: int) -> None:
        super().__init__(message)
        self.committed_rows = committed_rows
        self.failed_chunk = failed_chunk  # 1-based
        self.total_chunks = total_chunks


def build_employee(
    values: dict[str, Any],
    defaults: CommitDefaults | None = None,
    today: date | None = None,
) -> Employee:
    """Employee from a validated row.

    Absent document type / status get the configured defaults, an absent
    start date becomes today. Contract type, position and company stay
    empty; end date and salary stay NULL (also when they were unreadable,
    which the validator reported as a warning).
    """
    defaults = defaults or CommitDefaults()
    today = today or date.today()
    return Employee(
        name=as_text(values.get("name")),
        document_number=as_text(values.get("document_number")),
        document_type=as_text(values.get("document_type")) or defaults.document_type,
        email=as_text(values.get("email")),
        position=as_text(values.get("position")),
        company=as_text(values.get("company")),
        contract_type=as_text(values.get("contract_type")),
        status=as_text(values.get("status")) or defaults.status,
        start_date=normalize_date(values.get("start_date")) or today.isoformat(),
        end_date=normalize_date(values.get("end_date")),
        salary=parse_number(values.get("salary")),
    )


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _dedupe(employees: list[Employee]) -> list[Employee]:
    # One statement must not touch the same conflict key twice; the last row wins
    by_document: dict[str, Employee] = {}
    for employee in employees:
        if employee.document_number in by_document:
            logger.warning(
                "document_number=%s appears more than once, keeping the last row",
                employee.document_number,
            )
            del by_document[employee.document_number]
        by_document[employee.document_number] = employee
    return list(by_document.values())


def _rollback(cursor: Any) -> None:
    try:
        cursor.execute("ROLLBACK")
    except psycopg2.Error as e:
        logger.warning("rollback after failed chunk also failed: %s", e)


def commit_employees(
    cursor: Any,
    rows: Sequence[RowData],
    *,
    table: str = "empleados",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    defaults: CommitDefaults | None = None,
    today: date | None = None,
) -> CommitResult:
    """Upsert validated rows keyed on document number.

    Chunks are written strictly one after another. No retry.

    Raises:
        CommitError: first chunk the database rejected; carries the number of
            rows committed by the chunks before it
    """
    employees = _dedupe([build_employee(r.values, defaults, today) for r in rows])
    columns = Employee.columns(IMPORT_FIELDS)
    conflict_column = EMPLOYEE_COLUMNS[CONFLICT_FIELD]
    chunks = list(chunked(employees, chunk_size))
    stats = ChunkStatsAccumulator()

    def on_metrics(metrics: ChunkMetrics) -> None:
        stats.add_chunk_time(metrics.elapsed_seconds)

    committed = 0
    with ChunkProgress(len(employees), len(chunks)) as progress:
        for index, chunk in enumerate(chunks, start=1):
            try:
                cursor.execute("BEGIN")
                batch_upsert(
                    cursor,
                    table=table,
                    columns=columns,
                    rows=[e.to_db_row(IMPORT_FIELDS) for e in chunk],
                    conflict_column=conflict_column,
                    page_size=len(chunk),
                    metrics_callback=on_metrics,
                )
                cursor.execute("COMMIT")
            except (BatchUpsertError, psycopg2.Error) as e:
                _rollback(cursor)
                logger.error(
                    "chunk %d/%d rejected table=%s committed_rows=%d: %s",
                    index, len(chunks), table, committed, e,
                )
                raise CommitError(
                    f"chunk {index}/{len(chunks)} failed: {e}",
                    committed_rows=committed,
                    failed_chunk=index,
                    total_chunks=len(chunks),
                ) from e
            committed += len(chunk)
            progress.chunk_committed(len(chunk))
            logger.debug("chunk %d/%d committed rows=%d", index, len(chunks), len(chunk))

    total, avg, p95 = stats.get_stats()
    return CommitResult(
        committed_rows=committed,
        total_chunks=total,
        avg_chunk_seconds=avg,
        p95_chunk_seconds=p95,
    )
