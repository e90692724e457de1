from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .validation import ValidationReport

"""Result models for one import run.

CommitResult is returned by the upsert committer, ImportResult aggregates the
whole run (read -> validate -> commit) and feeds the SUMMARY line.
"""


class ImportStatus(Enum):
    """Final state of an import run.

    - SUCCESS: every valid row committed
    - VALIDATED: dry run, rows validated but nothing written
    - REFUSED: invalid rows present and the caller policy forbids committing
    - FAILED: unreadable workbook or storage failure
    """
    SUCCESS = "success"
    VALIDATED = "validated"
    REFUSED = "refused"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of writing the valid rows chunk by chunk."""
    committed_rows: int  # rows sent in successfully committed chunks
    total_chunks: int
    avg_chunk_seconds: float = 0.0
    p95_chunk_seconds: float = 0.0


@dataclass(frozen=True)
class ImportResult:
    """Aggregated result and summary data for one uploaded workbook."""
    file_name: str
    status: ImportStatus
    total_rows: int
    valid_rows: int
    invalid_rows: int
    warning_count: int
    committed_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    message: str  # completion or failure message shown to the operator
    report: ValidationReport | None = None  # None when the workbook could not be read
    commit: CommitResult | None = None

    @property
    def ok(self) -> bool:
        return self.status in (ImportStatus.SUCCESS, ImportStatus.VALIDATED)


class ChunkStatsAccumulator:
    """Collects per-chunk upsert timings for CommitResult."""

    def __init__(self) -> None:
        self.chunk_times: list[float] = []

    def add_chunk_time(self, elapsed_seconds: float) -> None:
        self.chunk_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_chunks, avg_chunk_seconds, p95_chunk_seconds)."""
        if not self.chunk_times:
            return (0, 0.0, 0.0)

        total = len(self.chunk_times)
        avg = statistics.mean(self.chunk_times)
        if total == 1:
            p95 = self.chunk_times[0]
        else:
            # 19th of 20 cut points
            p95 = statistics.quantiles(self.chunk_times, n=20, method="inclusive")[18]
        return (total, avg, p95)
