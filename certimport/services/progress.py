from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Commit progress for the upsert committer.

A single tqdm bar counting committed rows, with the chunk position as
postfix. Drawn only when stdout is a TTY; on CI, cron or a redirected run
only the counters are kept.
"""

__all__ = [
    "ChunkProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ChunkProgress:
    """Advanced once per committed chunk."""

    def __init__(
        self,
        total_rows: int,
        total_chunks: int = 0,
        *,
        description: str = "Committing employees",
    ) -> None:
        self.total_rows = total_rows
        self.total_chunks = total_chunks
        self.committed_rows = 0
        self.chunks_done = 0
        self.pbar: TqdmType[Any] | None = None
        if is_tty_enabled():
            self.pbar = tqdm(
                total=total_rows, desc=description, unit="row", ncols=80, ascii=True, leave=True
            )

    def chunk_committed(self, rows: int) -> None:
        self.committed_rows += rows
        self.chunks_done += 1
        if self.pbar is None:
            return
        self.pbar.update(rows)
        if self.total_chunks:
            self.pbar.set_postfix(chunk=f"{self.chunks_done}/{self.total_chunks}")

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ChunkProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
