from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .row_data import RowData

"""Validation result models.

ValidationIssue is produced per rule by the record validator, InvalidRow and
ValidationReport are produced by the batch orchestrator.
"""

__all__ = [
    "Severity",
    "ValidationIssue",
    "InvalidRow",
    "ValidationReport",
]


class Severity(Enum):
    """Issue severity.

    - ERROR: blocking, the row is not committed
    - WARNING: advisory, the row is committed with the field defaulted
    """
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    row: int  # spreadsheet row number (first data row = 2)
    field: str  # canonical field name
    value: Any  # offending raw value
    message: str
    severity: Severity

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass(frozen=True)
class InvalidRow:
    row: RowData
    issues: list[ValidationIssue]


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validating every row of one uploaded sheet."""
    valid: list[RowData] = field(default_factory=list)
    invalid: list[InvalidRow] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)  # every issue, row by row in rule order
    total_rows: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)

    @property
    def has_errors(self) -> bool:
        return bool(self.invalid)
