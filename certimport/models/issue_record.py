from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime
from typing import Any

from .validation import ValidationIssue

"""IssueRecord model for the JSON Lines issue log.

One IssueRecord per validation issue, plus file-level records (row=-1) for
failures that are not tied to a row: unreadable workbook, storage failure.
The key set is fixed: timestamp, file, row, field, value, severity, message.
"""

__all__ = [
    "IssueRecord",
    "FILE_LEVEL",
]

FILE_LEVEL = "<FILE_LEVEL>"


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded workbook name
        row: spreadsheet row number, -1 for file-level failures
        field: canonical field name, FILE_LEVEL for file-level failures
        value: offending value, made JSON-safe
        severity: "error" or "warning"
        message: human-readable description
    """
    timestamp: str
    file: str
    row: int
    field: str
    value: Any
    severity: str
    message: str

    @staticmethod
    def create(
        file: str,
        row: int,
        field: str,
        value: Any,
        severity: str,
        message: str,
    ) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            value=_json_safe(value),
            severity=severity,
            message=message,
        )

    @staticmethod
    def from_issue(file: str, issue: ValidationIssue) -> IssueRecord:
        return IssueRecord.create(
            file=file,
            row=issue.row,
            field=issue.field,
            value=issue.value,
            severity=issue.severity.value,
            message=issue.message,
        )

    @staticmethod
    def file_level(file: str, message: str) -> IssueRecord:
        return IssueRecord.create(
            file=file, row=-1, field=FILE_LEVEL, value=None, severity="error", message=message
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
