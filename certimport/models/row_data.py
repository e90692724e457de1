from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""RowData model for the employee spreadsheet import.

RowData is one spreadsheet row after header mapping: canonical field names
(see models.employee.EMPLOYEE_COLUMNS) to raw cell values. It only lives for
the duration of one import run.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """One raw import row.

    row_number is the 1-based row number as shown by a spreadsheet program,
    so the first data row (right below the header) is row 2.
    """
    row_number: int  # spreadsheet row (header = 1, first data row = 2)
    values: dict[str, Any] = field(default_factory=dict)  # canonical field -> raw cell value

    def get(self, field_name: str) -> Any:
        return self.values.get(field_name)
