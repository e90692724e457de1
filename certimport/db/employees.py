from __future__ import annotations

import logging
from typing import Any

import psycopg2

from ..models.employee import CONFLICT_FIELD, EMPLOYEE_COLUMNS, Employee

"""Employee repository over the `empleados` table.

Admin panel operations: look up by document number, list, create, update,
delete. The cursor is owned by the caller; statements run in whatever
transaction mode the caller's connection is in.
"""

__all__ = [
    "EmployeeRepository",
    "RepositoryError",
    "run_statement",
]

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    pass


ALL_FIELDS: tuple[str, ...] = tuple(EMPLOYEE_COLUMNS)
KEY_COLUMN = EMPLOYEE_COLUMNS[CONFLICT_FIELD]


def run_statement(cursor: Any, table: str, sql: str, params: tuple[Any, ...] | None = None) -> None:
    """Execute one statement, wrapping driver errors in RepositoryError."""
    try:
        cursor.execute(sql, params)
    except psycopg2.Error as e:
        logger.error("table=%s statement failed: %s", table, e)
        raise RepositoryError(str(e).strip() or type(e).__name__) from e


class EmployeeRepository:
    def __init__(self, cursor: Any, table: str = "empleados") -> None:
        self.cursor = cursor
        self.table = table

    def _select_sql(self) -> str:
        cols = ",".join(f'"{c}"' for c in EMPLOYEE_COLUMNS.values())
        return f"SELECT {cols} FROM {self.table}"

    def _to_employee(self, row: tuple[Any, ...]) -> Employee:
        return Employee.from_db_row(dict(zip(EMPLOYEE_COLUMNS.values(), row)))

    def _execute(self, sql: str, params: tuple[Any, ...] | None = None) -> None:
        run_statement(self.cursor, self.table, sql, params)

    def find_by_document(self, document_number: str) -> Employee | None:
        self._execute(f'{self._select_sql()} WHERE "{KEY_COLUMN}" = %s', (document_number,))
        row = self.cursor.fetchone()
        return self._to_employee(row) if row else None

    def list_all(self) -> list[Employee]:
        """All employees, most recently created first."""
        self._execute(f'{self._select_sql()} ORDER BY "created_at" DESC')
        return [self._to_employee(r) for r in self.cursor.fetchall()]

    def create(self, employee: Employee) -> None:
        cols = ",".join(f'"{c}"' for c in Employee.columns(ALL_FIELDS))
        placeholders = ",".join(["%s"] * len(ALL_FIELDS))
        self._execute(
            f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders})",
            employee.to_db_row(ALL_FIELDS),
        )

    def update(self, document_number: str, employee: Employee) -> bool:
        """Overwrite the employee stored under document_number; False when none exists.

        The document number itself may change (employee.document_number).
        """
        assignments = ",".join(f'"{c}"=%s' for c in Employee.columns(ALL_FIELDS))
        self._execute(
            f'UPDATE {self.table} SET {assignments} WHERE "{KEY_COLUMN}" = %s',
            employee.to_db_row(ALL_FIELDS) + (document_number,),
        )
        return self.cursor.rowcount > 0

    def delete(self, document_number: str) -> bool:
        self._execute(f'DELETE FROM {self.table} WHERE "{KEY_COLUMN}" = %s', (document_number,))
        return self.cursor.rowcount > 0
