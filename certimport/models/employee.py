from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

"""Employee domain model for the certificate service.

The database keeps the Spanish column names used by the web application
(`empleados` table). Python code works with the canonical English field names;
EMPLOYEE_COLUMNS is the single place where the two are mapped.
"""

__all__ = [
    "Employee",
    "EMPLOYEE_COLUMNS",
    "IMPORT_FIELDS",
    "CONFLICT_FIELD",
]

# Canonical field -> column in the employees table (declaration order = column order)
EMPLOYEE_COLUMNS: dict[str, str] = {
    "name": "nombre",
    "document_number": "numero_documento",
    "document_type": "tipo_documento",
    "email": "correo",
    "position": "cargo",
    "company": "empresa",
    "contract_type": "tipo_contrato",
    "status": "estado",
    "start_date": "fecha_ingreso",
    "end_date": "fecha_retiro",
    "salary": "sueldo",
    "average_salary": "promedio_salarial_mensual",
    "average_non_salary": "promedio_no_salarial_mensual",
}

# Fields a spreadsheet import may write. The monthly averages are maintained
# from the admin panel only and are never touched by an upsert.
IMPORT_FIELDS: tuple[str, ...] = (
    "name",
    "document_number",
    "document_type",
    "email",
    "position",
    "company",
    "contract_type",
    "status",
    "start_date",
    "end_date",
    "salary",
)

CONFLICT_FIELD = "document_number"


def _to_iso(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _to_float(value: Any) -> float | None:
    # psycopg2 returns NUMERIC columns as Decimal
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class Employee:
    """One employee as stored in the employees table.

    Dates are kept as ISO `YYYY-MM-DD` strings, which is also what the
    import pipeline produces.
    """
    name: str
    document_number: str
    document_type: str
    email: str
    position: str
    company: str
    contract_type: str
    status: str
    start_date: str
    end_date: str | None = None
    salary: float | None = None
    average_salary: float | None = None
    average_non_salary: float | None = None

    @property
    def is_active(self) -> bool:
        return self.status.strip().lower() == "activo"

    def to_db_row(self, field_names: tuple[str, ...] = IMPORT_FIELDS) -> tuple[Any, ...]:
        """Values in column order for the given canonical fields."""
        return tuple(getattr(self, name) for name in field_names)

    @staticmethod
    def columns(field_names: tuple[str, ...] = IMPORT_FIELDS) -> list[str]:
        return [EMPLOYEE_COLUMNS[name] for name in field_names]

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Employee:
        """Build from a column-name keyed mapping (e.g. a fetched row)."""
        by_field = {name: row.get(column) for name, column in EMPLOYEE_COLUMNS.items()}
        return cls(
            name=by_field["name"] or "",
            document_number=str(by_field["document_number"] or ""),
            document_type=by_field["document_type"] or "",
            email=by_field["email"] or "",
            position=by_field["position"] or "",
            company=by_field["company"] or "",
            contract_type=by_field["contract_type"] or "",
            status=by_field["status"] or "",
            start_date=_to_iso(by_field["start_date"]) or "",
            end_date=_to_iso(by_field["end_date"]),
            salary=_to_float(by_field["salary"]),
            average_salary=_to_float(by_field["average_salary"]),
            average_non_salary=_to_float(by_field["average_non_salary"]),
        )
