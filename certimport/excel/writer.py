from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from pathlib import Path

import pandas as pd
from openpyxl.utils import get_column_letter

from ..config.loader import CommitDefaults
from ..models.employee import Employee

"""Employee base export.

The workbook has two sheets:
- "Empleados Actuales": every employee, in the order given (newest first
  when it comes from EmployeeRepository.list_all)
- "Plantilla Nuevos": one template row with the usual defaults, to be filled
  in and uploaded again

Headers are the ones the importer recognizes, so an export can be edited and
re-imported as is.
"""

__all__ = [
    "CURRENT_SHEET",
    "EXPORT_HEADERS",
    "TEMPLATE_SHEET",
    "default_export_name",
    "write_export",
]

CURRENT_SHEET = "Empleados Actuales"
TEMPLATE_SHEET = "Plantilla Nuevos"
DEFAULT_CONTRACT_TYPE = "Indefinido"
DEFAULT_COMPANY = "Vity"

# Header -> Employee attribute, in column order
EXPORT_HEADERS: dict[str, str] = {
    "Nombre": "name",
    "Número Documento": "document_number",
    "Tipo Documento": "document_type",
    "Correo": "email",
    "Cargo": "position",
    "Empresa": "company",
    "Tipo Contrato": "contract_type",
    "Fecha Ingreso": "start_date",
    "Fecha Retiro": "end_date",
    "Estado": "status",
    "Sueldo": "salary",
    "Promedio Salarial Mensual": "average_salary",
    "Promedio No Salarial Mensual": "average_non_salary",
}

COLUMN_WIDTHS = (25, 15, 12, 30, 20, 15, 15, 12, 12, 10, 12, 20, 22)


def default_export_name(today: date | None = None) -> str:
    today = today or date.today()
    return f"empleados_{today.isoformat()}.xlsx"


def _employee_row(employee: Employee) -> dict[str, object]:
    row: dict[str, object] = {}
    for header, attr in EXPORT_HEADERS.items():
        value = getattr(employee, attr)
        row[header] = "" if value is None else value
    return row


def _template_row(defaults: CommitDefaults) -> dict[str, object]:
    row: dict[str, object] = {header: "" for header in EXPORT_HEADERS}
    row["Tipo Documento"] = defaults.document_type
    row["Empresa"] = DEFAULT_COMPANY
    row["Tipo Contrato"] = DEFAULT_CONTRACT_TYPE
    row["Estado"] = defaults.status
    return row


def _set_widths(worksheet) -> None:
    for idx, width in enumerate(COLUMN_WIDTHS, start=1):
        worksheet.column_dimensions[get_column_letter(idx)].width = width


def write_export(
    employees: Iterable[Employee],
    path: Path,
    defaults: CommitDefaults | None = None,
) -> int:
    """Write the export workbook; returns the number of employee rows written."""
    defaults = defaults or CommitDefaults()
    current = pd.DataFrame(
        [_employee_row(e) for e in employees], columns=list(EXPORT_HEADERS)
    )
    template = pd.DataFrame([_template_row(defaults)], columns=list(EXPORT_HEADERS))

    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        current.to_excel(writer, sheet_name=CURRENT_SHEET, index=False)
        template.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        for sheet in (CURRENT_SHEET, TEMPLATE_SHEET):
            _set_widths(writer.sheets[sheet])
    return len(current)
