from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import pandas as pd

from ..models.row_data import RowData

"""Workbook reader for employee uploads.

- Only the first sheet is read.
- Row 1 holds the column headers, every following non-blank row is one
  employee candidate.
- Headers are matched case-sensitively against an alias table (Spanish and
  English spellings used by the admin template and by older exports) and
  mapped to canonical field names.
"""

__all__ = [
    "DEFAULT_COLUMN_ALIASES",
    "IDENTITY_FIELDS",
    "SheetData",
    "SheetHeaderError",
    "WorkbookReadError",
    "build_header_map",
    "normalize_sheet",
    "read_first_sheet",
]


class WorkbookReadError(Exception):
    """Raised when the upload cannot be decoded as a workbook at all."""


class SheetHeaderError(Exception):
    """Raised when the first sheet has no usable header row."""


# a header must name at least one of these
IDENTITY_FIELDS = ("name", "document_number", "email")


DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("Nombre", "nombre", "NOMBRE", "Name", "name"),
    "document_number": (
        "Número Documento", "Numero Documento", "numero_documento", "NUMERO_DOCUMENTO",
        "Cedula", "cedula", "CEDULA", "Cédula", "Document", "document_number",
    ),
    "document_type": ("Tipo Documento", "tipo_documento", "TIPO_DOCUMENTO", "document_type"),
    "email": ("Correo", "correo", "CORREO", "Email", "email", "EMAIL"),
    "position": ("Cargo", "cargo", "CARGO", "Position", "position"),
    "company": ("Empresa", "empresa", "EMPRESA", "Company", "company"),
    "contract_type": ("Tipo Contrato", "tipo_contrato", "TIPO_CONTRATO", "contract_type"),
    "status": ("Estado", "estado", "ESTADO", "Status", "status"),
    "start_date": (
        "Fecha Ingreso", "fecha_ingreso", "FECHA_INGRESO", "Fecha de Ingreso", "start_date",
    ),
    "end_date": (
        "Fecha Retiro", "fecha_retiro", "FECHA_RETIRO", "Fecha de Retiro", "end_date",
    ),
    "salary": ("Sueldo", "sueldo", "SUELDO", "Salary", "salary"),
}


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]  # canonical fields found in the header
    rows: list[RowData]
    unknown_columns: list[str] = field(default_factory=list)  # headers with no alias


def build_header_map(extra_aliases: Mapping[str, Iterable[str]] | None = None) -> dict[str, str]:
    """Header text -> canonical field name."""
    header_map: dict[str, str] = {}
    for canonical, aliases in DEFAULT_COLUMN_ALIASES.items():
        for alias in aliases:
            header_map[alias] = canonical
    if extra_aliases:
        for canonical, aliases in extra_aliases.items():
            for alias in aliases:
                header_map[alias] = canonical
    return header_map


def read_first_sheet(source: Path | IO[bytes]) -> tuple[str, pd.DataFrame]:
    """Read the first sheet without header interpretation.

    dtype=object keeps whole numbers as ints so document numbers do not turn
    into floats when the column has blanks.

    Raises:
        WorkbookReadError: file missing, not a workbook, or without sheets
    """
    try:
        xls = pd.ExcelFile(source)
        if not xls.sheet_names:
            raise WorkbookReadError("workbook has no sheets")
        name = xls.sheet_names[0]
        df = xls.parse(name, header=None, dtype=object)
    except WorkbookReadError:
        raise
    except Exception as e:
        # pandas/openpyxl/xlrd raise a variety of types for undecodable files
        raise WorkbookReadError(f"cannot read workbook: {e}") from e
    return str(name), df


def _clean(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, str):
        return value.strip()
    return value


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    header_map: Mapping[str, str] | None = None,
) -> SheetData:
    """Map a raw DataFrame (header=None) to RowData using row 1 as header.

    Steps:
    1. Require at least the header row
    2. Map header cells through header_map; unknown headers are ignored, but at
       least one identity column (name, document number, email) is required
    3. Remaining rows become RowData numbered as in the spreadsheet (first data row = 2)
    4. Rows whose cells are all blank are skipped
    """
    if header_map is None:
        header_map = build_header_map()
    if df.shape[0] < 1:
        raise SheetHeaderError(f"sheet '{sheet_name}' has no header row")

    header_cells = [_clean(c) for c in df.iloc[0].tolist()]
    positions: list[tuple[int, str]] = []
    columns: list[str] = []
    unknown: list[str] = []
    for idx, cell in enumerate(header_cells):
        if cell is None or str(cell).strip() == "":
            continue
        header = str(cell).strip()
        canonical = header_map.get(header)
        if canonical is None:
            unknown.append(header)
            continue
        positions.append((idx, canonical))
        if canonical not in columns:
            columns.append(canonical)
    if not any(f in columns for f in IDENTITY_FIELDS):
        raise SheetHeaderError(
            f"sheet '{sheet_name}' has no name, document number or email column"
        )

    rows: list[RowData] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None)):
        cells = [_clean(v) for v in raw]
        if all(c is None or c == "" for c in cells):
            continue
        values: dict[str, Any] = {}
        for idx, canonical in positions:
            value = cells[idx] if idx < len(cells) else None
            # with duplicated aliases the first non-blank cell wins
            if values.get(canonical) not in (None, ""):
                continue
            values[canonical] = value
        rows.append(RowData(row_number=offset + 2, values=values))

    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows, unknown_columns=unknown)
