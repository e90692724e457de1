from __future__ import annotations

from typing import Any

from psycopg2.extras import Json

from ..models.history import HISTORY_COLUMNS, CertificateRecord
from .employees import run_statement

"""Certificate history repository (`certificaciones_historico`)."""

__all__ = [
    "CertificateHistoryRepository",
]


class CertificateHistoryRepository:
    def __init__(self, cursor: Any, table: str = "certificaciones_historico") -> None:
        self.cursor = cursor
        self.table = table

    def _execute(self, sql: str, params: tuple[Any, ...] | None = None) -> None:
        run_statement(self.cursor, self.table, sql, params)

    def record(self, entry: CertificateRecord) -> None:
        cols = ",".join(f'"{c}"' for c in HISTORY_COLUMNS.values())
        placeholders = ",".join(["%s"] * len(HISTORY_COLUMNS))
        values = (
            entry.employee_id,
            entry.employee_name,
            entry.document_number,
            entry.certificate_type,
            entry.generated_at,
            entry.generated_by,
            Json(entry.details),
        )
        self._execute(f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders})", values)

    def list_all(self, search: str | None = None) -> list[CertificateRecord]:
        """History newest first, optionally filtered like the admin search box."""
        cols = ",".join(f'"{c}"' for c in ("id", *HISTORY_COLUMNS.values()))
        self._execute(f'SELECT {cols} FROM {self.table} ORDER BY "fecha_generacion" DESC')
        records = [self._to_record(r) for r in self.cursor.fetchall()]
        if search:
            records = [r for r in records if r.matches(search)]
        return records

    @staticmethod
    def _to_record(row: tuple[Any, ...]) -> CertificateRecord:
        record_id, employee_id, name, document, cert_type, generated_at, generated_by, details = row
        return CertificateRecord(
            id=str(record_id) if record_id is not None else None,
            employee_id=str(employee_id) if employee_id is not None else "",
            employee_name=name or "",
            document_number=str(document or ""),
            certificate_type=cert_type or "",
            generated_at=generated_at,
            generated_by=generated_by,
            details=details if isinstance(details, dict) else {},
        )
