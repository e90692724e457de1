from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

"""Certificate history model (`certificaciones_historico` table)."""

__all__ = [
    "CertificateRecord",
    "HISTORY_COLUMNS",
]

HISTORY_COLUMNS: dict[str, str] = {
    "employee_id": "empleado_id",
    "employee_name": "nombre_empleado",
    "document_number": "numero_documento",
    "certificate_type": "tipo_certificacion",
    "generated_at": "fecha_generacion",
    "generated_by": "generado_por",
    "details": "detalles",
}


@dataclass(frozen=True)
class CertificateRecord:
    """One issued certificate as shown in the admin history view."""
    employee_id: str
    employee_name: str
    document_number: str
    certificate_type: str  # empleado-activo | empleado-retirado | historial-completo
    generated_at: datetime
    generated_by: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    id: str | None = None

    @property
    def verification_code(self) -> str | None:
        code = self.details.get("codigo_verificacion")
        return str(code) if code else None

    def matches(self, term: str) -> bool:
        """Case-insensitive search on name, type and verification code; document number is matched as typed."""
        needle = term.strip().lower()
        if not needle:
            return True
        code = self.verification_code
        return (
            needle in self.employee_name.lower()
            or term.strip() in self.document_number
            or needle in self.certificate_type.lower()
            or (code is not None and needle in code.lower())
        )
