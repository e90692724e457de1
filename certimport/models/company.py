from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Certificate branding per company (`company_certificate_configs` table).

Each config carries the letterhead data printed on a certificate: company
name, NIT, city, an optional base64 logo, the header color, an optional
footer and the people who sign.
"""

__all__ = [
    "COMPANY_CONFIG_COLUMNS",
    "CompanyConfig",
    "Signatory",
]

COMPANY_CONFIG_COLUMNS: dict[str, str] = {
    "company_name": "company_name",
    "nit": "nit",
    "city": "city",
    "logo": "logo_base64",
    "header_color": "header_color",
    "footer_text": "footer_text",
    "signatories": "signatories",
}


@dataclass(frozen=True)
class Signatory:
    name: str
    position: str
    signature: str | None = None  # base64 image

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "position": self.position}
        if self.signature:
            data["signature"] = self.signature
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Signatory:
        return cls(
            name=str(data.get("name") or ""),
            position=str(data.get("position") or ""),
            signature=data.get("signature") or None,
        )


@dataclass(frozen=True)
class CompanyConfig:
    company_name: str
    nit: str
    city: str
    header_color: str
    signatories: list[Signatory] = field(default_factory=list)
    logo: str | None = None
    footer_text: str | None = None
    id: str | None = None

    def to_db_row(self) -> tuple[Any, ...]:
        """Values in COMPANY_CONFIG_COLUMNS order; empty logo/footer are stored as NULL.

        signatories is returned as a list of dicts, the caller adapts it to jsonb.
        """
        return (
            self.company_name,
            self.nit,
            self.city,
            self.logo or None,
            self.header_color,
            self.footer_text or None,
            [s.to_json() for s in self.signatories],
        )

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> CompanyConfig:
        raw_signatories = row.get("signatories")
        signatories = (
            [Signatory.from_json(s) for s in raw_signatories if isinstance(s, dict)]
            if isinstance(raw_signatories, list)
            else []
        )
        record_id = row.get("id")
        return cls(
            id=str(record_id) if record_id is not None else None,
            company_name=row.get("company_name") or "",
            nit=row.get("nit") or "",
            city=row.get("city") or "",
            logo=row.get("logo_base64") or None,
            header_color=row.get("header_color") or "",
            footer_text=row.get("footer_text") or None,
            signatories=signatories,
        )
