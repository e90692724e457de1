from __future__ import annotations

from typing import Any

from psycopg2.extras import Json

from ..models.company import COMPANY_CONFIG_COLUMNS, CompanyConfig
from .employees import RepositoryError, run_statement

"""Company certificate config repository (`company_certificate_configs`)."""

__all__ = [
    "CompanyConfigRepository",
]


class CompanyConfigRepository:
    def __init__(self, cursor: Any, table: str = "company_certificate_configs") -> None:
        self.cursor = cursor
        self.table = table

    def _execute(self, sql: str, params: tuple[Any, ...] | None = None) -> None:
        run_statement(self.cursor, self.table, sql, params)

    @staticmethod
    def _returning() -> str:
        return ",".join(f'"{c}"' for c in ("id", *COMPANY_CONFIG_COLUMNS.values()))

    @staticmethod
    def _params(config: CompanyConfig) -> tuple[Any, ...]:
        *values, signatories = config.to_db_row()
        return (*values, Json(signatories))

    def _to_config(self, row: tuple[Any, ...] | None) -> CompanyConfig | None:
        if row is None:
            return None
        return CompanyConfig.from_db_row(dict(zip(("id", *COMPANY_CONFIG_COLUMNS.values()), row)))

    def list_all(self) -> list[CompanyConfig]:
        """All configs, most recently created first."""
        self._execute(f'SELECT {self._returning()} FROM {self.table} ORDER BY "created_at" DESC')
        return [c for c in (self._to_config(r) for r in self.cursor.fetchall()) if c is not None]

    def get(self, config_id: str) -> CompanyConfig | None:
        self._execute(f'SELECT {self._returning()} FROM {self.table} WHERE "id" = %s', (config_id,))
        return self._to_config(self.cursor.fetchone())

    def find_by_company(self, company_name: str) -> CompanyConfig | None:
        """Case-insensitive lookup by company name."""
        target = company_name.strip().lower()
        return next((c for c in self.list_all() if c.company_name.strip().lower() == target), None)

    def create(self, config: CompanyConfig) -> CompanyConfig:
        """Insert and return the stored row (with its generated id)."""
        cols = ",".join(f'"{c}"' for c in COMPANY_CONFIG_COLUMNS.values())
        placeholders = ",".join(["%s"] * len(COMPANY_CONFIG_COLUMNS))
        self._execute(
            f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders}) RETURNING {self._returning()}",
            self._params(config),
        )
        stored = self._to_config(self.cursor.fetchone())
        if stored is None:
            raise RepositoryError(f"table={self.table} insert returned no row")
        return stored

    def update(self, config_id: str, config: CompanyConfig) -> CompanyConfig | None:
        """Overwrite the config stored under config_id; None when none exists."""
        assignments = ",".join(f'"{c}"=%s' for c in COMPANY_CONFIG_COLUMNS.values())
        self._execute(
            f'UPDATE {self.table} SET {assignments},"updated_at"=now() WHERE "id" = %s '
            f"RETURNING {self._returning()}",
            self._params(config) + (config_id,),
        )
        return self._to_config(self.cursor.fetchone())

    def delete(self, config_id: str) -> bool:
        self._execute(f'DELETE FROM {self.table} WHERE "id" = %s', (config_id,))
        return self.cursor.rowcount > 0
