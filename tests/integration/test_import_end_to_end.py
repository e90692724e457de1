from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pandas as pd

import certimport.cli.main as cli
from certimport.config.loader import InvalidRowPolicy, load_config
from certimport.db.employees import EmployeeRepository
from certimport.logging.issue_log import IssueLogBuffer
from certimport.models.processing_result import ImportStatus
from certimport.services.orchestrator import run_import

"""End-to-end runs on real workbooks: read -> validate -> commit -> read back."""


def _write(path: Path, rows: list[list[object]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Empleados", header=False, index=False)
    return path


def test_ana_ruiz_scenario(temp_workdir: Path, write_config: Path, fake_cursor):
    src = _write(
        temp_workdir / "data" / "nuevos.xlsx",
        [
            ["Nombre", "Número Documento", "Correo", "Cargo", "Empresa", "Fecha Ingreso"],
            ["Ana Ruiz", "12345678", "ana@x.com", "", "", 45000],
        ],
    )
    log = IssueLogBuffer()
    result = run_import(src, fake_cursor, load_config(write_config), issue_log=log, today=date(2024, 5, 1))

    assert result.status is ImportStatus.SUCCESS
    assert result.report is not None
    assert result.report.errors == []
    assert [w.field for w in result.report.warnings] == ["position", "company"]
    assert result.committed_rows == 1

    stored = EmployeeRepository(fake_cursor).find_by_document("12345678")
    assert stored is not None
    assert stored.start_date == "2023-03-15"
    assert stored.status == "Activo"
    assert stored.document_type == "CC"
    assert stored.position == "" and stored.company == ""
    assert stored.end_date is None and stored.salary is None

    warnings = [json.loads(line) for line in log.file_path.read_text(encoding="utf-8").splitlines()]
    assert [(w["field"], w["severity"]) for w in warnings] == [("position", "warning"), ("company", "warning")]


def test_three_error_row_is_excluded(temp_workdir: Path, write_config: Path, fake_cursor):
    src = _write(
        temp_workdir / "data" / "mixto.xlsx",
        [
            ["Nombre", "Número Documento", "Correo", "Cargo", "Empresa"],
            ["", "abc123", "bad-email", "X", "Y"],
            ["Ana Ruiz", "12345678", "ana@x.com", "Analista", "Vity"],
        ],
    )
    cfg = load_config(write_config)
    refused = run_import(src, fake_cursor, cfg)
    assert refused.status is ImportStatus.REFUSED
    assert refused.report is not None
    assert [e.field for e in refused.report.errors] == ["name", "document_number", "email"]
    assert fake_cursor.rows == {}

    result = run_import(src, fake_cursor, cfg, policy=InvalidRowPolicy.SKIP_INVALID)
    assert result.status is ImportStatus.SUCCESS
    assert list(fake_cursor.rows) == ["12345678"]


def test_reimport_updates_in_place(temp_workdir: Path, write_config: Path, cli_db):
    header = ["Nombre", "Número Documento", "Correo", "Cargo", "Empresa", "Estado", "Fecha Retiro"]
    first = _write(
        temp_workdir / "data" / "v1.xlsx",
        [header, ["Ana Ruiz", 12345678, "ana@x.com", "Analista", "Vity", None, None]],
    )
    second = _write(
        temp_workdir / "data" / "v2.xlsx",
        [header, ["Ana Ruiz", 12345678, "ana.ruiz@x.com", "Líder", "Vity", "Retirado", "30/06/2024"]],
    )
    assert cli.main(["import", str(first)]) == cli.EXIT_SUCCESS
    assert cli.main(["import", str(second)]) == cli.EXIT_SUCCESS

    assert list(cli_db.rows) == ["12345678"]
    stored = EmployeeRepository(cli_db).find_by_document("12345678")
    assert stored is not None
    assert stored.email == "ana.ruiz@x.com"
    assert stored.position == "Líder"
    assert stored.status == "Retirado"
    assert not stored.is_active
    assert stored.end_date == "2024-06-30"


def test_export_then_import_round_trip(temp_workdir: Path, write_config: Path, cli_db):
    src = _write(
        temp_workdir / "data" / "base.xlsx",
        [
            ["Nombre", "Cedula", "Email", "Cargo", "Empresa", "Sueldo"],
            ["Ana Ruiz", 12345678, "ana@x.com", "Analista", "Vity", 2500000],
            ["Luis Gómez", 87654321, "luis@x.com", "Auxiliar", "Vity", None],
        ],
    )
    assert cli.main(["import", str(src)]) == cli.EXIT_SUCCESS
    exported = temp_workdir / "export.xlsx"
    assert cli.main(["export", "--output", str(exported)]) == cli.EXIT_SUCCESS

    before = dict(cli_db.rows)
    upserts_before = cli_db.upserts
    assert cli.main(["import", str(exported)]) == cli.EXIT_SUCCESS
    assert cli_db.upserts > upserts_before
    assert sorted(cli_db.rows) == sorted(before)
    assert cli_db.rows["12345678"]["sueldo"] == 2500000.0
    assert cli_db.rows["87654321"]["sueldo"] is None
