from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

import certimport.cli.main as cli

"""Issue log contract: JSON Lines under logs/, fixed key set, one object per line."""

EXPECTED_KEYS = {"timestamp", "file", "row", "field", "value", "severity", "message"}


def test_issue_log_keys(temp_workdir: Path, write_config: Path, cli_db):
    src = temp_workdir / "data" / "empleados.xlsx"
    rows = [
        ["Nombre", "Número Documento", "Correo", "Fecha Ingreso", "Sueldo"],
        ["", "abc123", "bad-email", "algún día", "mucho"],
    ]
    with pd.ExcelWriter(src, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Hoja1", header=False, index=False)

    assert cli.main(["import", str(src)]) == 2

    logs = list((temp_workdir / "logs").glob("import-issues-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert records
    for rec in records:
        assert set(rec) == EXPECTED_KEYS
        assert rec["severity"] in ("error", "warning")
        assert rec["row"] == 2
        assert rec["file"] == "empleados.xlsx"
        assert rec["timestamp"].endswith("Z")

    by_field = {r["field"]: r for r in records}
    assert set(by_field) == {"name", "document_number", "email", "position", "company", "start_date", "salary"}
    assert by_field["start_date"]["severity"] == "error"
    assert by_field["start_date"]["value"] == "algún día"
    assert by_field["salary"]["severity"] == "warning"


def test_file_level_record_for_unreadable_workbook(temp_workdir: Path, write_config: Path, cli_db):
    src = temp_workdir / "data" / "empleados.xlsx"
    src.write_bytes(b"PK\x03\x04 not really a zip")
    assert cli.main(["import", str(src)]) == 1

    logs = list((temp_workdir / "logs").glob("import-issues-*.log"))
    assert len(logs) == 1
    (rec,) = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert set(rec) == EXPECTED_KEYS
    assert rec["row"] == -1
    assert rec["field"] == "<FILE_LEVEL>"
    assert rec["value"] is None
    assert rec["severity"] == "error"
