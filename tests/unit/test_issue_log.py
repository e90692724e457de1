from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path

from certimport.logging.issue_log import IssueLogBuffer, IssueRecord
from certimport.models.issue_record import FILE_LEVEL
from certimport.models.validation import Severity, ValidationIssue


def test_flush_writes_json_lines(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path / "logs")
    issue = ValidationIssue(row=3, field="email", value="bad-email", message="email is not a valid address",
                            severity=Severity.ERROR)
    buf.append(IssueRecord.from_issue("empleados.xlsx", issue))
    buf.append(IssueRecord.file_level("empleados.xlsx", "chunk 2/3 failed"))
    assert len(buf) == 2

    path = buf.flush()
    assert path is not None
    assert re.fullmatch(r"import-issues-\d{8}-\d{6}\.log", path.name)
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert lines[0]["row"] == 3
    assert lines[0]["severity"] == "error"
    assert lines[1]["row"] == -1
    assert lines[1]["field"] == FILE_LEVEL
    assert len(buf) == 0


def test_flush_empty_creates_nothing(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_default_directory(temp_workdir: Path):
    buf = IssueLogBuffer()
    buf.append(IssueRecord.file_level("x.xlsx", "unreadable"))
    path = buf.flush()
    assert path is not None
    assert path.resolve().parent == (temp_workdir / "logs").resolve()


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path)
    buf.append(IssueRecord.file_level("a.xlsx", "one"))
    first = buf.flush()
    buf.append(IssueRecord.file_level("a.xlsx", "two"))
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_values_are_made_json_safe():
    rec = IssueRecord.create("a.xlsx", 2, "start_date", date(2023, 3, 15), "error", "bad")
    assert rec.value == "2023-03-15"
    assert IssueRecord.create("a.xlsx", 2, "salary", float("nan"), "warning", "x").value == "nan"
    assert json.loads(IssueRecord.create("a.xlsx", 2, "name", "Ñandú", "error", "x").to_json_line())["value"] == "Ñandú"
    assert rec.timestamp.endswith("Z")
