from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from ..config.loader import AppConfig, InvalidRowPolicy
from ..excel.reader import (
    SheetHeaderError,
    WorkbookReadError,
    build_header_map,
    normalize_sheet,
    read_first_sheet,
)
from ..logging.issue_log import IssueLogBuffer, IssueRecord
from ..models.processing_result import CommitResult, ImportResult, ImportStatus
from ..models.row_data import RowData
from ..models.validation import InvalidRow, ValidationIssue, ValidationReport
from .committer import CommitError, commit_employees
from .validator import validate_record

logger = logging.getLogger(__name__)

"""Import orchestration.

validate_rows() is the batch validation step: every row is validated, rows
are split into valid / invalid and issues are aggregated. run_import() is
the whole pipeline for one uploaded workbook:

1. read the first sheet (unreadable workbook = fatal, nothing validated)
2. validate every row
3. apply the invalid-row policy (ABORT commits nothing when any row is invalid)
4. commit the valid rows chunk by chunk
"""


def validate_rows(rows: Sequence[RowData]) -> ValidationReport:
    """Validate all rows in one pass; no row's outcome affects another's."""
    valid: list[RowData] = []
    invalid: list[InvalidRow] = []
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    all_issues: list[ValidationIssue] = []

    for row in rows:
        issues = validate_record(row.values, row.row_number)
        all_issues.extend(issues)
        row_errors = [i for i in issues if i.is_error]
        errors.extend(row_errors)
        warnings.extend(i for i in issues if not i.is_error)
        if row_errors:
            invalid.append(InvalidRow(row=row, issues=issues))
        else:
            valid.append(row)

    return ValidationReport(
        valid=valid,
        invalid=invalid,
        errors=errors,
        warnings=warnings,
        issues=all_issues,
        total_rows=len(rows),
    )


def _log_issues(file_name: str, report: ValidationReport, issue_log: IssueLogBuffer) -> None:
    for issue in report.issues:
        issue_log.append(IssueRecord.from_issue(file_name, issue))
        if issue.is_error:
            logger.warning(
                "row=%d field=%s value=%r: %s", issue.row, issue.field, issue.value, issue.message
            )
        else:
            logger.debug(
                "row=%d field=%s value=%r: %s", issue.row, issue.field, issue.value, issue.message
            )


def _flush(issue_log: IssueLogBuffer) -> None:
    try:
        path = issue_log.flush()
    except OSError as e:
        logger.warning("could not write issue log: %s", e)
        return
    if path is not None:
        logger.info("issue log written to %s", path)


def run_import(
    source: Path,
    cursor: Any,
    config: AppConfig,
    *,
    policy: InvalidRowPolicy | None = None,
    dry_run: bool = False,
    issue_log: IssueLogBuffer | None = None,
    today: date | None = None,
) -> ImportResult:
    """Run the import pipeline for one workbook.

    Args:
        source: uploaded .xlsx/.xls file
        cursor: psycopg2 cursor; may be None only with dry_run
        config: application configuration (table, chunk size, defaults, aliases)
        policy: overrides config.on_invalid_rows
        dry_run: validate and report, write nothing
        issue_log: buffer for the JSON Lines issue log (a new one by default)
        today: date used for an absent start date (defaults to today)

    Returns:
        ImportResult; fatal problems are reported through status FAILED, not raised
    """
    if cursor is None and not dry_run:
        raise ValueError("a database cursor is required unless dry_run is set")

    start_time = datetime.now(UTC)
    policy = policy or config.on_invalid_rows
    issue_log = issue_log if issue_log is not None else IssueLogBuffer()
    file_name = source.name

    def finish(
        status: ImportStatus,
        message: str,
        report: ValidationReport | None = None,
        commit: CommitResult | None = None,
        committed_rows: int = 0,
    ) -> ImportResult:
        _flush(issue_log)
        end_time = datetime.now(UTC)
        return ImportResult(
            file_name=file_name,
            status=status,
            total_rows=report.total_rows if report else 0,
            valid_rows=report.valid_count if report else 0,
            invalid_rows=report.invalid_count if report else 0,
            warning_count=len(report.warnings) if report else 0,
            committed_rows=committed_rows,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            message=message,
            report=report,
            commit=commit,
        )

    try:
        sheet_name, df = read_first_sheet(source)
        sheet = normalize_sheet(df, sheet_name, build_header_map(config.column_aliases))
    except (WorkbookReadError, SheetHeaderError) as e:
        logger.error("file=%s %s", file_name, e)
        issue_log.append(IssueRecord.file_level(file_name, str(e)))
        return finish(ImportStatus.FAILED, f"could not read {file_name}: {e}")

    logger.info(
        "file=%s sheet=%s rows=%d columns=%s", file_name, sheet_name, len(sheet.rows), sheet.columns
    )
    if sheet.unknown_columns:
        logger.debug("file=%s ignored columns=%s", file_name, sheet.unknown_columns)

    report = validate_rows(sheet.rows)
    _log_issues(file_name, report, issue_log)
    logger.info(
        "file=%s validated rows=%d valid=%d invalid=%d warnings=%d",
        file_name, report.total_rows, report.valid_count, report.invalid_count, len(report.warnings),
    )

    if report.total_rows == 0:
        return finish(ImportStatus.FAILED, f"no employee rows found in {file_name}", report)

    if report.has_errors and policy is InvalidRowPolicy.ABORT:
        return finish(
            ImportStatus.REFUSED,
            f"{report.invalid_count} row(s) with errors, nothing was imported",
            report,
        )
    if not report.valid:
        return finish(ImportStatus.REFUSED, "no valid rows to import", report)

    if dry_run:
        return finish(
            ImportStatus.VALIDATED,
            f"{report.valid_count} row(s) ready to import (dry run, nothing written)",
            report,
        )

    try:
        commit = commit_employees(
            cursor,
            report.valid,
            table=config.storage.employees_table,
            chunk_size=config.storage.chunk_size,
            defaults=config.defaults,
            today=today,
        )
    except CommitError as e:
        issue_log.append(IssueRecord.file_level(file_name, str(e)))
        return finish(
            ImportStatus.FAILED,
            f"error while saving employees: {e} ({e.committed_rows} row(s) saved before the failure)",
            report,
            committed_rows=e.committed_rows,
        )

    message = f"{commit.committed_rows} employee(s) imported"
    if report.invalid:
        message += f", {report.invalid_count} invalid row(s) skipped"
    return finish(
        ImportStatus.SUCCESS, message, report, commit=commit, committed_rows=commit.committed_rows
    )
