from __future__ import annotations

from ..models.processing_result import ImportResult

"""SUMMARY line rendering.

Format:
SUMMARY file={name} status={status} rows={total} valid={valid} invalid={invalid}
warnings={warnings} committed={committed} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for one import run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from certimport.models.processing_result import ImportStatus
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     file_name="empleados.xlsx", status=ImportStatus.SUCCESS, total_rows=10,
        ...     valid_rows=10, invalid_rows=0, warning_count=3, committed_rows=10,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0, message="ok",
        ... )
        >>> render_summary_line(result)
        'SUMMARY file=empleados.xlsx status=success rows=10 valid=10 invalid=0 warnings=3 committed=10 elapsed_sec=2'
    """
    # spaces would break the key=value format
    file_name = result.file_name.replace(" ", "_")
    return (
        f"SUMMARY file={file_name} "
        f"status={result.status.value} "
        f"rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"invalid={result.invalid_rows} "
        f"warnings={result.warning_count} "
        f"committed={result.committed_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )
