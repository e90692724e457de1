"""Domain models for the employee spreadsheet import."""

from .company import CompanyConfig, Signatory
from .employee import EMPLOYEE_COLUMNS, IMPORT_FIELDS, Employee
from .history import CertificateRecord
from .processing_result import ChunkStatsAccumulator, CommitResult, ImportResult, ImportStatus
from .row_data import RowData
from .validation import InvalidRow, Severity, ValidationIssue, ValidationReport

__all__ = [
    # Employee records
    "Employee",
    "EMPLOYEE_COLUMNS",
    "IMPORT_FIELDS",
    "CertificateRecord",
    "CompanyConfig",
    "Signatory",
    # Import pipeline
    "RowData",
    "Severity",
    "ValidationIssue",
    "InvalidRow",
    "ValidationReport",
    # Results
    "ImportStatus",
    "ImportResult",
    "CommitResult",
    "ChunkStatsAccumulator",
]
