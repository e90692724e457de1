from __future__ import annotations

import math
import numbers
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..models.validation import Severity, ValidationIssue
from .dates import normalize_date

"""Record validator for one raw import row.

The rule list is fixed and ordered. Every rule is evaluated for every row
(no early exit) so the operator sees all problems of a file in one run.
"""

__all__ = [
    "RULES",
    "Rule",
    "as_text",
    "is_blank",
    "parse_number",
    "validate_record",
]

# ASCII digits only; full-width digits would make a second key for the same person
DIGITS_RE = re.compile(r"[0-9]+")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def as_text(value: Any) -> str:
    """Cell value as stripped text; whole floats lose their `.0` (12345678.0 -> "12345678")."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    """Finite float for a numeric cell or numeric text, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Rule:
    """One check: `check(value)` returns a failure message or None.

    optional rules are only evaluated when the field holds a value.
    """
    field: str
    severity: Severity
    check: Callable[[Any], str | None]
    optional: bool = False


def _required(message: str) -> Callable[[Any], str | None]:
    def check(value: Any) -> str | None:
        return message if is_blank(value) else None
    return check


def _document_number(value: Any) -> str | None:
    if is_blank(value):
        return "document number is required"
    if not DIGITS_RE.fullmatch(as_text(value)):
        return "document number must contain only digits"
    return None


def _email(value: Any) -> str | None:
    if is_blank(value):
        return "email is required"
    if not EMAIL_RE.fullmatch(as_text(value)):
        return "email is not a valid address"
    return None


def _date(message: str) -> Callable[[Any], str | None]:
    def check(value: Any) -> str | None:
        return message if normalize_date(value) is None else None
    return check


def _number(value: Any) -> str | None:
    return None if parse_number(value) is not None else "salary must be a number"


RULES: tuple[Rule, ...] = (
    Rule("name", Severity.ERROR, _required("name is required")),
    Rule("document_number", Severity.ERROR, _document_number),
    Rule("email", Severity.ERROR, _email),
    Rule("position", Severity.WARNING, _required("position is missing")),
    Rule("company", Severity.WARNING, _required("company is missing")),
    Rule("start_date", Severity.ERROR, _date("start date is not a valid date"), optional=True),
    # an unreadable end date is stored as NULL instead of rejecting the row
    Rule("end_date", Severity.WARNING, _date("end date is not a valid date"), optional=True),
    Rule("salary", Severity.WARNING, _number, optional=True),
)


def validate_record(values: Mapping[str, Any], row_number: int) -> list[ValidationIssue]:
    """Apply RULES to one row; issues come back in rule order."""
    issues: list[ValidationIssue] = []
    for rule in RULES:
        value = values.get(rule.field)
        if rule.optional and is_blank(value):
            continue
        message = rule.check(value)
        if message is not None:
            issues.append(
                ValidationIssue(
                    row=row_number,
                    field=rule.field,
                    value=value,
                    message=message,
                    severity=rule.severity,
                )
            )
    return issues
