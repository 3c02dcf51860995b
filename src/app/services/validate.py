"""
Validation Service: sanitize + validate + collect errors for form input.

Per field, in order:
1. normalize (multi-value fields -> list)
2. trim whitespace
3. rules in declaration order (first failure per field is recorded)
4. escape for safe output

Rules:
- rules are declared once per resource (FieldRule list) and shared by
  the create and update handlers
- running the pipeline never raises; errors are data (ValidationResult)
- "optional": empty value -> None, remaining rules skipped
- "iso_date": value converted to datetime.date
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

# =============================================================================
# Rule Names
# =============================================================================

REQUIRED = "required"          # non-empty after trim
OPTIONAL = "optional"          # empty -> None, skip remaining rules
ALPHANUMERIC = "alphanumeric"  # letters and digits only
ISO_DATE = "iso_date"          # ISO-8601 date, converted to date
ONE_OF = "one_of"              # value in choices
MANY = "many"                  # multi-value field, normalized to a list

KNOWN_RULES = frozenset([REQUIRED, OPTIONAL, ALPHANUMERIC, ISO_DATE, ONE_OF, MANY])

# validator.js escape() entity set
_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})

_ISO_DATE_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$"
)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class FieldRule:
    """One validation rule for one form field."""
    field: str
    rule: str
    message: str = "Invalid value"
    choices: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.rule not in KNOWN_RULES:
            raise ValueError(f"Unknown validation rule: {self.rule}")


@dataclass(frozen=True)
class FieldError:
    """A labeled validation failure."""
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message, "value": self.value}


@dataclass
class ValidationResult:
    """
    Pipeline output.

    values: sanitized value per declared field
    errors: failures in declaration order
    """
    values: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def errors_for(self, field_name: str) -> list[str]:
        return [e.message for e in self.errors if e.field == field_name]

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.errors]


# =============================================================================
# Sanitizers
# =============================================================================

def escape_html(value: str) -> str:
    """Replace & < > " ' / \\ ` with HTML entities."""
    return value.translate(_ESCAPE_TABLE)


def normalize_multi(value: Any) -> list[Any]:
    """
    Multi-value field -> list.

    None -> [], scalar -> [scalar], list/tuple -> list (same count).
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_iso_date(value: str) -> date | None:
    """ISO-8601 date (optionally with time) -> date; None if not parseable."""
    if not _ISO_DATE_PATTERN.match(value):
        return None
    text = value.replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None


def _raw_value(form: Mapping[str, Any], name: str, many: bool) -> Any:
    if many and hasattr(form, "getlist"):
        return form.getlist(name)
    return form.get(name)


def _sanitize(value: Any) -> Any:
    if isinstance(value, str):
        return escape_html(value)
    return value


# =============================================================================
# Pipeline
# =============================================================================

def _group_rules(rules: Sequence[FieldRule]) -> dict[str, list[FieldRule]]:
    grouped: dict[str, list[FieldRule]] = {}
    for rule in rules:
        grouped.setdefault(rule.field, []).append(rule)
    return grouped


def _check(rule: FieldRule, value: str) -> tuple[bool, Any]:
    """
    Apply one rule to a trimmed string.

    Returns:
        (passed, converted value)
    """
    if rule.rule == REQUIRED:
        return bool(value), value
    if rule.rule == ALPHANUMERIC:
        return value.isalnum(), value
    if rule.rule == ONE_OF:
        return value in rule.choices, value
    if rule.rule == ISO_DATE:
        parsed = parse_iso_date(value)
        return parsed is not None, parsed
    return True, value


def _run_field(
    name: str, raw: Any, rules: list[FieldRule]
) -> tuple[Any, FieldError | None]:
    text = "" if raw is None else str(raw).strip()

    if any(r.rule == OPTIONAL for r in rules) and not text:
        return None, None

    value: Any = text
    for rule in rules:
        if rule.rule in (OPTIONAL, MANY):
            continue
        passed, converted = _check(rule, text)
        if not passed:
            return _sanitize(text), FieldError(name, rule.message, _sanitize(text))
        value = converted

    return _sanitize(value), None


def run_pipeline(form: Mapping[str, Any], rules: Sequence[FieldRule]) -> ValidationResult:
    """
    Run the validation pipeline over submitted form data.

    Args:
        form: submitted values (plain mapping or multi-dict with getlist())
        rules: declared rules for the resource

    Returns:
        ValidationResult (never raises for bad input)
    """
    result = ValidationResult()

    for name, field_rules in _group_rules(rules).items():
        many = any(r.rule == MANY for r in field_rules)
        raw = _raw_value(form, name, many)

        if many:
            values = []
            for item in normalize_multi(raw):
                value, error = _run_field(name, item, field_rules)
                if error:
                    result.errors.append(error)
                values.append(value)
            result.values[name] = values
            continue

        value, error = _run_field(name, raw, field_rules)
        if error:
            result.errors.append(error)
        result.values[name] = value

    return result

