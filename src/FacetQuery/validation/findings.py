"""Validator findings and their fixed severity policy."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dc_field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Sequence


class FindingKind(str, Enum):
    REQUIRED = "required"
    FORMAT = "format"
    CONSTRAINT = "constraint"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# Not configurable: only errors block a query.
SEVERITY_BY_KIND: Mapping[FindingKind, Severity] = MappingProxyType(
    {
        FindingKind.REQUIRED: Severity.ERROR,
        FindingKind.FORMAT: Severity.ERROR,
        FindingKind.CONSTRAINT: Severity.WARNING,
        FindingKind.CONFLICT: Severity.WARNING,
        FindingKind.DUPLICATE: Severity.INFO,
    }
)


@dataclass(frozen=True, slots=True)
class ValidationFinding:
    """One diagnostic about a query.

    Attributes:
        field: What the finding is about: ``query``, ``criteria-<id>``, or
            comma-joined field ids for cross-criterion findings.
        message: Human-readable message.
        kind: Finding kind.
        severity: Derived from ``kind``.
    """

    field: str
    message: str
    kind: FindingKind
    severity: Severity = dc_field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "severity", SEVERITY_BY_KIND[self.kind])

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Findings for a query plus the derived validity flag."""

    findings: Sequence[ValidationFinding]
    is_valid: bool

    @property
    def errors(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    @property
    def infos(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.INFO]


def is_query_valid(findings: Sequence[ValidationFinding]) -> bool:
    """Return True when no finding has error severity."""
    return not any(f.is_error for f in findings)
