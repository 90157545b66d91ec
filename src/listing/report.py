"""Validation report: hard errors and warnings for a listing batch."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd

# Group label for reserves that are no longer grouped, e.g. a decoded submission
SUBMISSION_SCOPE = "(submission)"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    """A single finding, addressable by group, asset symbol and field.

    Attributes:
        severity: ERROR blocks submission, WARNING does not.
        group: Market group name (e.g. "USDC/USDT").
        asset: Asset symbol of the offending listing, "" for group-level issues.
        field: Engine field name, dotted for nested fields
            (e.g. "rateStrategyParams.optimalUsageRatio").
        message: Human-readable explanation.
        value: The offending value, if any.
        expected: The constraint that was violated.
        related_fields: Other fields taking part in the violation.
        related_groups: Other groups taking part in the violation.
    """

    severity: Severity
    group: str
    asset: str
    field: str
    message: str
    value: Any = None
    expected: str = ""
    related_fields: tuple[str, ...] = ()
    related_groups: tuple[str, ...] = ()

    @property
    def tag(self) -> tuple[str, str, str]:
        return (self.group, self.asset, self.field)

    def format(self) -> str:
        label = "ERROR" if self.severity is Severity.ERROR else "WARN "
        location = f"[{self.group}] {self.asset or '-'}.{self.field}"
        line = f"{label} {location}: {self.message}"
        if self.expected and self.value is not None:
            line += f" (got {self.value!r}, expected {self.expected})"
        elif self.expected:
            line += f" (expected {self.expected})"
        return line


@dataclass(frozen=True)
class Report:
    """Outcome of validating a batch; complete, never truncated at the first error."""

    errors: tuple[Issue, ...] = ()
    warnings: tuple[Issue, ...] = ()

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> Report:
        """Split issues by severity, preserving discovery order."""
        return cls(
            errors=tuple(i for i in issues if i.severity is Severity.ERROR),
            warnings=tuple(i for i in issues if i.severity is Severity.WARNING),
        )

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> tuple[Issue, ...]:
        return self.errors + self.warnings

    def find(self, group: str, asset: str, field: str) -> list[Issue]:
        return [i for i in self.issues if i.tag == (group, asset, field)]

    def merge(self, other: Report) -> Report:
        return Report(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def to_frame(self) -> pd.DataFrame:
        """Tabular view: one row per issue, errors first."""
        columns = ["severity", "group", "asset", "field", "value", "expected", "message"]
        rows = [
            {
                "severity": i.severity.value,
                "group": i.group,
                "asset": i.asset,
                "field": i.field,
                "value": i.value,
                "expected": i.expected,
                "message": i.message,
            }
            for i in self.issues
        ]
        return pd.DataFrame(rows, columns=columns)

    def render(self) -> str:
        lines = [issue.format() for issue in self.issues]
        lines.append(
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"
        )
        return "\n".join(lines)


@dataclass
class IssueCollector:
    """Accumulates issues in discovery order while validating."""

    issues: list[Issue] = field(default_factory=list)

    def error(self, group: str, asset: str, field_name: str, message: str, **kwargs: Any) -> None:
        self.issues.append(Issue(Severity.ERROR, group, asset, field_name, message, **kwargs))

    def warning(self, group: str, asset: str, field_name: str, message: str, **kwargs: Any) -> None:
        self.issues.append(Issue(Severity.WARNING, group, asset, field_name, message, **kwargs))

    @property
    def has_errors(self) -> bool:
        return any(i.severity is Severity.ERROR for i in self.issues)

    def report(self) -> Report:
        return Report.from_issues(self.issues)
