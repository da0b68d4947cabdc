"""Accumulated validation results for one artifact."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from shlibguard.errors import ValidationError, ValidationFailed


@dataclass
class ValidationReport:
    artifact: str
    failures: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def add(self, failure: ValidationError | None) -> None:
        if failure is not None:
            self.failures.append(failure)

    def extend(self, failures: Iterable[ValidationError | None]) -> None:
        for failure in failures:
            self.add(failure)

    def merge(self, other: ValidationReport) -> ValidationReport:
        return ValidationReport(self.artifact, [*self.failures, *other.failures])

    def by_type(self, error_type: type[ValidationError]) -> list[ValidationError]:
        return [f for f in self.failures if isinstance(f, error_type)]

    def raise_for_failures(self) -> None:
        if self.failures:
            raise ValidationFailed(self.artifact, self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "artifact": self.artifact,
            "ok": self.ok,
            "failures": [
                {
                    "error": type(f).__name__,
                    "check": f.check,
                    "message": f.message,
                    "expected": f.expected,
                    "actual": f.actual,
                }
                for f in self.failures
            ],
        }
