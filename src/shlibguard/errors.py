"""Exception taxonomy.

Two families matter to callers:

* ``EnvironmentFailure`` — the artifact could not be read or parsed at all.
  These abort validation of that artifact immediately.
* ``ValidationError`` — the artifact was read fine but was built wrongly.
  These are collected into a ``ValidationReport`` rather than raised one by one.
"""

from __future__ import annotations

from typing import Any, Sequence


class ShlibGuardError(Exception):
    """Base class for every error raised by shlibguard."""


# -- Environment / parse failures --


class EnvironmentFailure(ShlibGuardError):
    """The input could not be read or understood; not recoverable by retrying."""


class UnreadableFileError(EnvironmentFailure):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read {path}: {reason}")


class MalformedObjectError(EnvironmentFailure):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path} is not a valid object file: {reason}")


class InvalidConfigError(EnvironmentFailure):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid configuration in {path}: {reason}")


class TruncatedRecordError(MalformedObjectError):
    """A note header or its padded payload runs past the end of the section."""

    def __init__(self, field: str, offset: int, needed: int, available: int, path: str = "<bytes>") -> None:
        self.field = field
        self.offset = offset
        self.needed = needed
        self.available = available
        super().__init__(
            path,
            f"truncated note {field} at offset {offset}: need {needed} bytes, {available} available",
        )


class SymbolTableUnavailableError(ShlibGuardError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} has no symbol table")


class DependencyCycleError(ShlibGuardError):
    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__("dependency cycle: " + " -> ".join(self.cycle))


class BuildToolError(ShlibGuardError):
    def __init__(self, args: Sequence[str], returncode: int, output: str) -> None:
        self.command = tuple(args)
        self.returncode = returncode
        self.output = output
        super().__init__(f"executing {' '.join(self.command)} failed (exit {returncode}):\n{output}")


# -- Validation failures (accumulated, never short-circuit) --


class ValidationError(ShlibGuardError):
    """One attributable defect found while validating an artifact."""

    def __init__(
        self,
        artifact: str,
        check: str,
        message: str,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        self.artifact = artifact
        self.check = check
        self.message = message
        self.expected = expected
        self.actual = actual
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"{self.artifact}: [{self.check}] {self.message}"
        if self.expected is not None or self.actual is not None:
            text += f" (expected {self.expected!r}, got {self.actual!r})"
        return text


class MissingNoteError(ValidationError):
    pass


class DuplicateNoteError(ValidationError):
    pass


class ContentMismatchError(ValidationError):
    pass


class PlacementError(ValidationError):
    pass


class SymbolContractError(ValidationError):
    pass


class LinkageMissingError(ValidationError):
    pass


class StalenessError(ValidationError):
    pass


class MissingArtifactError(ValidationError):
    pass


class ValidationFailed(ShlibGuardError):
    """Raised by ``ValidationReport.raise_for_failures`` with every defect attached."""

    def __init__(self, artifact: str, failures: Sequence[ValidationError]) -> None:
        self.artifact = artifact
        self.failures = tuple(failures)
        lines = [f"{artifact}: {len(self.failures)} validation failure(s)"]
        lines.extend(f"  - {f}" for f in self.failures)
        super().__init__("\n".join(lines))
