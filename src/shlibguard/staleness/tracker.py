"""Predict which artifacts a build tool must rebuild, and verify that it did.

An artifact is stale when it does not exist, or when anything it is derived
from, directly or transitively, is missing or has a strictly newer mtime.
"""

from __future__ import annotations

from typing import Iterable

from shlibguard.errors import StalenessError
from shlibguard.staleness.graph import DependencyGraph
from shlibguard.staleness.timestamps import MtimeSource
from shlibguard.utils.logging import get_logger
from shlibguard.validation.report import ValidationReport

log = get_logger(__name__)


def is_stale(graph: DependencyGraph, artifact: str, mtimes: MtimeSource) -> bool:
    own = mtimes(artifact)
    if own is None:
        return True
    for dep in graph.transitive_dependencies(artifact):
        dep_time = mtimes(dep)
        if dep_time is None or dep_time > own:
            return True
    return False


def predict_stale(graph: DependencyGraph, mtimes: MtimeSource) -> frozenset[str]:
    """Derived artifacts that have to be rebuilt. Source files are never stale."""
    stale = frozenset(a for a in graph.derived if is_stale(graph, a, mtimes))
    log.debug("staleness_predicted", stale=sorted(stale))
    return stale


def check_rebuilt(
    artifact: str, threshold: float, mtimes: MtimeSource, reason: str = ""
) -> StalenessError | None:
    mtime = mtimes(artifact)
    label = reason or "artifact"
    if mtime is None:
        return StalenessError(artifact, "rebuilt", f"{label} is missing ({artifact})")
    if not mtime > threshold:
        return StalenessError(
            artifact,
            "rebuilt",
            f"{label} was not rebuilt ({artifact})",
            expected=f"> {threshold}",
            actual=mtime,
        )
    return None


def check_not_rebuilt(
    artifact: str, threshold: float, mtimes: MtimeSource, reason: str = ""
) -> StalenessError | None:
    mtime = mtimes(artifact)
    label = reason or "artifact"
    if mtime is None:
        return StalenessError(artifact, "not-rebuilt", f"{label} is missing ({artifact})")
    if mtime > threshold:
        return StalenessError(
            artifact,
            "not-rebuilt",
            f"{label} was rebuilt ({artifact})",
            expected=f"<= {threshold}",
            actual=mtime,
        )
    return None


def assert_rebuilt(artifact: str, threshold: float, mtimes: MtimeSource, reason: str = "") -> None:
    failure = check_rebuilt(artifact, threshold, mtimes, reason)
    if failure is not None:
        raise failure


def assert_not_rebuilt(artifact: str, threshold: float, mtimes: MtimeSource, reason: str = "") -> None:
    failure = check_not_rebuilt(artifact, threshold, mtimes, reason)
    if failure is not None:
        raise failure


def verify_predictions(
    graph: DependencyGraph,
    predicted: Iterable[str],
    threshold: float,
    mtimes: MtimeSource,
    name: str = "build",
) -> ValidationReport:
    """Compare what the build tool did after ``threshold`` against ``predicted``."""
    predicted = frozenset(predicted)
    report = ValidationReport(name)
    for artifact in graph.derived:
        if artifact in predicted:
            report.add(check_rebuilt(artifact, threshold, mtimes, "stale artifact"))
        else:
            report.add(check_not_rebuilt(artifact, threshold, mtimes, "up-to-date artifact"))
    if not report.ok:
        log.warning("staleness_mismatch", failures=len(report.failures))
    return report
