"""Checks on the dynamic linking table: needed libraries and runtime search paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from shlibguard.config.defaults import SEARCH_PATH_SEPARATOR
from shlibguard.errors import LinkageMissingError
from shlibguard.extraction.elf_loader import dynamic_strings, open_object
from shlibguard.extraction.object_artifact import DynTag, ObjectFile
from shlibguard.utils.logging import get_logger
from shlibguard.validation.report import ValidationReport

log = get_logger(__name__)

# Both the legacy and the modern tag may carry the search path.
SEARCH_PATH_TAGS = (DynTag.RPATH, DynTag.RUNPATH)


def _as_object(source: ObjectFile | str | Path) -> ObjectFile:
    return source if isinstance(source, ObjectFile) else open_object(source)


def _normalize(path: str) -> str:
    return os.path.normpath(path)


def search_path_entries(source: ObjectFile | str | Path) -> list[str]:
    obj = _as_object(source)
    entries: list[str] = []
    for tag in SEARCH_PATH_TAGS:
        for value in dynamic_strings(obj, tag):
            entries.extend(value.split(SEARCH_PATH_SEPARATOR))
    return entries


def check_linked_to(source: ObjectFile | str | Path, library: str) -> LinkageMissingError | None:
    obj = _as_object(source)
    needed = dynamic_strings(obj, DynTag.NEEDED)
    if library in needed:
        return None
    return LinkageMissingError(
        obj.path, "needed", f"{obj.path} is not linked to {library}", expected=library, actual=list(needed)
    )


def check_has_search_path(
    source: ObjectFile | str | Path, directory: str | Path
) -> LinkageMissingError | None:
    obj = _as_object(source)
    target = _normalize(str(directory))
    entries = search_path_entries(obj)
    if any(_normalize(entry) == target for entry in entries):
        return None
    return LinkageMissingError(
        obj.path, "rpath", f"{obj.path} does not have rpath {directory}", expected=str(directory), actual=entries
    )


def assert_linked_to(source: ObjectFile | str | Path, library: str) -> None:
    failure = check_linked_to(source, library)
    if failure is not None:
        raise failure


def assert_has_search_path(source: ObjectFile | str | Path, directory: str | Path) -> None:
    failure = check_has_search_path(source, directory)
    if failure is not None:
        raise failure


def validate_linkage(
    source: ObjectFile | str | Path,
    needed: Iterable[str] = (),
    search_paths: Iterable[str | Path] = (),
) -> ValidationReport:
    """Check every needed library and search path, collecting all that are absent."""
    obj = _as_object(source)
    report = ValidationReport(obj.path)
    report.extend(check_linked_to(obj, lib) for lib in needed)
    report.extend(check_has_search_path(obj, d) for d in search_paths)
    if not report.ok:
        log.warning("linkage_invalid", path=obj.path, failures=len(report.failures))
    return report
