"""Checks on the files a shared-library install leaves in its install directory."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from shlibguard.errors import ContentMismatchError, MissingArtifactError, ValidationError
from shlibguard.validation.report import ValidationReport

SHLIBNAME_SUFFIX = ".shlibname"


def shlibname_path(install_dir: str | Path, package: str) -> Path:
    return Path(install_dir) / f"{package}{SHLIBNAME_SUFFIX}"


def check_library_built(install_dir: str | Path, soname: str) -> ValidationError | None:
    path = Path(install_dir) / soname
    if path.is_file():
        return None
    return MissingArtifactError(str(install_dir), "library-built", f"shared library {soname} not found at {path}")


def check_shlibname_file(install_dir: str | Path, package: str, soname: str) -> ValidationError | None:
    """Each package built into a library gets a file naming that library."""
    path = shlibname_path(install_dir, package)
    try:
        contents = path.read_text().strip()
    except OSError as exc:
        return MissingArtifactError(
            str(install_dir), "shlibname", f"error reading shlibname file for {package}: {exc.strerror or exc}"
        )
    if contents != soname:
        return ContentMismatchError(
            str(install_dir),
            "shlibname",
            f"shlibname file for {package} has wrong contents",
            expected=soname,
            actual=contents,
        )
    return None


def check_shlibname_files(
    install_dir: str | Path, packages: Iterable[str], soname: str
) -> ValidationReport:
    report = ValidationReport(str(install_dir))
    report.extend(check_shlibname_file(install_dir, pkg, soname) for pkg in packages)
    return report


def validate_layout(install_dir: str | Path, soname: str, packages: Iterable[str] = ()) -> ValidationReport:
    report = ValidationReport(str(install_dir))
    report.add(check_library_built(install_dir, soname))
    return report.merge(check_shlibname_files(install_dir, packages, soname))
