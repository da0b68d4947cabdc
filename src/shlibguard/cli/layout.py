"""shlibguard layout — check the files a shared-library install produced."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def layout_cmd(
    install_dir: Path = typer.Argument(..., help="Directory the library was installed into"),
    soname: str = typer.Option(..., "--soname", "-s", help="File name of the shared library"),
    package: Optional[list[str]] = typer.Option(
        None, "--package", "-p", help="Package that needs a .shlibname file (repeatable)"
    ),
) -> None:
    """Check that the library exists and every package names it in its .shlibname file."""
    from shlibguard.cli.app import EXIT_FAILED, get_context
    from shlibguard.utils.formatters import print_report
    from shlibguard.validation.layout import validate_layout

    ctx = get_context()
    packages = package or ctx.ensure_config().expectations.packages
    report = validate_layout(install_dir, soname, packages)
    print_report(report, json_output=ctx.json_output)
    if not report.ok:
        raise typer.Exit(EXIT_FAILED)
