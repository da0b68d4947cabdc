"""shlibguard linkage — check needed libraries and runtime search paths."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def linkage_cmd(
    path: Path = typer.Argument(..., help="Executable or shared library to check"),
    needed: Optional[list[str]] = typer.Option(
        None, "--needed", "-n", help="Library that must appear as DT_NEEDED (repeatable)"
    ),
    rpath: Optional[list[str]] = typer.Option(
        None, "--rpath", "-r", help="Directory that must appear in DT_RPATH/DT_RUNPATH (repeatable)"
    ),
) -> None:
    """Check the dynamic linking table of an object file."""
    from shlibguard.cli.app import EXIT_ENVIRONMENT, EXIT_FAILED, get_context
    from shlibguard.errors import EnvironmentFailure
    from shlibguard.utils.formatters import print_error, print_report
    from shlibguard.validation.linkage import validate_linkage

    ctx = get_context()
    expectations = ctx.ensure_config().expectations

    try:
        report = validate_linkage(
            path,
            needed=needed or expectations.needed,
            search_paths=rpath or expectations.search_paths,
        )
    except EnvironmentFailure as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ENVIRONMENT)

    print_report(report, json_output=ctx.json_output)
    if not report.ok:
        raise typer.Exit(EXIT_FAILED)
