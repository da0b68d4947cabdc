"""shlibguard notes / dump — inspect the linker notes of a shared library."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def notes_cmd(
    path: Path = typer.Argument(..., help="Shared library to validate"),
    package: Optional[list[str]] = typer.Option(
        None, "--package", "-p", help="Package expected in the package list note (repeatable)"
    ),
    dependency: Optional[list[str]] = typer.Option(
        None, "--dependency", "-d", help="Library expected in the dependency list note (repeatable)"
    ),
) -> None:
    """Validate the package list, ABI hash and dependency list notes."""
    from shlibguard.cli.app import EXIT_ENVIRONMENT, EXIT_FAILED, get_context
    from shlibguard.errors import EnvironmentFailure
    from shlibguard.utils.formatters import print_error, print_report
    from shlibguard.validation.notes import validate_notes_file

    ctx = get_context()
    expectations = ctx.note_expectations(packages=package, dependencies=dependency)

    try:
        report = validate_notes_file(path, expectations)
    except EnvironmentFailure as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ENVIRONMENT)

    print_report(report, json_output=ctx.json_output)
    if not report.ok:
        raise typer.Exit(EXIT_FAILED)


def dump_cmd(
    path: Path = typer.Argument(..., help="Object file to read"),
) -> None:
    """List every note found in the SHT_NOTE sections of an object file."""
    from shlibguard.cli.app import EXIT_ENVIRONMENT, get_context
    from shlibguard.errors import EnvironmentFailure
    from shlibguard.extraction.elf_loader import is_offset_loaded, open_object, read_notes
    from shlibguard.utils.formatters import print_error, print_json, print_table
    from shlibguard.validation.notes import NoteKind

    ctx = get_context()
    try:
        obj = open_object(path)
        notes = read_notes(obj)
    except EnvironmentFailure as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ENVIRONMENT)

    producer = ctx.ensure_config().notes.producer_name
    rows = []
    for note in notes:
        kind = ""
        if note.name == producer:
            try:
                kind = NoteKind(note.tag).label
            except ValueError:
                pass
        rows.append(
            {
                "section": note.section.name,
                "name": note.name.rstrip("\x00"),
                "tag": note.tag,
                "kind": kind,
                "size": len(note.content),
                "loaded": is_offset_loaded(obj, note.section.offset),
                "content": note.text if kind != "abi hash" else note.content.hex(),
            }
        )

    if ctx.json_output:
        print_json(rows)
    else:
        print_table(rows, title=f"{path}: {len(rows)} note(s)")
