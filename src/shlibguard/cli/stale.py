"""shlibguard stale — predict which artifacts a build must redo."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def stale_cmd(
    graph_path: Path = typer.Argument(..., help="YAML mapping of artifact to the inputs it is built from"),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Directory artifact paths are relative to (default: the graph file's directory)"
    ),
    check: bool = typer.Option(False, "--check", help="Exit non-zero when anything is stale"),
) -> None:
    """Print every derived artifact with its predicted state."""
    from shlibguard.cli.app import EXIT_ENVIRONMENT, EXIT_FAILED, get_context
    from shlibguard.errors import DependencyCycleError, EnvironmentFailure
    from shlibguard.staleness.graph import load_graph
    from shlibguard.staleness.timestamps import FilesystemMtimes
    from shlibguard.staleness.tracker import predict_stale
    from shlibguard.utils.formatters import print_error, print_json, print_table
    from yaml import YAMLError

    ctx = get_context()
    try:
        graph = load_graph(graph_path)
        mtimes = FilesystemMtimes(root if root is not None else graph_path.parent)
        stale = predict_stale(graph, mtimes)
    except (OSError, ValueError, YAMLError, DependencyCycleError, EnvironmentFailure) as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ENVIRONMENT)

    rows = [
        {"artifact": a, "state": "stale" if a in stale else "up to date"}
        for a in graph.derived
    ]
    if ctx.json_output:
        print_json(rows)
    else:
        print_table(rows, title=f"{len(stale)} of {len(rows)} artifact(s) stale")

    if check and stale:
        raise typer.Exit(EXIT_FAILED)
