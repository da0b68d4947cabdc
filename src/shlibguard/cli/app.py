"""Root Typer application with subcommand registration."""

from __future__ import annotations

from typing import Optional

import typer

from shlibguard import ShlibGuardContext, __version__

app = typer.Typer(
    name="shlibguard",
    help="shlibguard — verify shared-library build artifacts",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = ShlibGuardContext()

EXIT_FAILED = 1
EXIT_ENVIRONMENT = 2


def get_context() -> ShlibGuardContext:
    return _ctx


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"shlibguard {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-C", help="Path to shlibguard.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    json_output: bool = typer.Option(False, "--json", help="Emit reports and logs as JSON"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """shlibguard — verify shared-library build artifacts."""
    from shlibguard.config.loader import load_config
    from shlibguard.errors import EnvironmentFailure
    from shlibguard.utils.formatters import print_error
    from shlibguard.utils.logging import setup_logging

    try:
        _ctx.config = load_config(config)
    except EnvironmentFailure as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ENVIRONMENT)
    level = "DEBUG" if verbose else _ctx.config.logging.level
    setup_logging(level=level, json_output=json_output or _ctx.config.logging.json_output)
    _ctx.json_output = json_output


# -- Subcommand registration --
from shlibguard.cli.notes_cmd import dump_cmd, notes_cmd  # noqa: E402
from shlibguard.cli.linkage import linkage_cmd  # noqa: E402
from shlibguard.cli.layout import layout_cmd  # noqa: E402
from shlibguard.cli.stale import stale_cmd  # noqa: E402

app.command(name="notes")(notes_cmd)
app.command(name="dump")(dump_cmd)
app.command(name="linkage")(linkage_cmd)
app.command(name="layout")(layout_cmd)
app.command(name="stale")(stale_cmd)
