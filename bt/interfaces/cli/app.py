"""The Typer application object and its global options.

Command modules import ``app`` from here and register themselves with
``@app.command``; ``bt.interfaces.cli`` imports them all.
"""

from pathlib import Path
from typing import Optional

import typer

from bt import __version__
from bt.config import ROOT_ENV
from bt.interfaces.cli.common import CliState
from bt.logging_setup import setup_logging

app = typer.Typer(
    name="bt",
    help="A minimal, file-based task tracker",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"bt version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        help="Project directory containing .tasks (default: search upward from cwd)",
        envvar=ROOT_ENV,
    ),
) -> None:
    """bt - tasks as markdown files, status as directories.

    Every command except 'init' finds the nearest .tasks directory by
    walking up from the current directory.
    """
    setup_logging(verbose=verbose)
    ctx.obj = CliState(root=root)
