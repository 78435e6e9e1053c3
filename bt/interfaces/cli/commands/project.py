"""Repository-level commands: init and import."""

from pathlib import Path

import typer

from bt.application import import_tasks
from bt.domain.shared import Err
from bt.infrastructure.storage import Store
from bt.interfaces.cli.app import app
from bt.interfaces.cli.common import (
    CliState,
    fail,
    open_store,
    print_info,
    print_success,
    resolver_for,
)


@app.command("init")
def init(ctx: typer.Context) -> None:
    """Initialize task tracking in the current directory (or --root)."""
    state: CliState = ctx.obj or CliState()
    project_root = (state.root or Path.cwd()).resolve()

    result = Store.init(project_root)
    if isinstance(result, Err):
        fail(result.error)
    print_success(f"Initialized task tracking in {result.value.tasks_dir}")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="YAML file describing tasks to create"),
) -> None:
    """Create tasks in bulk from a YAML file.

    Items may declare a 'ref' and use it in another item's blocked_by.
    Nothing is created if any item is invalid.
    """
    store, settings = open_store(ctx)

    result = import_tasks(store, file, author=settings.author)
    if isinstance(result, Err):
        fail(result.error)

    resolver = resolver_for(store)
    for _, task in result.value:
        typer.echo(f"{resolver.shortest_prefix(task.id)}\t{task.title}")
    print_info(f"Imported {len(result.value)} task(s) from {file}")
