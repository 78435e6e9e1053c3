"""Single-task commands: create, inspect and edit.

Commands: new, show, context, edit, update, describe, log.
"""

import json
from typing import List, Optional

import typer

from bt.application import (
    add_log_entry,
    create_task,
    sync_blocked_status,
    task_context,
    update_task,
)
from bt.domain.shared import Err
from bt.domain.task import Priority, Status, utc_now
from bt.interfaces.cli.app import app
from bt.interfaces.cli.common import (
    dim,
    fail,
    open_store,
    print_info,
    print_task_details,
    read_stdin_text,
    resolver_for,
    split_csv,
    styled_status,
    task_to_dict,
)


@app.command("new")
def new(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    priority: Priority = typer.Option(
        Priority.MEDIUM, "--priority", "-p", case_sensitive=False, help="Task priority"
    ),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
    blocked_by: Optional[str] = typer.Option(
        None, "--blocked-by", "-b", help="Comma-separated ids or prefixes of blocking tasks"
    ),
    body: Optional[str] = typer.Option(
        None, "--body", help="Task description (default: read piped stdin)"
    ),
) -> None:
    """Create a new task and print its id."""
    store, settings = open_store(ctx)

    if body is None:
        body = read_stdin_text() or ""

    result = create_task(
        store,
        title,
        settings.author,
        priority=priority,
        tags=split_csv(tags) or [],
        blocked_by=split_csv(blocked_by) or [],
        body=body,
    )
    if isinstance(result, Err):
        fail(result.error)
    location, task, event = result.value

    typer.echo(task.id.value)
    print_info(f"Created: {location}")
    if event.status != Status.OPEN:
        print_info(f"Status: {styled_status(event.status)}")


@app.command("show")
def show(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show a task with its body and log."""
    store, _ = open_store(ctx)

    found = store.find_and_load(task_id)
    if isinstance(found, Err):
        fail(found.error)
    location, task = found.value
    status = store.status_from_path(location)
    resolver = resolver_for(store)

    if as_json:
        data = task_to_dict(task, status, resolver.shortest_prefix(task.id), include_log=True)
        typer.echo(json.dumps(data, indent=2))
        return

    print_task_details(task, status, resolver, location)


@app.command("context")
def context(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
) -> None:
    """Show a task plus the state of its blockers and the tasks it blocks."""
    store, _ = open_store(ctx)

    result = task_context(store, task_id)
    if isinstance(result, Err):
        fail(result.error)
    info = result.value
    resolver = resolver_for(store)

    print_task_details(info.task, info.status, resolver, info.location)

    typer.echo("")
    typer.echo(typer.style("Blocked by", bold=True))
    if not info.blockers:
        typer.echo(dim("  (none)"))
    for blocker in info.blockers:
        if blocker.dangling:
            typer.echo(f"  {blocker.task_id.value[:8]}\t{dim('missing (counts as resolved)')}")
        else:
            short = resolver.shortest_prefix(blocker.task_id)
            typer.echo(f"  {short}\t{styled_status(blocker.status)}\t{blocker.title}")

    typer.echo("")
    typer.echo(typer.style("Blocks", bold=True))
    if not info.blocks:
        typer.echo(dim("  (none)"))
    for status, other in info.blocks:
        typer.echo(f"  {resolver.shortest_prefix(other.id)}\t{styled_status(status)}\t{other.title}")

    ready = info.status is not None and info.status.is_active and all(
        b.resolved for b in info.blockers
    )
    typer.echo("")
    verdict = typer.style("yes", fg=typer.colors.GREEN) if ready else typer.style(
        "no", fg=typer.colors.RED
    )
    typer.echo(f"Ready to work on: {verdict}")


@app.command("edit")
def edit(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
) -> None:
    """Open a task file in $EDITOR, then validate and re-sync it."""
    store, settings = open_store(ctx)

    found = store.find(task_id)
    if isinstance(found, Err):
        fail(found.error)
    location = found.value

    before = store.read_text(location)
    if isinstance(before, Err):
        fail(before.error)
    typer.edit(filename=str(location), editor=settings.editor)
    after = store.read_text(location)
    if isinstance(after, Err):
        fail(f"{after.error}\nThe file was left as edited; fix it and run 'bt edit' again.")
    if after.value == before.value:
        print_info("No changes")
        return

    loaded = store.load(location)
    if isinstance(loaded, Err):
        fail(f"{loaded.error}\nThe file was left as edited; fix it and run 'bt edit' again.")
    task = loaded.value
    task.frontmatter.updated = utc_now()
    saved = store.save(task, location)
    if isinstance(saved, Err):
        fail(saved.error)

    synced = sync_blocked_status(store, location)
    if isinstance(synced, Err):
        fail(synced.error)
    location, event = synced.value
    print_info(f"Updated: {location}")
    if event is not None:
        print_info(f"Status: {styled_status(event.to_status)}")


@app.command("update")
def update(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    priority: Optional[Priority] = typer.Option(
        None, "--priority", "-p", case_sensitive=False, help="New priority"
    ),
    tags: Optional[str] = typer.Option(
        None, "--tags", "-t", help="Replace tags (comma-separated)"
    ),
    add_tag: Optional[str] = typer.Option(None, "--add-tag", help="Add one tag"),
    remove_tag: Optional[str] = typer.Option(None, "--remove-tag", help="Remove one tag"),
    body: Optional[str] = typer.Option(
        None, "--body", help="Replace the description ('-' reads stdin)"
    ),
) -> None:
    """Change a task's title, priority, tags or description."""
    store, _ = open_store(ctx)

    if body == "-":
        body = read_stdin_text() or ""

    result = update_task(
        store,
        task_id,
        title=title,
        priority=priority,
        tags=split_csv(tags),
        add_tag=add_tag,
        remove_tag=remove_tag,
        body=body,
    )
    if isinstance(result, Err):
        fail(result.error)
    _, task, changed = result.value

    short = resolver_for(store).shortest_prefix(task.id)
    print_info(f"Updated: {short}" if changed else f"No changes: {short}")


@app.command("describe")
def describe(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
    description: List[str] = typer.Argument(..., help="New description ('-' reads stdin)"),
) -> None:
    """Replace a task's description."""
    store, _ = open_store(ctx)

    text = " ".join(description)
    if text == "-":
        text = read_stdin_text() or ""

    result = update_task(store, task_id, body=text)
    if isinstance(result, Err):
        fail(result.error)
    _, task, _ = result.value
    print_info(f"Described: {resolver_for(store).shortest_prefix(task.id)}")


@app.command("log")
def log(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id or unique prefix"),
    message: List[str] = typer.Argument(..., help="Log message"),
) -> None:
    """Append a timestamped entry to a task's log."""
    store, settings = open_store(ctx)

    text = " ".join(message)
    if text == "-":
        text = read_stdin_text() or ""

    result = add_log_entry(store, task_id, text, author=settings.author)
    if isinstance(result, Err):
        fail(result.error)
    _, task = result.value
    print_info(f"Logged: {resolver_for(store).shortest_prefix(task.id)}")
