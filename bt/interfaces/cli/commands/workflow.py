"""Lifecycle and dependency commands.

start, stop, close, cancel and reopen accept several ids; each id is
processed on its own and the command exits 1 if any of them failed.
"""

from typing import Callable, List, Optional

import typer

from bt.application import (
    block_task,
    cancel_task,
    close_task,
    reopen_task,
    start_task,
    stop_task,
    unblock_task,
)
from bt.domain.shared import Err
from bt.domain.task import PrefixResolver, StatusChanged, TaskId
from bt.interfaces.cli.app import app
from bt.interfaces.cli.common import (
    fail,
    open_store,
    print_error,
    print_info,
    resolver_for,
    styled_status,
)


def _report_events(events: list[StatusChanged], resolver: PrefixResolver, verb: str) -> None:
    """First event is the task itself; the rest are dependents that moved."""
    first, *others = events
    print_info(f"{verb}: {resolver.shortest_prefix(TaskId(first.task_id))} {first.title}")
    for event in others:
        short = resolver.shortest_prefix(TaskId(event.task_id))
        print_info(f"  {short} {event.title} -> {styled_status(event.to_status)}")


def _run_batch(ids: List[str], action: Callable[[str], Optional[str]]) -> None:
    """Apply ``action`` to each id; it returns an error message or None."""
    failures = 0
    for task_id in ids:
        error = action(task_id)
        if error is not None:
            print_error(f"{task_id}: {error}")
            failures += 1
    if failures:
        raise typer.Exit(1)


@app.command("start")
def start(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(..., help="Task ids or prefixes"),
) -> None:
    """Move open tasks to in-progress."""
    store, settings = open_store(ctx)
    resolver = resolver_for(store)

    def action(task_id: str) -> Optional[str]:
        result = start_task(store, task_id, author=settings.author)
        if isinstance(result, Err):
            return str(result.error)
        _report_events([result.value[2]], resolver, "Started")
        return None

    _run_batch(task_ids, action)


@app.command("stop")
def stop(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(..., help="Task ids or prefixes"),
) -> None:
    """Move in-progress tasks back to open."""
    store, settings = open_store(ctx)
    resolver = resolver_for(store)

    def action(task_id: str) -> Optional[str]:
        result = stop_task(store, task_id, author=settings.author)
        if isinstance(result, Err):
            return str(result.error)
        _report_events([result.value[2]], resolver, "Stopped")
        return None

    _run_batch(task_ids, action)


@app.command("close")
def close(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(..., help="Task ids or prefixes"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why it was closed"),
) -> None:
    """Close tasks; dependents with no other open blockers become ready."""
    store, settings = open_store(ctx)
    resolver = resolver_for(store)

    def action(task_id: str) -> Optional[str]:
        result = close_task(store, task_id, author=settings.author, reason=reason)
        if isinstance(result, Err):
            return str(result.error)
        _report_events(result.value[2], resolver, "Closed")
        return None

    _run_batch(task_ids, action)


@app.command("cancel")
def cancel(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(..., help="Task ids or prefixes"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why it was cancelled"),
) -> None:
    """Cancel tasks that will not be done."""
    store, settings = open_store(ctx)
    resolver = resolver_for(store)

    def action(task_id: str) -> Optional[str]:
        result = cancel_task(store, task_id, author=settings.author, reason=reason)
        if isinstance(result, Err):
            return str(result.error)
        _report_events(result.value[2], resolver, "Cancelled")
        return None

    _run_batch(task_ids, action)


@app.command("reopen")
def reopen(
    ctx: typer.Context,
    task_ids: List[str] = typer.Argument(..., help="Task ids or prefixes"),
) -> None:
    """Reopen closed or cancelled tasks."""
    store, settings = open_store(ctx)
    resolver = resolver_for(store)

    def action(task_id: str) -> Optional[str]:
        result = reopen_task(store, task_id, author=settings.author)
        if isinstance(result, Err):
            return str(result.error)
        _report_events(result.value[2], resolver, "Reopened")
        return None

    _run_batch(task_ids, action)


@app.command("block")
def block(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task that is blocked"),
    blocker_id: str = typer.Argument(..., help="Task that blocks it"),
) -> None:
    """Record that BLOCKER_ID must be resolved before TASK_ID."""
    store, settings = open_store(ctx)

    result = block_task(store, task_id, blocker_id, author=settings.author)
    if isinstance(result, Err):
        fail(result.error)
    _, dependency, status_event = result.value

    resolver = resolver_for(store)
    if dependency is None:
        print_info(f"Already blocked by {blocker_id}")
        return
    task_short = resolver.shortest_prefix(TaskId(dependency.task_id))
    blocker_short = resolver.shortest_prefix(TaskId(dependency.blocker_id))
    print_info(f"{task_short} is now blocked by {blocker_short}")
    if status_event is not None:
        print_info(f"Status: {styled_status(status_event.to_status)}")


@app.command("unblock")
def unblock(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task that is blocked"),
    blocker_id: str = typer.Argument(..., help="Blocker to remove"),
) -> None:
    """Remove BLOCKER_ID from TASK_ID's blockers."""
    store, settings = open_store(ctx)

    result = unblock_task(store, task_id, blocker_id, author=settings.author)
    if isinstance(result, Err):
        fail(result.error)
    _, dependency, status_event = result.value

    resolver = resolver_for(store)
    task_short = resolver.shortest_prefix(TaskId(dependency.task_id))
    blocker_short = resolver.shortest_prefix(TaskId(dependency.blocker_id))
    print_info(f"{task_short} is no longer blocked by {blocker_short}")
    if status_event is not None:
        print_info(f"Status: {styled_status(status_event.to_status)}")
