"""Shared utilities for bt CLI commands.

This module provides common utilities used across CLI commands:
- Repository discovery and Store opening
- Formatted output helpers (error, success, info, warning)
- Status and priority colouring
- Task formatting for list/show/JSON output
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NoReturn

import typer

from bt.application import build_resolver
from bt.config import Settings, load_settings
from bt.domain.shared import Err, StoreError
from bt.domain.task import PrefixResolver, Priority, Status, Task
from bt.infrastructure.storage import Store, find_tasks_root
from bt.infrastructure.storage.codec import format_timestamp

STATUS_COLORS = {
    Status.OPEN: typer.colors.GREEN,
    Status.IN_PROGRESS: typer.colors.YELLOW,
    Status.BLOCKED: typer.colors.RED,
    Status.CLOSED: typer.colors.BLUE,
    Status.CANCELLED: typer.colors.RED,
}

PRIORITY_COLORS = {
    Priority.CRITICAL: typer.colors.RED,
    Priority.HIGH: typer.colors.YELLOW,
    Priority.MEDIUM: None,
    Priority.LOW: typer.colors.BLUE,
}


@dataclass
class CliState:
    """Global options captured by the app callback."""

    root: Path | None = None
    settings: Settings | None = field(default=None)


# =============================================================================
# Opening the repository
# =============================================================================


def fail(error: StoreError | str) -> NoReturn:
    """Print an error and exit with status 1."""
    print_error(str(error))
    raise typer.Exit(1)


def open_store(ctx: typer.Context) -> tuple[Store, Settings]:
    """Open the task repository for this invocation.

    Uses --root / BT_ROOT when given, otherwise walks up from the current
    directory. Also resolves Settings (author) for the repository.

    Raises:
        typer.Exit: If no initialized repository is found.
    """
    state: CliState = ctx.obj or CliState()

    if state.root is not None:
        project_root = state.root
    else:
        found = find_tasks_root(Path.cwd())
        if isinstance(found, Err):
            fail(found.error)
        project_root = found.value

    opened = Store.open(project_root)
    if isinstance(opened, Err):
        fail(opened.error)
    store = opened.value

    if state.settings is None:
        state.settings = load_settings(project_root, store.config_path)
    return store, state.settings


def resolver_for(store: Store) -> PrefixResolver:
    """Prefix resolver over the full archive, or exit on I/O failure."""
    result = build_resolver(store)
    if isinstance(result, Err):
        fail(result.error)
    return result.value


def read_stdin_text() -> str | None:
    """Piped stdin content, or None when stdin is a terminal or empty."""
    stream = sys.stdin
    if stream is None or stream.isatty():
        return None
    text = stream.read()
    return text.strip() or None


def split_csv(value: str | None) -> list[str] | None:
    """'a, b,,c' -> ['a', 'b', 'c']; None stays None."""
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


# =============================================================================
# Output helpers
# =============================================================================


def print_error(msg: str) -> None:
    """Print a formatted error message to stderr."""
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    """Print a formatted success message."""
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    """Print a formatted info message."""
    typer.echo(f"{typer.style('info:', fg=typer.colors.BLUE)} {msg}")


def print_warning(msg: str) -> None:
    """Print a formatted warning message to stderr."""
    typer.echo(typer.style(f"Warning: {msg}", fg=typer.colors.YELLOW), err=True)


def dim(text: str) -> str:
    return typer.style(text, dim=True)


def styled_status(status: Status | None) -> str:
    if status is None:
        return typer.style("missing", fg=typer.colors.MAGENTA)
    return typer.style(status.value, fg=STATUS_COLORS[status])


def styled_priority(priority: Priority) -> str:
    color = PRIORITY_COLORS[priority]
    return typer.style(priority.value, fg=color) if color else priority.value


# =============================================================================
# Task formatting
# =============================================================================


def task_to_dict(
    task: Task,
    status: Status | None,
    short_id: str,
    *,
    include_log: bool = False,
) -> dict[str, Any]:
    """JSON-ready representation of a task."""
    data: dict[str, Any] = {
        "id": task.id.value,
        "short_id": short_id,
        "title": task.title,
        "status": status.value if status else None,
        "priority": task.priority.value,
        "tags": list(task.frontmatter.tags),
        "blocked_by": [b.value for b in task.blocked_by],
        "created": format_timestamp(task.frontmatter.created),
        "updated": format_timestamp(task.frontmatter.updated),
        "author": task.frontmatter.author,
        "body": task.body,
    }
    if include_log:
        data["log"] = [
            {
                "timestamp": format_timestamp(entry.timestamp),
                "author": entry.author,
                "message": entry.message,
            }
            for entry in task.log
        ]
    return data


def print_task_line(short_id: str, task: Task, status: Status | None = None) -> None:
    """One-line summary: short id, [status], priority, title."""
    columns = [short_id]
    if status is not None:
        columns.append(styled_status(status))
    columns.extend([styled_priority(task.priority), task.title])
    typer.echo("\t".join(columns))


def print_task_details(
    task: Task,
    status: Status | None,
    resolver: PrefixResolver,
    location: Path | None = None,
) -> None:
    """Full task view used by 'show' and 'context'."""
    typer.echo(typer.style(task.title, bold=True))
    typer.echo(f"  ID:       {resolver.shortest_prefix(task.id)} ({task.id})")
    typer.echo(f"  Status:   {styled_status(status)}")
    typer.echo(f"  Priority: {styled_priority(task.priority)}")
    if task.frontmatter.tags:
        typer.echo(f"  Tags:     {', '.join(task.frontmatter.tags)}")
    if task.blocked_by:
        blockers = ", ".join(resolver.shortest_prefix(b) for b in task.blocked_by)
        typer.echo(f"  Blocked by: {blockers}")
    typer.echo(f"  Created:  {format_timestamp(task.frontmatter.created)}")
    typer.echo(f"  Updated:  {format_timestamp(task.frontmatter.updated)}")
    if task.frontmatter.author:
        typer.echo(f"  Author:   {task.frontmatter.author}")
    if location is not None:
        typer.echo(dim(f"  File:     {location}"))

    if task.body:
        typer.echo("")
        typer.echo(task.body)

    if task.log:
        typer.echo("")
        typer.echo(typer.style("Log", bold=True))
        for entry in task.log:
            stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M")
            typer.echo(f"  {dim(stamp)}  {entry.author}")
            for line in entry.message.splitlines():
                typer.echo(f"    {line}")


__all__ = [
    "CliState",
    "fail",
    "open_store",
    "resolver_for",
    "read_stdin_text",
    "split_csv",
    "print_error",
    "print_success",
    "print_info",
    "print_warning",
    "dim",
    "styled_status",
    "styled_priority",
    "task_to_dict",
    "print_task_line",
    "print_task_details",
]
