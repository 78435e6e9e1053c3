"""Read-only views: list, ready, next, activity and tree."""

import json
from typing import Optional

import typer

from bt.application import (
    TaskFilter,
    collect_activity,
    dependency_tree,
    list_tasks,
    next_task,
    ready_tasks,
)
from bt.domain.shared import Err
from bt.domain.task import PrefixResolver, Priority, Status, TreeNode
from bt.interfaces.cli.app import app
from bt.interfaces.cli.common import (
    dim,
    fail,
    open_store,
    print_task_line,
    print_warning,
    resolver_for,
    styled_priority,
    styled_status,
    task_to_dict,
)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Include closed and cancelled"),
    status: Optional[Status] = typer.Option(
        None, "--status", "-s", case_sensitive=False, help="Only tasks with this status"
    ),
    priority: Optional[Priority] = typer.Option(
        None, "--priority", "-p", case_sensitive=False, help="Only tasks with this priority"
    ),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only tasks with this tag"),
    search: Optional[str] = typer.Option(
        None, "--search", help="Case-insensitive text to find in title or body"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show at most N"),
    long: bool = typer.Option(False, "--long", "-l", help="Multi-line output"),
    body: bool = typer.Option(False, "--body", help="Show a one-line body preview"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List tasks (active only unless --all or a closed --status is given)."""
    store, _ = open_store(ctx)

    task_filter = TaskFilter(
        include_closed=all_tasks,
        status=status,
        priority=priority,
        tag=tag,
        search=search,
        limit=limit,
    )
    result = list_tasks(store, task_filter)
    if isinstance(result, Err):
        fail(result.error)
    resolver = resolver_for(store)

    if as_json:
        data = [
            task_to_dict(task, store.status_from_path(loc), resolver.shortest_prefix(task.id))
            for loc, task in result.value
        ]
        typer.echo(json.dumps(data, indent=2))
        return

    if not result.value:
        typer.echo(dim("No tasks found."))
        return

    for location, task in result.value:
        short = resolver.shortest_prefix(task.id)
        task_status = store.status_from_path(location)
        if long:
            typer.echo(typer.style(task.title, bold=True))
            typer.echo(f"  ID:       {short}")
            typer.echo(
                f"  Status:   {styled_status(task_status)}"
                f"    Priority: {styled_priority(task.priority)}"
            )
            if task.frontmatter.tags:
                typer.echo(f"  Tags:     {', '.join(task.frontmatter.tags)}")
            preview = task.body_preview(200)
            if preview:
                typer.echo(dim(f"  {preview}"))
            typer.echo("")
        else:
            print_task_line(short, task, task_status)
            if body:
                preview = task.body_preview()
                if preview:
                    typer.echo(dim(f"    {preview}"))


app.command("ls", hidden=True)(list_cmd)


@app.command("ready")
def ready(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List tasks with no unresolved blockers, best first."""
    store, _ = open_store(ctx)

    result = ready_tasks(store)
    if isinstance(result, Err):
        fail(result.error)
    resolver = resolver_for(store)

    if as_json:
        data = [
            task_to_dict(task, store.status_from_path(loc), resolver.shortest_prefix(task.id))
            for loc, task in result.value
        ]
        typer.echo(json.dumps(data, indent=2))
        return

    if not result.value:
        typer.echo(dim("No tasks ready to work on."))
        return
    for location, task in result.value:
        print_task_line(resolver.shortest_prefix(task.id), task, store.status_from_path(location))


@app.command("next")
def next_cmd(ctx: typer.Context) -> None:
    """Show the single best task to work on now.

    Highest priority first, then oldest, then lowest id.
    """
    store, _ = open_store(ctx)

    result = next_task(store)
    if isinstance(result, Err):
        fail(result.error)
    if result.value is None:
        typer.echo(dim("No tasks ready to work on."))
        return

    location, task = result.value
    resolver = resolver_for(store)
    print_task_line(resolver.shortest_prefix(task.id), task, store.status_from_path(location))
    preview = task.body_preview()
    if preview:
        typer.echo(dim(f"    {preview}"))


@app.command("activity")
def activity(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of entries"),
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Include closed and cancelled"),
) -> None:
    """Show recent log entries across tasks, newest first."""
    store, _ = open_store(ctx)
    resolver = resolver_for(store)

    result = collect_activity(store, resolver, limit=limit, include_closed=all_tasks)
    if isinstance(result, Err):
        fail(result.error)
    if not result.value:
        typer.echo(dim("No activity."))
        return

    for entry in result.value:
        stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M")
        typer.echo(f"{dim(stamp)}  {entry.short_id}  {entry.title}")
        typer.echo(f"    {entry.author}: {entry.summary}")


# =============================================================================
# Dependency tree
# =============================================================================


def _node_label(node: TreeNode, resolver: PrefixResolver) -> str:
    color = typer.colors.GREEN if node.ready else typer.colors.RED
    label = f"{typer.style(resolver.shortest_prefix(node.task_id), fg=color)} {node.title}"
    if len(node.active_blockers) > 1:
        blockers = ", ".join(resolver.shortest_prefix(b) for b in node.active_blockers)
        label += " " + dim(f"(blocked by: {blockers})")
    return label


def render_tree(roots: list[TreeNode], resolver: PrefixResolver) -> list[str]:
    """Lines for the forest; roots flush left, descendants with connectors."""
    lines: list[str] = []
    # (node, indent for its children, connector for itself or None for roots)
    stack: list[tuple[TreeNode, str, Optional[str]]] = [
        (root, "", None) for root in reversed(roots)
    ]
    while stack:
        node, indent, connector = stack.pop()
        if connector is None:
            lines.append(_node_label(node, resolver))
            child_indent = ""
        else:
            lines.append(f"{indent}{connector}{_node_label(node, resolver)}")
            child_indent = indent + ("    " if connector == "└── " else "│   ")

        last = len(node.children) - 1
        for i in range(last, -1, -1):
            stack.append((node.children[i], child_indent, "└── " if i == last else "├── "))
    return lines


@app.command("tree")
def tree(ctx: typer.Context) -> None:
    """Show active tasks as a dependency tree.

    Each task appears once, under the blocker that resolves last. Green ids
    are ready; red ids are waiting on a blocker.
    """
    store, _ = open_store(ctx)

    result = dependency_tree(store)
    if isinstance(result, Err):
        fail(result.error)
    forest = result.value
    resolver = resolver_for(store)

    if not forest.roots and not forest.unresolved:
        typer.echo(dim("No active tasks."))
        return

    for line in render_tree(forest.roots, resolver):
        typer.echo(line)

    if forest.has_cycle:
        titles = {}
        listed = store.list_active()
        if not isinstance(listed, Err):
            titles = {task.id: task.title for _, task in listed.value}
        print_warning(
            f"Dependency cycle: {len(forest.unresolved)} task(s) could not be placed in the tree:"
        )
        for task_id in forest.unresolved:
            typer.echo(f"  {resolver.shortest_prefix(task_id)}  {titles.get(task_id, '')}", err=True)
