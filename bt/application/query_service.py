"""Read-only views over the task repository.

Functions here never write. Each one re-reads the Store, so results always
reflect the files on disk at call time.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from bt.domain.shared import Err, Ok, Result, StoreError, map_result
from bt.domain.task import (
    DependencyForest,
    PrefixResolver,
    Priority,
    Status,
    Task,
    TaskId,
    build_forest,
    select_next,
    sort_for_next,
)
from bt.infrastructure.storage import Store, TaskEntry


def build_resolver(store: Store) -> Result[PrefixResolver, StoreError]:
    """Prefix resolver over every record in the archive.

    Ids come from filenames, so unreadable records still take part and a
    short id never collides with one of them.
    """
    return map_result(store.status_map(), lambda statuses: PrefixResolver(statuses))


# =============================================================================
# Listing
# =============================================================================


@dataclass(frozen=True)
class TaskFilter:
    """Criteria for ``list_tasks``; None means "don't filter"."""

    include_closed: bool = False
    status: Status | None = None
    priority: Priority | None = None
    tag: str | None = None
    search: str | None = None
    limit: int | None = None

    def matches(self, status: Status | None, task: Task) -> bool:
        if self.status is not None and status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.tag is not None:
            wanted = self.tag.lower()
            if not any(t.lower() == wanted for t in task.frontmatter.tags):
                return False
        if self.search:
            query = self.search.lower()
            if query not in task.title.lower() and query not in task.body.lower():
                return False
        return True


def list_tasks(store: Store, task_filter: TaskFilter) -> Result[list[TaskEntry], StoreError]:
    """Tasks matching ``task_filter``, in store order, up to its limit.

    Filtering on a terminal status implies including closed tasks.
    """
    include_closed = task_filter.include_closed or (
        task_filter.status is not None and task_filter.status.is_resolved
    )
    listed = store.list_all() if include_closed else store.list_active()
    if isinstance(listed, Err):
        return listed

    selected: list[TaskEntry] = []
    for location, task in listed.value:
        if task_filter.limit is not None and len(selected) >= task_filter.limit:
            break
        if task_filter.matches(store.status_from_path(location), task):
            selected.append((location, task))
    return Ok(selected)


def ready_tasks(store: Store) -> Result[list[TaskEntry], StoreError]:
    """Ready tasks, best candidate first."""
    return map_result(store.list_ready(), sort_for_next)


def next_task(store: Store) -> Result[TaskEntry | None, StoreError]:
    """The single ready task to work on next, or None."""
    return map_result(store.list_ready(), select_next)


# =============================================================================
# Activity
# =============================================================================


@dataclass(frozen=True)
class ActivityEntry:
    """A log entry flattened with the task it belongs to."""

    timestamp: datetime
    author: str
    summary: str
    task_id: TaskId
    short_id: str
    title: str


def collect_activity(
    store: Store,
    resolver: PrefixResolver,
    *,
    limit: int = 10,
    include_closed: bool = False,
) -> Result[list[ActivityEntry], StoreError]:
    """Most recent log entries across tasks, newest first.

    Only the first non-blank line of each message is kept.
    """
    listed = store.list_all() if include_closed else store.list_active()
    if isinstance(listed, Err):
        return listed

    entries = [
        ActivityEntry(
            timestamp=entry.timestamp,
            author=entry.author,
            summary=entry.summary,
            task_id=task.id,
            short_id=resolver.shortest_prefix(task.id),
            title=task.title,
        )
        for _, task in listed.value
        for entry in task.log
    ]
    entries.sort(key=lambda e: (e.timestamp, e.task_id.value), reverse=True)
    return Ok(entries[: max(limit, 0)])


# =============================================================================
# Dependency tree and context
# =============================================================================


def dependency_tree(store: Store) -> Result[DependencyForest, StoreError]:
    """Forest of active tasks ordered by their active blockers."""
    return map_result(store.list_active(), lambda active: build_forest(t for _, t in active))


@dataclass(frozen=True)
class BlockerInfo:
    """A blocked_by reference; ``status`` and ``title`` are None when dangling."""

    task_id: TaskId
    status: Status | None
    title: str | None

    @property
    def dangling(self) -> bool:
        return self.status is None

    @property
    def resolved(self) -> bool:
        return self.status is None or self.status.is_resolved


@dataclass(frozen=True)
class TaskContext:
    """Everything needed to start working on a task."""

    location: Path
    task: Task
    status: Status | None
    blockers: list[BlockerInfo]
    blocks: list[tuple[Status | None, Task]]


def task_context(store: Store, ref: str) -> Result[TaskContext, StoreError]:
    """Load a task together with its blockers and the tasks it blocks."""
    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value

    everything = store.list_all()
    if isinstance(everything, Err):
        return everything
    by_id = {t.id: (store.status_from_path(loc), t) for loc, t in everything.value}

    blockers = []
    for blocker_id in task.blocked_by:
        status, blocker = by_id.get(blocker_id, (None, None))
        blockers.append(
            BlockerInfo(
                task_id=blocker_id,
                status=status,
                title=blocker.title if blocker else None,
            )
        )

    blocks = [
        (status, other)
        for status, other in by_id.values()
        if task.id in other.blocked_by and other.id != task.id
    ]
    blocks.sort(key=lambda pair: pair[1].title)

    return Ok(
        TaskContext(
            location=location,
            task=task,
            status=store.status_from_path(location),
            blockers=blockers,
            blocks=blocks,
        )
    )
