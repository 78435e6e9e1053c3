"""Dependency graph over blocked_by edges.

All functions in this module are pure - no I/O, no side effects. The graph
is rebuilt from the flat edge lists on every call; nothing is cached.

Edges point from a task to the task blocking it: ``(task_id, blocker_id)``.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .models import Status, Task, WORKABLE_STATUSES
from .types import TaskId

logger = logging.getLogger(__name__)

Edge = tuple[TaskId, TaskId]  # (task_id, blocker_id)


# =============================================================================
# Readiness
# =============================================================================


def unresolved_blockers(
    task: Task,
    statuses: Mapping[TaskId, Status],
) -> list[TaskId]:
    """Blockers of ``task`` that exist and are not closed or cancelled.

    Ids that resolve to no task are dangling and count as resolved.
    """
    pending: list[TaskId] = []
    for blocker_id in task.blocked_by:
        status = statuses.get(blocker_id)
        if status is None:
            logger.debug("Task %s: ignoring dangling blocker %s", task.id, blocker_id)
            continue
        if not status.is_resolved:
            pending.append(blocker_id)
    return pending


def is_ready(task: Task, status: Status, statuses: Mapping[TaskId, Status]) -> bool:
    """A task is ready when it is open or in progress and nothing blocks it."""
    if status not in WORKABLE_STATUSES:
        return False
    return not unresolved_blockers(task, statuses)


# =============================================================================
# Cycle checks
# =============================================================================


def build_adjacency(edges: Iterable[Edge]) -> dict[TaskId, set[TaskId]]:
    """adj[task] = {blocker1, blocker2, ...}"""
    adj: dict[TaskId, set[TaskId]] = defaultdict(set)
    for task_id, blocker_id in edges:
        adj[task_id].add(blocker_id)
    return adj


def has_path(adj: Mapping[TaskId, set[TaskId]], start: TaskId, target: TaskId) -> bool:
    """DFS: is there a path start -> ... -> target?"""
    if start == target:
        return True
    stack = [start]
    visited: set[TaskId] = set()
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        for nxt in adj.get(node, set()):
            if nxt == target:
                return True
            if nxt not in visited:
                stack.append(nxt)
    return False


def would_create_cycle(edges: Iterable[Edge], task_id: TaskId, blocker_id: TaskId) -> bool:
    """Adding task_id -> blocker_id creates a cycle iff blocker_id reaches task_id."""
    if task_id == blocker_id:
        return True
    return has_path(build_adjacency(edges), blocker_id, task_id)


def edges_of(tasks: Iterable[Task]) -> list[Edge]:
    """Flatten the blocked_by lists of ``tasks`` into an edge list."""
    return [(task.id, blocker) for task in tasks for blocker in task.blocked_by]


# =============================================================================
# Dependency tree
# =============================================================================


@dataclass
class TreeNode:
    """A task placed in the dependency forest.

    ``children`` are the tasks this one unblocks that were attached here.
    """

    task_id: TaskId
    title: str
    active_blockers: list[TaskId]
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return not self.active_blockers


@dataclass
class DependencyForest:
    """Traversal result: rendered roots plus the active tasks never reached.

    Anything in ``unresolved`` sits on, or behind, a dependency cycle.
    """

    roots: list[TreeNode]
    unresolved: list[TaskId]

    @property
    def has_cycle(self) -> bool:
        return bool(self.unresolved)


def build_forest(active_tasks: Iterable[Task]) -> DependencyForest:
    """Arrange active tasks into a forest ordered by dependency.

    Only blockers that are themselves active create edges. A task is placed
    once every active blocker has been placed, and at most once overall; a
    task with several blockers hangs under whichever is placed last. Roots
    and siblings are sorted by title.

    Args:
        active_tasks: Open, in-progress and blocked tasks.

    Returns:
        DependencyForest with the placed roots and any unplaced task ids.
    """
    tasks = {task.id: task for task in active_tasks}

    active_blockers: dict[TaskId, list[TaskId]] = {}
    blocks: dict[TaskId, list[TaskId]] = defaultdict(list)
    for task_id, task in tasks.items():
        seen: list[TaskId] = []
        for blocker_id in task.blocked_by:
            if blocker_id in tasks and blocker_id not in seen:
                seen.append(blocker_id)
                blocks[blocker_id].append(task_id)
        active_blockers[task_id] = seen

    def by_title(task_id: TaskId) -> tuple[str, str]:
        return (tasks[task_id].title, task_id.value)

    roots = sorted((tid for tid, b in active_blockers.items() if not b), key=by_title)

    placed: set[TaskId] = set()
    forest: list[TreeNode] = []

    # Explicit stack keeps depth-first order without recursion limits
    stack: list[tuple[TaskId, list[TreeNode]]] = [(r, forest) for r in reversed(roots)]
    while stack:
        task_id, siblings = stack.pop()
        if task_id in placed:
            continue
        blockers = active_blockers[task_id]
        if not all(b in placed for b in blockers):
            continue

        placed.add(task_id)
        node = TreeNode(
            task_id=task_id,
            title=tasks[task_id].title,
            active_blockers=list(blockers),
        )
        siblings.append(node)

        children = sorted(
            {
                child
                for child in blocks.get(task_id, [])
                if all(b == task_id or b in placed for b in active_blockers[child])
            },
            key=by_title,
        )
        for child in reversed(children):
            stack.append((child, node.children))

    unresolved = sorted((tid for tid in tasks if tid not in placed), key=by_title)
    if unresolved:
        logger.debug(
            "Dependency cycle: %d active task(s) could not be placed", len(unresolved)
        )
    return DependencyForest(roots=forest, unresolved=unresolved)


def walk(nodes: Iterable[TreeNode]) -> Iterable[TreeNode]:
    """Yield every node of a forest in display order."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
