"""Task application service.

Orchestrates task lifecycle operations by combining the domain rules with
Store I/O. Every function takes the Store and the acting author explicitly
and returns a Result; nothing here prints.

Blocked status is not tracked by the Store. After any change that can add
or clear an unresolved blocker, the affected tasks are re-synced here:
open/in-progress tasks with an unresolved blocker move to blocked, and
blocked tasks whose last blocker cleared move back to open.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path

from bt.domain.shared import (
    AmbiguousPrefix,
    DependencyCycle,
    Err,
    InvalidTransition,
    NotFound,
    Ok,
    Result,
    StoreError,
)
from bt.domain.task import (
    ACTIVE_STATUSES,
    RESOLVED_STATUSES,
    WORKABLE_STATUSES,
    DependencyChanged,
    LogEntry,
    Priority,
    Status,
    StatusChanged,
    Task,
    TaskCreated,
    TaskId,
    can_transition,
    edges_of,
    unresolved_blockers,
    utc_now,
    would_create_cycle,
)
from bt.infrastructure.storage import Store

logger = logging.getLogger(__name__)


# =============================================================================
# Creation
# =============================================================================


def create_task(
    store: Store,
    title: str,
    author: str,
    *,
    priority: Priority = Priority.MEDIUM,
    tags: Iterable[str] = (),
    blocked_by: Iterable[str] = (),
    body: str = "",
    now: datetime | None = None,
) -> Result[tuple[Path, Task, TaskCreated], StoreError]:
    """Create a task, placing it in blocked when a blocker is unresolved.

    Args:
        store: Open task repository.
        title: Task title (must not be blank).
        author: Recorded as the task author.
        priority: Initial priority.
        tags: Initial tags, kept in order without duplicates.
        blocked_by: Ids or prefixes of existing blocking tasks.
        body: Free-text description.
        now: Creation time (defaults to the current UTC second).

    Returns:
        Ok((location, task, TaskCreated)), or Err if a blocker reference
        does not resolve or the record cannot be written.
    """
    title = title.strip()
    if not title:
        return Err(StoreError("Task title cannot be empty"))

    blocker_ids: list[TaskId] = []
    has_unresolved = False
    for ref in blocked_by:
        found = store.find(ref)
        if isinstance(found, Err):
            return found
        blocker_id = TaskId(found.value.stem)
        if blocker_id in blocker_ids:
            continue
        blocker_ids.append(blocker_id)
        status = store.status_from_path(found.value)
        if status is not None and not status.is_resolved:
            has_unresolved = True

    task = Task.new(
        title,
        author,
        priority=priority,
        tags=list(dict.fromkeys(t for t in tags if t)),
        body=body.strip(),
        now=now,
    )
    task.frontmatter.blocked_by = blocker_ids

    created = store.create(task)
    if isinstance(created, Err):
        return created
    location = created.value

    if has_unresolved:
        moved = store.move_to_status(location, Status.BLOCKED)
        if isinstance(moved, Err):
            return moved
        location = moved.value

    status = store.status_from_path(location) or Status.OPEN
    event = TaskCreated(task_id=task.id.value, title=task.title, status=status)
    logger.info("Created task %s (%s)", task.id, status.value)
    return Ok((location, task, event))


# =============================================================================
# Blocked-status sync
# =============================================================================


def _sync_loaded(
    store: Store,
    location: Path,
    task: Task,
    statuses: Mapping[TaskId, Status],
) -> Result[tuple[Path, StatusChanged | None], StoreError]:
    status = store.status_from_path(location)
    if status is None or status not in ACTIVE_STATUSES:
        return Ok((location, None))

    pending = unresolved_blockers(task, statuses)
    if pending and status in WORKABLE_STATUSES:
        target = Status.BLOCKED
    elif not pending and status == Status.BLOCKED:
        target = Status.OPEN
    else:
        return Ok((location, None))

    moved = store.move_to_status(location, target)
    if isinstance(moved, Err):
        return moved
    event = StatusChanged(
        task_id=task.id.value,
        title=task.title,
        from_status=status,
        to_status=target,
    )
    logger.info("Task %s: %s -> %s", task.id, status.value, target.value)
    return Ok((moved.value, event))


def sync_blocked_status(
    store: Store,
    location: Path,
) -> Result[tuple[Path, StatusChanged | None], StoreError]:
    """Move one task between open/in-progress and blocked as its blockers dictate.

    Returns:
        Ok((location, event)) where event is None if nothing moved.
    """
    loaded = store.load(location)
    if isinstance(loaded, Err):
        return loaded
    statuses = store.status_map()
    if isinstance(statuses, Err):
        return statuses
    return _sync_loaded(store, location, loaded.value, statuses.value)


def sync_dependents(store: Store, blocker_id: TaskId) -> Result[list[StatusChanged], StoreError]:
    """Re-sync every active task that lists ``blocker_id`` as a blocker."""
    statuses = store.status_map()
    if isinstance(statuses, Err):
        return statuses
    active = store.list_active()
    if isinstance(active, Err):
        return active

    events: list[StatusChanged] = []
    for location, task in active.value:
        if blocker_id not in task.blocked_by:
            continue
        synced = _sync_loaded(store, location, task, statuses.value)
        if isinstance(synced, Err):
            return synced
        if synced.value[1] is not None:
            events.append(synced.value[1])
    return Ok(events)


# =============================================================================
# Status transitions
# =============================================================================


def _transition(
    store: Store,
    ref: str,
    target: Status,
    allowed_from: frozenset[Status],
    *,
    author: str,
    message: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Path, Task, StatusChanged], StoreError]:
    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value

    current = store.status_from_path(location)
    if current is None or current not in allowed_from or not can_transition(current, target):
        return Err(
            InvalidTransition(task.id.value, current.value if current else "unknown", target.value)
        )

    if message:
        task = task.with_log(LogEntry(timestamp=now or utc_now(), author=author, message=message))
        saved = store.save(task, location)
        if isinstance(saved, Err):
            return saved

    moved = store.move_to_status(location, target)
    if isinstance(moved, Err):
        return moved

    event = StatusChanged(
        task_id=task.id.value,
        title=task.title,
        from_status=current,
        to_status=target,
        reason=message,
    )
    logger.info("Task %s: %s -> %s", task.id, current.value, target.value)
    return Ok((moved.value, task, event))


def start_task(
    store: Store,
    ref: str,
    *,
    author: str,
) -> Result[tuple[Path, Task, StatusChanged], StoreError]:
    """open -> in-progress."""
    return _transition(
        store, ref, Status.IN_PROGRESS, frozenset({Status.OPEN}), author=author
    )


def stop_task(
    store: Store,
    ref: str,
    *,
    author: str,
) -> Result[tuple[Path, Task, StatusChanged], StoreError]:
    """in-progress -> open."""
    return _transition(
        store, ref, Status.OPEN, frozenset({Status.IN_PROGRESS}), author=author
    )


def _finish(
    store: Store,
    ref: str,
    target: Status,
    verb: str,
    *,
    author: str,
    reason: str | None,
    now: datetime | None,
) -> Result[tuple[Path, Task, list[StatusChanged]], StoreError]:
    message = f"{verb}: {reason.strip()}" if reason and reason.strip() else verb
    result = _transition(
        store, ref, target, ACTIVE_STATUSES, author=author, message=message, now=now
    )
    if isinstance(result, Err):
        return result
    location, task, event = result.value

    dependents = sync_dependents(store, task.id)
    if isinstance(dependents, Err):
        return dependents
    return Ok((location, task, [event, *dependents.value]))


def close_task(
    store: Store,
    ref: str,
    *,
    author: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Path, Task, list[StatusChanged]], StoreError]:
    """Close an active task and unblock whatever it was holding up.

    Returns:
        Ok((location, task, events)) with the close event first, followed
        by a StatusChanged for every dependent moved out of blocked.
    """
    return _finish(store, ref, Status.CLOSED, "Closed", author=author, reason=reason, now=now)


def cancel_task(
    store: Store,
    ref: str,
    *,
    author: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Path, Task, list[StatusChanged]], StoreError]:
    """Cancel an active task; cancelled blockers count as resolved."""
    return _finish(
        store, ref, Status.CANCELLED, "Cancelled", author=author, reason=reason, now=now
    )


def reopen_task(
    store: Store,
    ref: str,
    *,
    author: str,
    now: datetime | None = None,
) -> Result[tuple[Path, Task, list[StatusChanged]], StoreError]:
    """closed/cancelled -> open, then re-block it and its dependents as needed."""
    result = _transition(
        store, ref, Status.OPEN, RESOLVED_STATUSES, author=author, message="Reopened", now=now
    )
    if isinstance(result, Err):
        return result
    location, task, event = result.value
    events = [event]

    synced = sync_blocked_status(store, location)
    if isinstance(synced, Err):
        return synced
    location, sync_event = synced.value
    if sync_event is not None:
        events.append(sync_event)

    dependents = sync_dependents(store, task.id)
    if isinstance(dependents, Err):
        return dependents
    events.extend(dependents.value)
    return Ok((location, task, events))


# =============================================================================
# Dependencies
# =============================================================================


def block_task(
    store: Store,
    ref: str,
    blocker_ref: str,
    *,
    author: str,
    now: datetime | None = None,
) -> Result[tuple[Path, DependencyChanged | None, StatusChanged | None], StoreError]:
    """Record that ``blocker_ref`` blocks ``ref``.

    Self-blocks and edges that close a cycle are refused. Adding an
    existing blocker changes nothing and returns no events.
    """
    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value

    blocker_location = store.find(blocker_ref)
    if isinstance(blocker_location, Err):
        return blocker_location
    blocker_id = TaskId(blocker_location.value.stem)

    if blocker_id in task.blocked_by:
        return Ok((location, None, None))

    everything = store.list_all()
    if isinstance(everything, Err):
        return everything
    if would_create_cycle(edges_of(t for _, t in everything.value), task.id, blocker_id):
        return Err(DependencyCycle(task.id.value, blocker_id.value))

    task.frontmatter.blocked_by.append(blocker_id)
    task = task.with_log(
        LogEntry(timestamp=now or utc_now(), author=author, message=f"Blocked by {blocker_id}")
    )
    saved = store.save(task, location)
    if isinstance(saved, Err):
        return saved

    synced = sync_blocked_status(store, location)
    if isinstance(synced, Err):
        return synced
    location, status_event = synced.value
    event = DependencyChanged(task_id=task.id.value, blocker_id=blocker_id.value, added=True)
    return Ok((location, event, status_event))


def _match_blocker(task: Task, blocker_ref: str) -> Result[TaskId, StoreError]:
    query = blocker_ref.strip()
    for blocker in task.blocked_by:
        if blocker.value == query:
            return Ok(blocker)
    matches = list(dict.fromkeys(b for b in task.blocked_by if query and b.startswith(query)))
    if not matches:
        return Err(NotFound(query))
    if len(matches) > 1:
        return Err(AmbiguousPrefix(query, sorted(m.value for m in matches)))
    return Ok(matches[0])


def unblock_task(
    store: Store,
    ref: str,
    blocker_ref: str,
    *,
    author: str,
    now: datetime | None = None,
) -> Result[tuple[Path, DependencyChanged, StatusChanged | None], StoreError]:
    """Remove a blocker from ``ref``.

    The blocker is matched against the task's own blocked_by list, so
    references to deleted tasks can still be removed.
    """
    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value

    matched = _match_blocker(task, blocker_ref)
    if isinstance(matched, Err):
        return matched
    blocker_id = matched.value

    task.frontmatter.blocked_by = [b for b in task.blocked_by if b != blocker_id]
    task = task.with_log(
        LogEntry(timestamp=now or utc_now(), author=author, message=f"Unblocked from {blocker_id}")
    )
    saved = store.save(task, location)
    if isinstance(saved, Err):
        return saved

    synced = sync_blocked_status(store, location)
    if isinstance(synced, Err):
        return synced
    location, status_event = synced.value
    event = DependencyChanged(task_id=task.id.value, blocker_id=blocker_id.value, added=False)
    return Ok((location, event, status_event))


# =============================================================================
# Content edits
# =============================================================================


def update_task(
    store: Store,
    ref: str,
    *,
    title: str | None = None,
    priority: Priority | None = None,
    tags: list[str] | None = None,
    add_tag: str | None = None,
    remove_tag: str | None = None,
    body: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Path, Task, bool], StoreError]:
    """Apply field changes; saves and bumps ``updated`` only if something changed.

    Returns:
        Ok((location, task, changed)).
    """
    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value
    frontmatter = task.frontmatter
    changed = False

    if title is not None:
        if not title.strip():
            return Err(StoreError("Task title cannot be empty"))
        if title.strip() != frontmatter.title:
            frontmatter.title = title.strip()
            changed = True

    if priority is not None and priority != frontmatter.priority:
        frontmatter.priority = priority
        changed = True

    if tags is not None:
        new_tags = list(dict.fromkeys(t for t in tags if t))
        if new_tags != frontmatter.tags:
            frontmatter.tags = new_tags
            changed = True

    if add_tag and add_tag not in frontmatter.tags:
        frontmatter.tags.append(add_tag)
        changed = True

    if remove_tag and remove_tag in frontmatter.tags:
        frontmatter.tags = [t for t in frontmatter.tags if t != remove_tag]
        changed = True

    if body is not None and body.strip() != task.body:
        task.body = body.strip()
        changed = True

    if not changed:
        return Ok((location, task, False))

    frontmatter.updated = now or utc_now()
    saved = store.save(task, location)
    if isinstance(saved, Err):
        return saved
    return Ok((location, task, True))


def add_log_entry(
    store: Store,
    ref: str,
    message: str,
    *,
    author: str,
    now: datetime | None = None,
) -> Result[tuple[Path, Task], StoreError]:
    """Append a log entry to a task."""
    message = message.strip()
    if not message:
        return Err(StoreError("Log message cannot be empty"))

    found = store.find_and_load(ref)
    if isinstance(found, Err):
        return found
    location, task = found.value

    task = task.with_log(LogEntry(timestamp=now or utc_now(), author=author, message=message))
    saved = store.save(task, location)
    if isinstance(saved, Err):
        return saved
    return Ok((location, task))
