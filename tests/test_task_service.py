# tests/test_task_service.py

from __future__ import annotations

from bt.application import (
    add_log_entry,
    block_task,
    cancel_task,
    close_task,
    create_task,
    next_task,
    reopen_task,
    start_task,
    stop_task,
    unblock_task,
    update_task,
)
from bt.domain.shared import DependencyCycle, Err, InvalidTransition, NotFound, Ok
from bt.domain.task import Priority, Status, TaskId
from bt.infrastructure.storage import Store


def _status(store: Store, task_id: str) -> Status | None:
    found = store.find(task_id)
    assert isinstance(found, Ok)
    return store.status_from_path(found.value)


def _ready_ids(store: Store) -> set[str]:
    ready = store.list_ready()
    assert isinstance(ready, Ok)
    return {t.id.value for _, t in ready.value}


def test_new_task_with_open_blocker_lands_in_blocked(store, make_task) -> None:
    _, blocker = make_task("Blocker")
    location, task = make_task("Waiting", blocked_by=[blocker.id.value[:6]])

    assert store.status_from_path(location) == Status.BLOCKED
    assert task.blocked_by == [blocker.id]
    assert _ready_ids(store) == {blocker.id.value}


def test_new_task_with_unknown_blocker_fails(store) -> None:
    result = create_task(store, "x", "tester", blocked_by=["nope"])
    assert isinstance(result, Err)
    assert isinstance(result.error, NotFound)
    listed = store.list_all()
    assert isinstance(listed, Ok) and listed.value == []


def test_start_stop_round_trip(store, make_task) -> None:
    location, task = make_task("Work", body="Some detail")
    before = location.read_bytes()

    started = start_task(store, task.id.value, author="tester")
    assert isinstance(started, Ok)
    assert store.status_from_path(started.value[0]) == Status.IN_PROGRESS
    assert started.value[0].read_bytes() == before

    stopped = stop_task(store, task.id.value, author="tester")
    assert isinstance(stopped, Ok)
    assert stopped.value[0] == location
    assert location.read_bytes() == before

    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    assert loaded.value == task


def test_log_message_with_subheading_keeps_task_listed(store, make_task) -> None:
    location, task = make_task("Tracked")

    logged = add_log_entry(store, task.id.value, "Progress\n### Step 1\ndone", author="Ada")
    assert isinstance(logged, Ok)

    listed = store.list_all()
    assert isinstance(listed, Ok)
    assert [t.id for _, t in listed.value] == [task.id]
    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    assert loaded.value.log[-1].message == "Progress\n### Step 1\ndone"


def test_body_with_log_heading_line_round_trips(store) -> None:
    created = create_task(store, "Docs", "tester", body="Intro\n## Log\nnotes about logging")
    assert isinstance(created, Ok)
    location, task, _ = created.value

    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    assert loaded.value == task
    assert loaded.value.body == "Intro\n## Log\nnotes about logging"
    assert loaded.value.log == []


def test_stop_requires_in_progress(store, make_task) -> None:
    _, task = make_task("Idle")
    result = stop_task(store, task.id.value, author="tester")
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidTransition)


def test_closing_blocker_makes_dependent_ready(store, make_task) -> None:
    _, b = make_task("B")
    _, a = make_task("A", blocked_by=[b.id.value])
    assert _status(store, a.id.value) == Status.BLOCKED

    closed = close_task(store, b.id.value, author="tester", reason="done")
    assert isinstance(closed, Ok)
    location, _, events = closed.value
    assert store.status_from_path(location) == Status.CLOSED
    assert [e.to_status for e in events] == [Status.CLOSED, Status.OPEN]

    assert a.id.value in _ready_ids(store)
    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    assert loaded.value.log[-1].message == "Closed: done"


def test_cancel_counts_as_resolved(store, make_task) -> None:
    _, b = make_task("B")
    _, a = make_task("A", blocked_by=[b.id.value])

    assert isinstance(cancel_task(store, b.id.value, author="tester"), Ok)
    assert _status(store, a.id.value) == Status.OPEN


def test_closing_twice_is_invalid(store, make_task) -> None:
    _, task = make_task("Once")
    assert isinstance(close_task(store, task.id.value, author="tester"), Ok)
    again = close_task(store, task.id.value, author="tester")
    assert isinstance(again, Err)
    assert isinstance(again.error, InvalidTransition)


def test_reopen_reblocks_dependents(store, make_task) -> None:
    _, b = make_task("B")
    _, a = make_task("A", blocked_by=[b.id.value])
    close_task(store, b.id.value, author="tester")
    assert _status(store, a.id.value) == Status.OPEN

    reopened = reopen_task(store, b.id.value, author="tester")
    assert isinstance(reopened, Ok)
    assert _status(store, b.id.value) == Status.OPEN
    assert _status(store, a.id.value) == Status.BLOCKED


def test_block_and_unblock(store, make_task) -> None:
    _, a = make_task("A")
    _, b = make_task("B")

    blocked = block_task(store, a.id.value, b.id.value, author="tester")
    assert isinstance(blocked, Ok)
    _, dependency, status_event = blocked.value
    assert dependency is not None and dependency.added
    assert status_event is not None and status_event.to_status == Status.BLOCKED

    again = block_task(store, a.id.value, b.id.value, author="tester")
    assert isinstance(again, Ok)
    assert again.value[1] is None

    unblocked = unblock_task(store, a.id.value, b.id.value[:4], author="tester")
    assert isinstance(unblocked, Ok)
    assert _status(store, a.id.value) == Status.OPEN


def test_block_refuses_self_and_cycles(store, make_task) -> None:
    _, a = make_task("A")
    _, b = make_task("B", blocked_by=[a.id.value])

    self_block = block_task(store, a.id.value, a.id.value, author="tester")
    assert isinstance(self_block, Err)
    assert isinstance(self_block.error, DependencyCycle)

    cycle = block_task(store, a.id.value, b.id.value, author="tester")
    assert isinstance(cycle, Err)
    assert isinstance(cycle.error, DependencyCycle)


def test_unblock_removes_dangling_reference(store, make_task) -> None:
    location, a = make_task("A")
    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    task = loaded.value
    task.frontmatter.blocked_by.append(TaskId("deadbeef"))
    store.save(task, location)

    result = unblock_task(store, a.id.value, "dead", author="tester")
    assert isinstance(result, Ok)
    reloaded = store.load(location)
    assert isinstance(reloaded, Ok)
    assert reloaded.value.blocked_by == []


def test_update_and_log(store, make_task) -> None:
    location, task = make_task("Old title", tags=["a"])

    updated = update_task(
        store,
        task.id.value,
        title="New title",
        priority=Priority.HIGH,
        add_tag="b",
        body="Details",
    )
    assert isinstance(updated, Ok)
    _, new_task, changed = updated.value
    assert changed
    assert new_task.title == "New title"
    assert new_task.priority == Priority.HIGH
    assert new_task.frontmatter.tags == ["a", "b"]

    logged = add_log_entry(store, task.id.value, "First line\nsecond", author="Ada")
    assert isinstance(logged, Ok)
    loaded = store.load(location)
    assert isinstance(loaded, Ok)
    assert loaded.value.log[-1].author == "Ada"
    assert loaded.value.log[-1].summary == "First line"
    assert loaded.value.body == "Details"


def test_next_prefers_priority_over_age(store, make_task) -> None:
    make_task("Low and old", priority=Priority.LOW)
    _, critical = make_task("Critical and new", priority=Priority.CRITICAL)

    result = next_task(store)
    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value[1].id == critical.id
