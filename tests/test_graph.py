# tests/test_graph.py

from __future__ import annotations

from datetime import UTC, datetime

from bt.domain.task import (
    Priority,
    Status,
    Task,
    TaskId,
    build_forest,
    is_ready,
    unresolved_blockers,
    walk,
    would_create_cycle,
)

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _task(task_id: str, title: str, *blockers: str) -> Task:
    task = Task.new(title, "tester", now=NOW)
    task = task.model_copy(update={"id": TaskId(task_id)})
    task.frontmatter.blocked_by = [TaskId(b) for b in blockers]
    return task


def _titles(forest) -> list[str]:
    return [node.title for node in walk(forest.roots)]


def test_readiness_ignores_resolved_and_dangling_blockers() -> None:
    task = _task("t", "T", "closed", "gone", "open")
    statuses = {TaskId("closed"): Status.CLOSED, TaskId("open"): Status.OPEN}

    assert unresolved_blockers(task, statuses) == [TaskId("open")]
    assert not is_ready(task, Status.OPEN, statuses)

    statuses[TaskId("open")] = Status.CANCELLED
    assert is_ready(task, Status.OPEN, statuses)
    assert is_ready(task, Status.IN_PROGRESS, statuses)
    assert not is_ready(task, Status.BLOCKED, statuses)
    assert not is_ready(task, Status.CLOSED, statuses)


def test_chain_prints_each_task_once_in_dependency_order() -> None:
    a = _task("a", "A")
    b = _task("b", "B", "a")
    c = _task("c", "C", "a", "b")

    forest = build_forest([c, b, a])

    assert _titles(forest) == ["A", "B", "C"]
    assert not forest.has_cycle
    # C hangs under B, the blocker placed last
    assert [n.title for n in forest.roots[0].children] == ["B"]
    assert [n.title for n in forest.roots[0].children[0].children] == ["C"]


def test_diamond_places_shared_child_once() -> None:
    root = _task("r", "Root")
    left = _task("l", "Left", "r")
    right = _task("x", "Right", "r")
    join = _task("j", "Join", "l", "x")

    forest = build_forest([join, right, left, root])

    assert _titles(forest) == ["Root", "Left", "Right", "Join"]
    assert forest.roots[0].children[1].children[0].active_blockers == [
        TaskId("l"),
        TaskId("x"),
    ]


def test_roots_and_siblings_sorted_by_title() -> None:
    forest = build_forest([_task("1", "zeta"), _task("2", "alpha"), _task("3", "mid", "2")])
    assert [n.title for n in forest.roots] == ["alpha", "zeta"]


def test_blockers_outside_active_set_do_not_constrain() -> None:
    task = _task("t", "T", "closed-or-missing")
    forest = build_forest([task])
    assert _titles(forest) == ["T"]
    assert forest.roots[0].ready


def test_mutual_cycle_is_reported_not_dropped() -> None:
    a = _task("a", "A", "b")
    b = _task("b", "B", "a")
    free = _task("f", "Free")

    forest = build_forest([a, b, free])

    assert _titles(forest) == ["Free"]
    assert forest.has_cycle
    assert forest.unresolved == [TaskId("a"), TaskId("b")]


def test_task_behind_cycle_is_also_unresolved() -> None:
    a = _task("a", "A", "b")
    b = _task("b", "B", "a")
    behind = _task("c", "C", "a")

    forest = build_forest([a, b, behind])

    assert forest.roots == []
    assert set(forest.unresolved) == {TaskId("a"), TaskId("b"), TaskId("c")}


def test_long_chain_does_not_hit_recursion_limit() -> None:
    tasks = [_task("n0", "n0000")]
    for i in range(1, 3000):
        tasks.append(_task(f"n{i}", f"n{i:04d}", f"n{i - 1}"))

    forest = build_forest(tasks)
    assert len(list(walk(forest.roots))) == 3000


def test_cycle_detection_direct_self() -> None:
    assert would_create_cycle([], TaskId("a"), TaskId("a")) is True


def test_cycle_detection_indirect() -> None:
    edges = [(TaskId("b"), TaskId("a")), (TaskId("c"), TaskId("b"))]
    assert would_create_cycle(edges, TaskId("a"), TaskId("c")) is True


def test_cycle_detection_ok() -> None:
    edges = [(TaskId("b"), TaskId("a")), (TaskId("c"), TaskId("b"))]
    assert would_create_cycle(edges, TaskId("d"), TaskId("c")) is False


def test_priority_rank_orders_critical_first() -> None:
    ranks = [p.rank for p in (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)]
    assert ranks == sorted(ranks)
