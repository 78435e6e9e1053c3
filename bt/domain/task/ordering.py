"""Ordering of ready tasks for "what to work on next"."""

from collections.abc import Iterable
from typing import TypeVar

from .models import Task

L = TypeVar("L")


def next_key(task: Task) -> tuple[int, object, str]:
    """Sort key: priority rank, then oldest creation time, then id.

    The id makes the order strict even when two tasks share a priority and
    a creation second.
    """
    return (task.priority.rank, task.frontmatter.created, task.id.value)


def sort_for_next(entries: Iterable[tuple[L, Task]]) -> list[tuple[L, Task]]:
    """Sort (location, task) pairs best-first."""
    return sorted(entries, key=lambda entry: next_key(entry[1]))


def select_next(entries: Iterable[tuple[L, Task]]) -> tuple[L, Task] | None:
    """Pick the single best (location, task) pair, or None if there is none."""
    ordered = sort_for_next(entries)
    return ordered[0] if ordered else None
