# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable

import pytest

from bt.application import create_task
from bt.domain.shared import Ok
from bt.domain.task import Priority, Task
from bt.infrastructure.storage import Store

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def store(tmp_path: Path) -> Store:
    """Freshly initialized repository under a per-test directory."""
    result = Store.init(tmp_path)
    assert isinstance(result, Ok)
    return result.value


@pytest.fixture()
def make_task(store: Store) -> Callable[..., tuple[Path, Task]]:
    """
    Create tasks through the service layer with deterministic timestamps.

    Each call is one minute after the previous one unless ``now`` is given.
    """
    counter = {"n": 0}

    def _make(
        title: str,
        *,
        priority: Priority = Priority.MEDIUM,
        blocked_by: list[str] | None = None,
        tags: list[str] | None = None,
        body: str = "",
        now: datetime | None = None,
    ) -> tuple[Path, Task]:
        stamp = now or T0 + timedelta(minutes=counter["n"])
        counter["n"] += 1
        result = create_task(
            store,
            title,
            "tester",
            priority=priority,
            tags=tags or [],
            blocked_by=blocked_by or [],
            body=body,
            now=stamp,
        )
        assert isinstance(result, Ok), result
        location, task, _ = result.value
        return location, task

    return _make
