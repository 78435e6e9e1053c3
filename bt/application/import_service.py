"""Bulk task creation from a YAML file.

Accepted shapes: a mapping with a ``tasks`` list, or a bare list. Each item::

    - ref: lexer              # optional local name for blocked_by
      title: Write the lexer  # required
      priority: high
      tags: [parser]
      body: |                 # or "description"
        Longer text.
      blocked_by: [grammar, 3f2a]   # local refs or existing ids/prefixes

Everything is validated and ordered before the first task is written, so a
bad reference or a cycle inside the file creates nothing.
"""

import logging
from collections import deque
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from bt.application.task_service import create_task
from bt.domain.shared import DependencyCycle, Err, IOFailure, Ok, Result, StoreError
from bt.domain.task import Priority, Task
from bt.infrastructure.storage import Store

logger = logging.getLogger(__name__)


class ImportItem(BaseModel):
    """One task definition from an import file."""

    ref: str | None = None
    title: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    body: str = ""
    blocked_by: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _lowercase_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("tags", "blocked_by", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(v) for v in value]
        return value

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ImportItem":
        data = dict(raw)
        if "body" not in data and "description" in data:
            data["body"] = data.pop("description")
        if data.get("ref") is not None:
            data["ref"] = str(data["ref"])
        return cls.model_validate(data)


def _read_items(path: Path) -> Result[list[ImportItem], StoreError]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(IOFailure(path, "File not found"))
    except OSError as e:
        return Err(IOFailure(path, f"Error reading ({e.strerror})"))

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(StoreError(f"Invalid YAML in {path}: {e}"))

    raw_items = data.get("tasks") if isinstance(data, dict) else data
    if not isinstance(raw_items, list):
        return Err(StoreError(f"{path}: expected a list of tasks"))

    items: list[ImportItem] = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            return Err(StoreError(f"{path}: task #{index} is not a mapping"))
        try:
            items.append(ImportItem.from_raw(raw))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            return Err(StoreError(f"{path}: task #{index}: {field}: {first['msg']}"))
    return Ok(items)


def _creation_order(items: list[ImportItem], local: dict[str, int]) -> Result[list[int], StoreError]:
    """Kahn's algorithm over local refs, keeping file order among peers."""
    dependents: dict[int, list[int]] = {i: [] for i in range(len(items))}
    indegree = {i: 0 for i in range(len(items))}
    for i, item in enumerate(items):
        for ref in dict.fromkeys(item.blocked_by):
            if ref in local:
                dependents[local[ref]].append(i)
                indegree[i] += 1

    queue = deque(i for i in range(len(items)) if indegree[i] == 0)
    order: list[int] = []
    while queue:
        n = queue.popleft()
        order.append(n)
        for dep in dependents[n]:
            indegree[dep] -= 1
            if indegree[dep] == 0:
                queue.append(dep)

    if len(order) != len(items):
        stuck = next(i for i in range(len(items)) if i not in order)
        blocker = next(r for r in items[stuck].blocked_by if r in local)
        return Err(DependencyCycle(items[stuck].ref or items[stuck].title, blocker))
    return Ok(order)


def import_tasks(
    store: Store,
    path: Path,
    *,
    author: str,
) -> Result[list[tuple[Path, Task]], StoreError]:
    """Create every task described in ``path``.

    Returns:
        Ok([(location, task), ...]) in creation order.
    """
    read = _read_items(path)
    if isinstance(read, Err):
        return read
    items = read.value

    local: dict[str, int] = {}
    for index, item in enumerate(items):
        if item.ref is None:
            continue
        if item.ref in local:
            return Err(StoreError(f"{path}: duplicate ref '{item.ref}'"))
        local[item.ref] = index

    # External references must resolve before anything is written
    for item in items:
        for ref in item.blocked_by:
            if ref in local:
                continue
            found = store.find(ref)
            if isinstance(found, Err):
                return found

    order = _creation_order(items, local)
    if isinstance(order, Err):
        return order

    created_ids: dict[int, str] = {}
    created: list[tuple[Path, Task]] = []
    for index in order.value:
        item = items[index]
        blockers = [created_ids[local[r]] if r in local else r for r in item.blocked_by]
        result = create_task(
            store,
            item.title,
            author,
            priority=item.priority,
            tags=item.tags,
            blocked_by=blockers,
            body=item.body,
        )
        if isinstance(result, Err):
            return result
        location, task, _ = result.value
        created_ids[index] = task.id.value
        created.append((location, task))

    logger.info("Imported %d task(s) from %s", len(created), path)
    return Ok(created)
