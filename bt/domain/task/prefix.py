"""Short id resolution over a whole task archive."""

from collections.abc import Iterable

from .types import TaskId


class PrefixResolver:
    """Computes shortest unique prefixes against a fixed set of ids.

    Build it once per command from *every* task in the repository,
    closed and cancelled included, so a short id shown by one command still
    resolves when another command looks it up across the full archive.

    Example:
        resolver = PrefixResolver(task.id for _, task in all_tasks)
        resolver.shortest_prefix(task.id)  # "3f"
    """

    def __init__(self, ids: Iterable[TaskId]) -> None:
        self._ids: list[TaskId] = list(dict.fromkeys(ids))
        self._cache: dict[TaskId, str] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def shortest_prefix(self, task_id: TaskId) -> str:
        """Shortest prefix of ``task_id`` unique within the archive."""
        if task_id not in self._cache:
            self._cache[task_id] = task_id.shortest_unique_prefix(self._ids)
        return self._cache[task_id]
