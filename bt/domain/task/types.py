"""Domain value objects for task identity.

``TaskId`` is an opaque, immutable identifier. Ids are compared by exact
string equality and "prefix of" is a case-sensitive character-wise check.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import uuid4

# Shortest prefix ever displayed, including for a single-task archive
MIN_PREFIX_LEN = 1


@dataclass(frozen=True, order=True)
class TaskId:
    """Unique identifier of a task.

    The id doubles as the record's filename stem, so it stays stable when a
    task moves between status directories.

    Example:
        task_id = TaskId.generate()
        short = task_id.shortest_unique_prefix(all_ids)  # e.g. "3f"
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("TaskId cannot be empty")

    @classmethod
    def generate(cls) -> "TaskId":
        """Create a new random id (32 lowercase hex characters)."""
        return cls(value=uuid4().hex)

    def __str__(self) -> str:
        return self.value

    def startswith(self, prefix: str) -> bool:
        """Check whether this id begins with ``prefix``."""
        return self.value.startswith(prefix)

    def shortest_unique_prefix(self, universe: Iterable["TaskId"]) -> str:
        """Return the shortest prefix no other id in ``universe`` shares.

        Ids equal to this one are ignored, so the universe may include the
        target itself. With no competing ids the result is the first
        ``MIN_PREFIX_LEN`` characters. If every proper prefix is shared
        (only possible when another id extends this one) the full id is
        returned.

        Args:
            universe: All ids the prefix must stay unique against.

        Returns:
            The shortest unique prefix string.
        """
        others = [other.value for other in universe if other.value != self.value]
        for length in range(MIN_PREFIX_LEN, len(self.value) + 1):
            prefix = self.value[:length]
            if not any(other.startswith(prefix) for other in others):
                return prefix
        return self.value


def shortest_unique_prefix(target: TaskId, universe: Iterable[TaskId]) -> str:
    """Function form of ``TaskId.shortest_unique_prefix``."""
    return target.shortest_unique_prefix(universe)
