"""Error taxonomy carried inside ``Err`` results.

The classes derive from ``Exception`` so they format like ordinary errors and
can be raised where a caller prefers exceptions, but store and service
functions hand them back as values.

Hierarchy:
    StoreError
    ├── InitializationError
    │   └── NotInitialized
    ├── LookupFailure
    │   ├── NotFound
    │   └── AmbiguousPrefix
    ├── IntegrityError
    │   ├── MalformedRecord
    │   ├── InvalidTransition
    │   └── DependencyCycle
    └── IOFailure
"""

from pathlib import Path


class StoreError(Exception):
    """Base class for every expected failure in bt."""


class InitializationError(StoreError):
    """The task repository layout is missing or unusable."""


class NotInitialized(InitializationError):
    def __init__(self, root: Path | None = None, detail: str = "") -> None:
        self.root = root
        self.detail = detail
        message = detail or "Not a bt-enabled directory. Run 'bt init' first."
        super().__init__(message)


class LookupFailure(StoreError):
    """An id or prefix did not resolve to exactly one task."""


class NotFound(LookupFailure):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class AmbiguousPrefix(LookupFailure):
    def __init__(self, prefix: str, candidates: list[str]) -> None:
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"Ambiguous prefix '{prefix}' matches {len(candidates)} tasks: "
            + ", ".join(candidates)
        )


class IntegrityError(StoreError):
    """Repository content violates an invariant."""


class MalformedRecord(IntegrityError):
    def __init__(self, location: Path, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"Malformed task record {location}: {reason}")


class InvalidTransition(IntegrityError):
    def __init__(self, task_id: str, current: str, target: str) -> None:
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(f"Cannot move task {task_id} from {current} to {target}")


class DependencyCycle(IntegrityError):
    def __init__(self, task_id: str, blocker_id: str) -> None:
        self.task_id = task_id
        self.blocker_id = blocker_id
        super().__init__(
            f"Blocking {task_id} by {blocker_id} would create a dependency cycle"
        )


class IOFailure(StoreError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")
