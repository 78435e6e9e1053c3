"""Status transition table.

The store moves files wherever it is told; this table is what the
application layer checks before asking it to.
"""

from .models import Status

ALLOWED_TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.OPEN: frozenset(
        {Status.IN_PROGRESS, Status.BLOCKED, Status.CLOSED, Status.CANCELLED}
    ),
    Status.IN_PROGRESS: frozenset(
        {Status.OPEN, Status.BLOCKED, Status.CLOSED, Status.CANCELLED}
    ),
    # Unblocking always lands in open, never back in in-progress
    Status.BLOCKED: frozenset({Status.OPEN, Status.CLOSED, Status.CANCELLED}),
    # Reopen is the only exit from a terminal state
    Status.CLOSED: frozenset({Status.OPEN}),
    Status.CANCELLED: frozenset({Status.OPEN}),
}


def can_transition(current: Status, target: Status) -> bool:
    """Check whether a task may move from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]
