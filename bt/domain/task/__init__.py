"""Task domain - identity, lifecycle and dependency logic.

All exports are pure (no I/O, no side effects).

Key Types:
    TaskId - Opaque task identifier
    Status - Lifecycle stage (one per repository directory)
    Priority - Task urgency
    Frontmatter / LogEntry / Task - Record structure
    PrefixResolver - Short ids across the whole archive

Graph Functions:
    unresolved_blockers / is_ready - Readiness
    would_create_cycle - Guard for new edges
    build_forest - Ordered, deduplicated dependency tree

Ordering:
    select_next / sort_for_next - Priority then age

Domain Events:
    TaskCreated, StatusChanged, DependencyChanged
"""

from .events import DependencyChanged, DomainEvent, StatusChanged, TaskCreated
from .graph import (
    DependencyForest,
    TreeNode,
    build_forest,
    edges_of,
    is_ready,
    unresolved_blockers,
    walk,
    would_create_cycle,
)
from .lifecycle import ALLOWED_TRANSITIONS, can_transition
from .models import (
    ACTIVE_STATUSES,
    RESOLVED_STATUSES,
    WORKABLE_STATUSES,
    Frontmatter,
    LogEntry,
    Priority,
    Status,
    Task,
    utc_now,
)
from .ordering import next_key, select_next, sort_for_next
from .prefix import PrefixResolver
from .types import MIN_PREFIX_LEN, TaskId, shortest_unique_prefix

__all__ = [
    # Identity
    "TaskId",
    "MIN_PREFIX_LEN",
    "shortest_unique_prefix",
    "PrefixResolver",
    # Models
    "Status",
    "Priority",
    "Frontmatter",
    "LogEntry",
    "Task",
    "ACTIVE_STATUSES",
    "RESOLVED_STATUSES",
    "WORKABLE_STATUSES",
    "utc_now",
    # Lifecycle
    "ALLOWED_TRANSITIONS",
    "can_transition",
    # Graph
    "unresolved_blockers",
    "is_ready",
    "would_create_cycle",
    "edges_of",
    "build_forest",
    "walk",
    "TreeNode",
    "DependencyForest",
    # Ordering
    "next_key",
    "select_next",
    "sort_for_next",
    # Events
    "DomainEvent",
    "TaskCreated",
    "StatusChanged",
    "DependencyChanged",
]
