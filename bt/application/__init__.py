"""Application service layer for bt.

Services combine domain rules with Store I/O and return Result values.
They never print; the CLI decides how to present outcomes.

Services:
    task_service - Create, transition, block/unblock, update and log tasks
    query_service - Listings, ready/next, activity, dependency tree, context
    import_service - Bulk creation from YAML

Example usage:
    >>> from bt.application import close_task
    >>> result = close_task(store, "3f", author="Ada", reason="shipped")
    >>> if isinstance(result, Ok):
    ...     location, task, events = result.value
"""

from bt.application.import_service import ImportItem, import_tasks
from bt.application.query_service import (
    ActivityEntry,
    BlockerInfo,
    TaskContext,
    TaskFilter,
    build_resolver,
    collect_activity,
    dependency_tree,
    list_tasks,
    next_task,
    ready_tasks,
    task_context,
)
from bt.application.task_service import (
    add_log_entry,
    block_task,
    cancel_task,
    close_task,
    create_task,
    reopen_task,
    start_task,
    stop_task,
    sync_blocked_status,
    sync_dependents,
    unblock_task,
    update_task,
)

__all__ = [
    # Task service
    "create_task",
    "start_task",
    "stop_task",
    "close_task",
    "cancel_task",
    "reopen_task",
    "block_task",
    "unblock_task",
    "update_task",
    "add_log_entry",
    "sync_blocked_status",
    "sync_dependents",
    # Query service
    "build_resolver",
    "TaskFilter",
    "list_tasks",
    "ready_tasks",
    "next_task",
    "ActivityEntry",
    "collect_activity",
    "dependency_tree",
    "BlockerInfo",
    "TaskContext",
    "task_context",
    # Import service
    "ImportItem",
    "import_tasks",
]
