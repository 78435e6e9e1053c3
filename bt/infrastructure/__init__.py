"""Infrastructure layer for bt.

Clean interfaces for I/O, returning Result values for explicit error
handling.

Exports:
    Storage:
        - MarkdownStorage: Low-level record I/O
        - Store: Status-directory task repository
        - find_tasks_root: Repository discovery

    Git:
        - GitOperations: Author lookup
"""

from bt.infrastructure.git import GitOperations
from bt.infrastructure.storage import MarkdownStorage, Store, find_tasks_root

__all__ = [
    # Storage
    "MarkdownStorage",
    "Store",
    "find_tasks_root",
    # Git
    "GitOperations",
]
