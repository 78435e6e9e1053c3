"""Storage infrastructure for bt.

Provides the markdown record codec, low-level file I/O, the status-directory
Store and repository-root discovery, using Result values for explicit error
handling.
"""

from bt.infrastructure.storage.codec import decode_task, encode_task
from bt.infrastructure.storage.discovery import find_tasks_root
from bt.infrastructure.storage.markdown_storage import MarkdownStorage
from bt.infrastructure.storage.store import CONFIG_FILE, TASKS_DIR, Store, TaskEntry

__all__ = [
    "MarkdownStorage",
    "Store",
    "TaskEntry",
    "TASKS_DIR",
    "CONFIG_FILE",
    "find_tasks_root",
    "decode_task",
    "encode_task",
]
