"""Markdown file storage with Result-based error handling.

A thin wrapper around file I/O for task records, returning Result types
instead of raising exceptions. It holds no domain logic beyond calling the
codec.
"""

import logging
import os
from pathlib import Path

from bt.domain.shared import Err, IOFailure, MalformedRecord, Ok, Result
from bt.domain.task import Task, TaskId
from bt.infrastructure.storage.codec import decode_task, encode_task

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".md"


class MarkdownStorage:
    """Low-level record I/O.

    Writes go to a temporary sibling first and are moved into place with
    ``os.replace`` so a crash never leaves a half-written record.

    Example:
        storage = MarkdownStorage()
        result = storage.load_task(Path(".tasks/open/3f2a.md"))
        if isinstance(result, Ok):
            task = result.value
    """

    def read_text(self, path: Path) -> Result[str, IOFailure]:
        """Read a UTF-8 text file."""
        try:
            return Ok(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Err(IOFailure(path, "File not found"))
        except PermissionError:
            return Err(IOFailure(path, "Permission denied reading"))
        except UnicodeDecodeError:
            return Err(IOFailure(path, "Not valid UTF-8"))
        except OSError as e:
            return Err(IOFailure(path, f"Error reading ({e.strerror})"))

    def write_text(self, path: Path, content: str) -> Result[None, IOFailure]:
        """Atomically replace ``path`` with ``content``."""
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, path)
            return Ok(None)
        except PermissionError:
            return Err(IOFailure(path, "Permission denied writing"))
        except OSError as e:
            return Err(IOFailure(path, f"Error writing ({e.strerror})"))
        finally:
            if tmp.exists():
                tmp.unlink()

    def load_task(self, path: Path) -> Result[Task, IOFailure | MalformedRecord]:
        """Read and decode the record at ``path``."""
        result = self.read_text(path)
        if isinstance(result, Err):
            return result
        try:
            task_id = TaskId(path.stem)
        except ValueError:
            return Err(MalformedRecord(path, "empty task id"))
        return decode_task(task_id, result.value, path)

    def save_task(self, path: Path, task: Task) -> Result[None, IOFailure]:
        """Encode ``task`` and write it to ``path``."""
        logger.debug("Writing %s", path)
        return self.write_text(path, encode_task(task))
