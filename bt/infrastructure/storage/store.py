"""Filesystem-backed task repository.

Layout under the project root::

    .tasks/
        config.yaml
        open/<id>.md
        in-progress/<id>.md
        blocked/<id>.md
        closed/<id>.md
        cancelled/<id>.md

A task's status is the directory holding its file. Nothing else records it,
so the two can never disagree. Moving a file is the status transition.

There is no locking: two bt processes rewriting the same record at once can
lose one of the updates. All state is re-read from disk on every call.
"""

import logging
import os
from pathlib import Path

from bt.domain.shared import (
    AmbiguousPrefix,
    Err,
    IOFailure,
    LookupFailure,
    MalformedRecord,
    NotFound,
    NotInitialized,
    Ok,
    Result,
    StoreError,
)
from bt.domain.task import (
    ACTIVE_STATUSES,
    Status,
    Task,
    TaskId,
    is_ready,
)
from bt.infrastructure.storage.markdown_storage import RECORD_SUFFIX, MarkdownStorage

logger = logging.getLogger(__name__)

TASKS_DIR = ".tasks"
CONFIG_FILE = "config.yaml"

_DIR_TO_STATUS = {status.value: status for status in Status}

TaskEntry = tuple[Path, Task]


class Store:
    """Repository of task records keyed by status directory.

    Every method returns a Result; expected failures (missing task,
    ambiguous prefix, unreadable record) come back as ``Err`` values.

    Example:
        result = Store.open(Path.cwd())
        if isinstance(result, Ok):
            store = result.value
            ready = store.list_ready()
    """

    def __init__(self, project_root: Path, storage: MarkdownStorage | None = None) -> None:
        """Wrap an existing repository. Use ``Store.open`` to validate it first.

        Args:
            project_root: Directory containing ``.tasks``.
            storage: MarkdownStorage instance to use. Creates new one if not provided.
        """
        self.project_root = project_root
        self.tasks_dir = project_root / TASKS_DIR
        self._storage = storage or MarkdownStorage()

    # =========================================================================
    # Opening
    # =========================================================================

    @classmethod
    def init(cls, project_root: Path) -> Result["Store", IOFailure]:
        """Create the directory layout under ``project_root`` (idempotent)."""
        store = cls(project_root)
        try:
            for status in Status:
                store.status_dir(status).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(IOFailure(store.tasks_dir, f"Cannot create layout ({e.strerror})"))
        logger.info("Initialized task repository at %s", store.tasks_dir)
        return Ok(store)

    @classmethod
    def open(cls, project_root: Path) -> Result["Store", NotInitialized]:
        """Open an existing repository.

        Returns:
            Ok(Store), or Err(NotInitialized) if any status directory is missing.
        """
        store = cls(project_root)
        missing = [s.value for s in Status if not store.status_dir(s).is_dir()]
        if missing:
            if store.tasks_dir.is_dir():
                return Err(
                    NotInitialized(
                        project_root,
                        f"Incomplete task repository at {store.tasks_dir} "
                        f"(missing: {', '.join(missing)}). Run 'bt init' to repair.",
                    )
                )
            return Err(NotInitialized(project_root))
        return Ok(store)

    @property
    def config_path(self) -> Path:
        return self.tasks_dir / CONFIG_FILE

    def status_dir(self, status: Status) -> Path:
        """Directory that holds tasks with ``status``."""
        return self.tasks_dir / status.value

    def status_from_path(self, location: Path) -> Status | None:
        """Derive a status from the directory part of ``location``.

        Pure path inspection; the file does not have to exist.
        """
        if location.parent.parent != self.tasks_dir:
            return None
        return _DIR_TO_STATUS.get(location.parent.name)

    def location_for(self, task_id: TaskId, status: Status) -> Path:
        return self.status_dir(status) / f"{task_id}{RECORD_SUFFIX}"

    # =========================================================================
    # Listing
    # =========================================================================

    def _record_paths(self) -> Result[list[tuple[Status, Path]], IOFailure]:
        paths: list[tuple[Status, Path]] = []
        for status in Status:
            directory = self.status_dir(status)
            try:
                names = sorted(
                    p
                    for p in directory.iterdir()
                    if p.suffix == RECORD_SUFFIX and not p.name.startswith(".")
                )
            except PermissionError:
                return Err(IOFailure(directory, "Permission denied listing"))
            except OSError as e:
                return Err(IOFailure(directory, f"Error listing ({e.strerror})"))
            paths.extend((status, p) for p in names)
        return Ok(paths)

    def _load_many(self, statuses: frozenset[Status] | None) -> Result[list[TaskEntry], IOFailure]:
        result = self._record_paths()
        if isinstance(result, Err):
            return result

        entries: list[TaskEntry] = []
        for status, path in result.value:
            if statuses is not None and status not in statuses:
                continue
            loaded = self._storage.load_task(path)
            if isinstance(loaded, Err):
                if isinstance(loaded.error, MalformedRecord):
                    # Still reachable through find/load, which report the problem
                    logger.warning("Skipping %s", loaded.error)
                    continue
                return loaded
            entries.append((path, loaded.value))
        return Ok(entries)

    def list_all(self) -> Result[list[TaskEntry], IOFailure]:
        """Every readable task, closed and cancelled included."""
        return self._load_many(None)

    def list_active(self) -> Result[list[TaskEntry], IOFailure]:
        """Open, in-progress and blocked tasks."""
        return self._load_many(ACTIVE_STATUSES)

    def status_map(self) -> Result[dict[TaskId, Status], IOFailure]:
        """Status of every record, read from filenames only."""
        result = self._record_paths()
        if isinstance(result, Err):
            return result

        statuses: dict[TaskId, Status] = {}
        for status, path in result.value:
            task_id = TaskId(path.stem)
            if task_id in statuses:
                logger.warning(
                    "Task %s exists in both %s and %s; using %s",
                    task_id,
                    statuses[task_id].value,
                    status.value,
                    statuses[task_id].value,
                )
                continue
            statuses[task_id] = status
        return Ok(statuses)

    def list_ready(self) -> Result[list[TaskEntry], IOFailure]:
        """Open or in-progress tasks with every blocker closed, cancelled or missing."""
        statuses = self.status_map()
        if isinstance(statuses, Err):
            return statuses
        active = self.list_active()
        if isinstance(active, Err):
            return active

        ready: list[TaskEntry] = []
        for location, task in active.value:
            status = self.status_from_path(location)
            if status is not None and is_ready(task, status, statuses.value):
                ready.append((location, task))
        return Ok(ready)

    # =========================================================================
    # Lookup
    # =========================================================================

    def find(self, id_or_prefix: str) -> Result[Path, LookupFailure | IOFailure]:
        """Resolve a full id or unique prefix across the whole archive.

        An exact id always wins, even if it is also a prefix of another id.

        Returns:
            Ok(location), Err(NotFound) for no match, or Err(AmbiguousPrefix)
            listing the candidate ids.
        """
        query = id_or_prefix.strip()
        if not query:
            return Err(NotFound(id_or_prefix))

        result = self._record_paths()
        if isinstance(result, Err):
            return result

        matches: dict[str, Path] = {}
        for _, path in result.value:
            if path.stem == query:
                return Ok(path)
            if path.stem.startswith(query):
                matches.setdefault(path.stem, path)

        if not matches:
            return Err(NotFound(query))
        if len(matches) > 1:
            return Err(AmbiguousPrefix(query, sorted(matches)))
        return Ok(next(iter(matches.values())))

    # =========================================================================
    # Reading and writing
    # =========================================================================

    def load(self, location: Path) -> Result[Task, StoreError]:
        """Read the task at ``location``."""
        return self._storage.load_task(location)

    def read_text(self, location: Path) -> Result[str, IOFailure]:
        """Raw content of the record at ``location``."""
        return self._storage.read_text(location)

    def find_and_load(self, id_or_prefix: str) -> Result[TaskEntry, StoreError]:
        """``find`` followed by ``load``."""
        found = self.find(id_or_prefix)
        if isinstance(found, Err):
            return found
        loaded = self.load(found.value)
        if isinstance(loaded, Err):
            return loaded
        return Ok((found.value, loaded.value))

    def save(self, task: Task, location: Path) -> Result[None, IOFailure]:
        """Rewrite the record in place; the status directory is unchanged."""
        if location.stem != task.id.value:
            return Err(IOFailure(location, f"Refusing to save task {task.id} over"))
        if not location.exists():
            return Err(IOFailure(location, "File not found"))
        return self._storage.save_task(location, task)

    def create(self, task: Task) -> Result[Path, IOFailure]:
        """Write a new task into ``open/`` and return its location."""
        for status in Status:
            existing = self.location_for(task.id, status)
            if existing.exists():
                return Err(IOFailure(existing, "Task already exists"))

        location = self.location_for(task.id, Status.OPEN)
        result = self._storage.save_task(location, task)
        if isinstance(result, Err):
            return result
        logger.debug("Created task %s at %s", task.id, location)
        return Ok(location)

    def move_to_status(self, location: Path, status: Status) -> Result[Path, IOFailure]:
        """Move a record into the ``status`` directory, keeping its filename.

        Returns:
            Ok(new_location). Moving to the current status is a no-op.
        """
        target = self.status_dir(status) / location.name
        if target == location:
            return Ok(location)
        if target.exists():
            return Err(IOFailure(target, "Target already exists"))
        try:
            os.replace(location, target)
        except FileNotFoundError:
            return Err(IOFailure(location, "File not found"))
        except PermissionError:
            return Err(IOFailure(location, "Permission denied moving"))
        except OSError as e:
            return Err(IOFailure(location, f"Error moving ({e.strerror})"))
        logger.debug("Moved %s -> %s", location, target)
        return Ok(target)
