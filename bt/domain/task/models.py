"""Task domain models.

Pure domain models for task records. Uses Pydantic for validation of the
frontmatter read back from disk.

Status is deliberately absent from the record: it is derived from the
directory a task file lives in (see ``bt.infrastructure.storage.store``).
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .types import TaskId


class Status(str, Enum):
    """Lifecycle stage of a task, one per repository directory."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES

    @property
    def is_resolved(self) -> bool:
        """Closed and cancelled tasks no longer block anything."""
        return self in RESOLVED_STATUSES


ACTIVE_STATUSES = frozenset({Status.OPEN, Status.IN_PROGRESS, Status.BLOCKED})
RESOLVED_STATUSES = frozenset({Status.CLOSED, Status.CANCELLED})
WORKABLE_STATUSES = frozenset({Status.OPEN, Status.IN_PROGRESS})


class Priority(str, Enum):
    """Task priority, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank: critical=0 ... low=3."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(UTC).replace(microsecond=0)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def canonical_text(value: str) -> str:
    """Stored form of free text: "\\n" line endings, outer newlines removed."""
    return value.replace("\r\n", "\n").replace("\r", "\n").strip("\n")


class LogEntry(BaseModel):
    """One entry of a task's append-only activity log."""

    timestamp: datetime
    author: str
    message: str = ""

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("author")
    @classmethod
    def _single_line_author(cls, value: str) -> str:
        author = " ".join(value.split())
        if not author:
            raise ValueError("author cannot be blank")
        return author

    @field_validator("message")
    @classmethod
    def _normalize_message(cls, value: str) -> str:
        return canonical_text(value)

    @property
    def summary(self) -> str:
        """First non-blank message line, used by one-line displays."""
        for line in self.message.splitlines():
            if line.strip():
                return line.strip()
        return ""


class Frontmatter(BaseModel):
    """Structured header of a task record."""

    title: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    blocked_by: list[TaskId] = Field(default_factory=list)
    created: datetime
    updated: datetime
    author: str | None = None

    @field_validator("blocked_by", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [TaskId(str(v)) if not isinstance(v, TaskId) else v for v in value]
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _lowercase_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("created", "updated")
    @classmethod
    def _normalize_timestamps(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Task(BaseModel):
    """A task record: identity, frontmatter, free-text body and log."""

    id: TaskId
    frontmatter: Frontmatter
    body: str = ""
    log: list[LogEntry] = Field(default_factory=list)

    @field_validator("body")
    @classmethod
    def _normalize_body(cls, value: str) -> str:
        return canonical_text(value)

    @classmethod
    def new(
        cls,
        title: str,
        author: str | None = None,
        *,
        priority: Priority = Priority.MEDIUM,
        tags: list[str] | None = None,
        body: str = "",
        now: datetime | None = None,
    ) -> "Task":
        """Build a fresh task with a generated id."""
        timestamp = now or utc_now()
        return cls(
            id=TaskId.generate(),
            frontmatter=Frontmatter(
                title=title,
                priority=priority,
                tags=list(tags or []),
                created=timestamp,
                updated=timestamp,
                author=author,
            ),
            body=body,
        )

    @property
    def title(self) -> str:
        return self.frontmatter.title

    @property
    def priority(self) -> Priority:
        return self.frontmatter.priority

    @property
    def blocked_by(self) -> list[TaskId]:
        return self.frontmatter.blocked_by

    def with_log(self, entry: LogEntry) -> "Task":
        """Return a copy with ``entry`` appended and ``updated`` bumped."""
        frontmatter = self.frontmatter.model_copy(update={"updated": entry.timestamp})
        return self.model_copy(
            update={"frontmatter": frontmatter, "log": [*self.log, entry]}
        )

    def body_preview(self, max_len: int = 80) -> str:
        """First non-blank body line, truncated to ``max_len`` characters."""
        for line in self.body.splitlines():
            if line.strip():
                preview = line.strip()
                if len(preview) <= max_len:
                    return preview
                return preview[: max_len - 3] + "..."
        return ""
