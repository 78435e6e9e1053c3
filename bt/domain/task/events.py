"""Task domain events.

Events are immutable records of something that happened to a task. The
application services return them alongside their results; the CLI logs
them.

All events are pure data structures - no I/O, no side effects.
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from .models import Status


class DomainEvent(BaseModel):
    """Base class for all domain events.

    Each event has a unique ID and timestamp.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}


class TaskCreated(DomainEvent):
    """Raised when a new task record is written."""

    task_id: str
    title: str
    status: Status


class StatusChanged(DomainEvent):
    """Raised when a task file moves to another status directory."""

    task_id: str
    title: str
    from_status: Status
    to_status: Status
    reason: str | None = None


class DependencyChanged(DomainEvent):
    """Raised when a blocker is added to or removed from a task."""

    task_id: str
    blocker_id: str
    added: bool
