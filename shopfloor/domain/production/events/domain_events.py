"""
Domain Events

Events raised by tasks, machines, breakdowns and the progress cascade, plus
the dispatcher that hands them to registered handlers.
"""

from datetime import datetime
from uuid import UUID

from ....core.observability import get_logger
from ...shared.base import DomainEvent
from ..value_objects.enums import (
    BreakdownType,
    HierarchyLevel,
    MachineStatus,
    TaskStatus,
)

logger = get_logger(__name__)


class TaskClockedIn(DomainEvent):
    """Raised when an operator opens a session on a task."""

    task_id: UUID
    jobsheet_id: UUID
    clocked_in_at: datetime
    previous_status: TaskStatus


class TaskClockedOut(DomainEvent):
    """Raised when an operator closes a session on a task."""

    task_id: UUID
    jobsheet_id: UUID
    clocked_out_at: datetime
    actual_hours: float | None


class TaskPaused(DomainEvent):
    """Raised when task work is halted without closing the session."""

    task_id: UUID
    jobsheet_id: UUID
    previous_status: TaskStatus


class TaskProgressUpdated(DomainEvent):
    """Raised when a task's authoritative progress changes."""

    task_id: UUID
    jobsheet_id: UUID
    old_progress: int
    new_progress: int


class ProgressRecomputed(DomainEvent):
    """Raised when a cascade step rewrites a parent's derived progress."""

    level: HierarchyLevel
    old_progress: int
    new_progress: int
    old_status: str
    new_status: str


class MachineStatusChanged(DomainEvent):
    """Raised when machine status changes."""

    machine_id: UUID
    old_status: MachineStatus
    new_status: MachineStatus
    reason: str | None = None


class BreakdownReported(DomainEvent):
    """Raised when a machine failure is recorded."""

    breakdown_id: UUID
    machine_id: UUID
    affected_task_id: UUID | None
    breakdown_type: BreakdownType


class BreakdownResolved(DomainEvent):
    """Raised when a machine failure is closed out."""

    breakdown_id: UUID
    machine_id: UUID
    affected_task_id: UUID | None
    resolved_by: UUID | None


# Event Handler Interface
class DomainEventHandler:
    """Base interface for domain event handlers."""

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the given event."""
        raise NotImplementedError

    def handle(self, event: DomainEvent) -> None:
        """Handle the domain event."""
        raise NotImplementedError


class DomainEventDispatcher:
    """Dispatches domain events to registered handlers."""

    def __init__(self) -> None:
        self._handlers: list[DomainEventHandler] = []

    def register_handler(self, handler: DomainEventHandler) -> None:
        """Register an event handler."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unregister_handler(self, handler: DomainEventHandler) -> None:
        """Unregister an event handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def dispatch(self, event: DomainEvent) -> None:
        """Dispatch an event to all capable handlers."""
        for handler in self._handlers:
            if handler.can_handle(event):
                try:
                    handler.handle(event)
                except Exception:
                    # Handlers run after commit; failures are only logged
                    logger.exception(
                        "event_handler_failed",
                        event_id=str(event.event_id),
                        event_name=event.event_name,
                        handler=type(handler).__name__,
                    )

    def dispatch_all(self, events: list[DomainEvent]) -> None:
        """Dispatch multiple events."""
        for event in events:
            self.dispatch(event)
