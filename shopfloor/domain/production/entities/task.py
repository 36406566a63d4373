"""Task entity: the atomic unit of machine/operator work within a jobsheet."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ..events import TaskClockedIn, TaskClockedOut, TaskPaused, TaskProgressUpdated
from ..value_objects.enums import TaskStatus
from ..value_objects.rounding import round_half_up
from ..value_objects.time_window import TimeWindow
from ...shared.base import AggregateRoot, ensure_utc, utc_now


class Task(AggregateRoot):
    """
    Task entity owning its execution status and session timestamps.

    Progress on a task is authoritative: it is set by operators or
    automation and is the only input to the jobsheet/MO/order roll-up.
    Clock operations record sessions but never move progress.
    """

    jobsheet_id: UUID
    task_number: str = ""
    name: str = ""
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    progress_percent: int = Field(default=0, ge=0, le=100)

    # Planning data
    planned_hours: float | None = Field(default=None, ge=0)
    planned_start_date: datetime | None = None
    planned_end_date: datetime | None = None

    # Execution data
    actual_hours: float | None = Field(default=None, ge=0)
    clocked_in_at: datetime | None = None
    clocked_out_at: datetime | None = None

    # Breakdown tracking
    breakdown_at: datetime | None = None
    breakdown_note: str | None = None
    breakdown_resolved_at: datetime | None = None

    # Resource references
    machine_id: UUID | None = None
    assigned_to: UUID | None = None

    @field_validator("breakdown_note")
    @classmethod
    def strip_breakdown_note(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            return v or None
        return v

    def is_valid(self) -> bool:
        """Validate business rules."""
        return 0 <= self.progress_percent <= 100 and (
            self.planned_hours is None or self.planned_hours >= 0
        )

    @property
    def in_session(self) -> bool:
        """An operator session is open until an explicit clock-out."""
        return self.clocked_in_at is not None and self.clocked_out_at is None

    @property
    def has_open_breakdown(self) -> bool:
        return self.breakdown_note is not None

    @property
    def planned_window(self) -> TimeWindow | None:
        return TimeWindow.resolve(self.planned_start_date, self.planned_end_date)

    def clock_in(self, now: datetime | None = None) -> None:
        """
        Start (or restart) an operator session.

        Repeated clock-ins simply move the session start; a running task is
        not an error.
        """
        now = now or utc_now()
        previous_status = self.status

        self.clocked_in_at = now
        self.clocked_out_at = None
        self.status = TaskStatus.RUNNING
        self.mark_updated(now)

        self.add_domain_event(
            TaskClockedIn(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                task_id=self.id,
                jobsheet_id=self.jobsheet_id,
                clocked_in_at=now,
                previous_status=previous_status,
            )
        )

    def clock_out(self, now: datetime | None = None, precision: int = 2) -> bool:
        """
        Close the operator session and book the elapsed hours.

        Without a prior clock-in the hours are left untouched; the clock-out
        timestamp is still recorded. Status is left for the caller to settle.

        Returns:
            True if actual_hours was recomputed
        """
        now = ensure_utc(now or utc_now())
        booked = False

        if self.clocked_in_at is not None:
            elapsed = (now - self.clocked_in_at).total_seconds() / 3600
            self.actual_hours = float(round_half_up(max(elapsed, 0.0), precision))
            booked = True

        self.clocked_out_at = now
        self.mark_updated(now)

        self.add_domain_event(
            TaskClockedOut(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                task_id=self.id,
                jobsheet_id=self.jobsheet_id,
                clocked_out_at=now,
                actual_hours=self.actual_hours,
            )
        )
        return booked

    def pause(self, now: datetime | None = None) -> None:
        """Halt work; the session stays open until clock-out."""
        previous_status = self.status
        self.status = TaskStatus.PAUSED
        self.mark_updated(now)

        self.add_domain_event(
            TaskPaused(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                task_id=self.id,
                jobsheet_id=self.jobsheet_id,
                previous_status=previous_status,
            )
        )

    def update_progress(self, percent: int, now: datetime | None = None) -> bool:
        """
        Set authoritative progress.

        Returns:
            True if the value changed
        """
        old_progress = self.progress_percent
        if percent == old_progress:
            return False

        self.progress_percent = percent
        self.mark_updated(now)

        self.add_domain_event(
            TaskProgressUpdated(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                task_id=self.id,
                jobsheet_id=self.jobsheet_id,
                old_progress=old_progress,
                new_progress=percent,
            )
        )
        return True

    def record_breakdown(self, note: str, now: datetime | None = None) -> None:
        """Stamp an equipment failure; status and progress are untouched."""
        now = now or utc_now()
        self.breakdown_at = now
        self.breakdown_note = note
        self.mark_updated(now)

    def clear_breakdown(self, now: datetime | None = None) -> None:
        """Mark the failure resolved; resuming work is a separate operator action."""
        now = now or utc_now()
        self.breakdown_note = None
        self.breakdown_resolved_at = now
        self.mark_updated(now)
