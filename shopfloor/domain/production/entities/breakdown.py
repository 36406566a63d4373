"""Breakdown entity: an equipment failure event against a machine."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ..events import BreakdownReported, BreakdownResolved
from ..value_objects.enums import BreakdownType
from ...shared.base import AggregateRoot, utc_now
from ...shared.exceptions import AlreadyResolvedError

DESCRIPTION_MAX_LENGTH = 2000


class Breakdown(AggregateRoot):
    """
    Breakdown record, optionally linked to the task that was running.

    A breakdown is created unresolved and can be resolved exactly once.
    """

    machine_id: UUID
    affected_task_id: UUID | None = None
    type: BreakdownType
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    notes: str | None = None
    reported_by: UUID | None = None
    reported_at: datetime = Field(default_factory=utc_now)

    resolved: bool = False
    resolved_at: datetime | None = None
    resolved_by: UUID | None = None
    resolution: str | None = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be blank")
        return v

    def is_valid(self) -> bool:
        if self.resolved:
            return self.resolved_at is not None
        return self.resolved_at is None

    def matches_report(
        self,
        machine_id: UUID,
        affected_task_id: UUID | None,
        breakdown_type: BreakdownType,
        description: str,
    ) -> bool:
        """Check whether an open breakdown describes the same failure report."""
        return (
            not self.resolved
            and self.machine_id == machine_id
            and self.affected_task_id == affected_task_id
            and self.type == breakdown_type
            and self.description == description.strip()
        )

    @staticmethod
    def report(
        tenant_id: str,
        machine_id: UUID,
        breakdown_type: BreakdownType,
        description: str,
        reported_by: UUID | None = None,
        affected_task_id: UUID | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> "Breakdown":
        """Factory method to create a new, unresolved breakdown."""
        now = now or utc_now()
        breakdown = Breakdown(
            tenant_id=tenant_id,
            machine_id=machine_id,
            affected_task_id=affected_task_id,
            type=breakdown_type,
            description=description,
            notes=notes,
            reported_by=reported_by,
            reported_at=now,
            created_at=now,
        )
        breakdown.add_domain_event(
            BreakdownReported(
                aggregate_id=breakdown.id,
                tenant_id=tenant_id,
                breakdown_id=breakdown.id,
                machine_id=machine_id,
                affected_task_id=affected_task_id,
                breakdown_type=breakdown_type,
            )
        )
        return breakdown

    def resolve(
        self,
        resolved_by: UUID | None,
        resolution: str,
        now: datetime | None = None,
    ) -> None:
        """
        Close out the breakdown.

        Raises:
            AlreadyResolvedError: If the breakdown was resolved before
        """
        if self.resolved:
            raise AlreadyResolvedError(self.id)

        now = now or utc_now()
        self.resolved = True
        self.resolved_at = now
        self.resolved_by = resolved_by
        self.resolution = resolution
        self.mark_updated(now)

        self.add_domain_event(
            BreakdownResolved(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                breakdown_id=self.id,
                machine_id=self.machine_id,
                affected_task_id=self.affected_task_id,
                resolved_by=resolved_by,
            )
        )
