"""Timeline (Gantt feed) value objects."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ...shared.base import ValueObject
from .enums import HierarchyLevel


class TimelineEntry(ValueObject):
    """One bar of the flattened schedule, with its full ancestor chain."""

    id: str
    label: str
    level: HierarchyLevel
    depth: int = Field(ge=0, le=3)
    start: datetime
    end: datetime
    progress_percent: int = Field(ge=0, le=100)
    status: str

    order_id: UUID
    mo_id: UUID | None = None
    jobsheet_id: UUID | None = None
    task_id: UUID | None = None
    machine_id: UUID | None = None

    @property
    def entity_id(self) -> UUID:
        """Id of the entity this bar represents."""
        return {
            HierarchyLevel.ORDER: self.order_id,
            HierarchyLevel.MO: self.mo_id,
            HierarchyLevel.JOBSHEET: self.jobsheet_id,
            HierarchyLevel.TASK: self.task_id,
        }[self.level]

    @property
    def ancestor_ids(self) -> list[UUID]:
        """Ids from the order down to the direct parent."""
        chain = [self.order_id, self.mo_id, self.jobsheet_id]
        return [ancestor for ancestor in chain[: self.depth] if ancestor is not None]

    @staticmethod
    def make_id(level: HierarchyLevel, entity_id: UUID) -> str:
        return f"{level.value}-{entity_id}"
