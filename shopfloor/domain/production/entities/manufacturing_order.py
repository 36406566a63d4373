"""Manufacturing order entity: a production sub-unit of an order."""

from uuid import UUID

from pydantic import Field

from ..value_objects.enums import HierarchyLevel, MOStatus
from .progress_node import ProgressNode


class ManufacturingOrder(ProgressNode):
    """MO; progress is the unweighted mean of its jobsheets."""

    level = HierarchyLevel.MO
    completed_status = MOStatus.COMPLETED
    in_progress_status = MOStatus.IN_PROGRESS
    pre_production_statuses = frozenset(
        {
            MOStatus.DRAFT,
            MOStatus.PLANNING,
            MOStatus.PLANNED,
            MOStatus.MATERIAL_PREPARATION,
        }
    )

    order_id: UUID
    mo_number: str = ""
    name: str = ""
    status: MOStatus = Field(default=MOStatus.PLANNED)

    @property
    def display_label(self) -> str:
        return f"{self.mo_number} - {self.name}"
