"""Jobsheet entity: a grouped unit of shop-floor work within an MO."""

from uuid import UUID

from pydantic import Field

from ..value_objects.enums import HierarchyLevel, JobsheetStatus
from .progress_node import ProgressNode


class Jobsheet(ProgressNode):
    """Jobsheet; progress is the planned-hours weighted mean of its tasks."""

    level = HierarchyLevel.JOBSHEET
    completed_status = JobsheetStatus.COMPLETED
    in_progress_status = JobsheetStatus.IN_PROGRESS
    pre_production_statuses = frozenset({JobsheetStatus.PREPARING})

    mo_id: UUID
    js_number: str = ""
    name: str = ""
    status: JobsheetStatus = Field(default=JobsheetStatus.PREPARING)

    @property
    def display_label(self) -> str:
        return f"{self.js_number} - {self.name}"
