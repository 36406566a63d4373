"""
Breakdown DTOs for engine requests.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReportBreakdownRequest(BaseModel):
    """
    Request to report a machine breakdown.

    type and description are optional here so that a missing value is
    reported as a domain ValidationError by the engine rather than at
    construction time.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    machine_id: UUID
    type: str | None = Field(default=None, description="MECHANICAL, ELECTRICAL, MAINTENANCE or OTHER")
    description: str | None = Field(default=None, max_length=2000)
    notes: str | None = Field(default=None, max_length=2000)
    affected_task_id: UUID | None = None
