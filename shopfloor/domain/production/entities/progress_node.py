"""Shared behaviour for hierarchy levels whose progress is derived from children."""

from abc import ABC
from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import Field

from ..events import ProgressRecomputed
from ..value_objects.enums import HierarchyLevel
from ..value_objects.time_window import TimeWindow
from ...shared.base import AggregateRoot, utc_now


class ProgressNode(AggregateRoot, ABC):
    """
    Base for Order, ManufacturingOrder and Jobsheet.

    progress_percent on these levels is never edited directly; it is only
    written by apply_recomputed_progress() from a fresh read of the children.
    """

    level: ClassVar[HierarchyLevel]
    completed_status: ClassVar[Enum]
    in_progress_status: ClassVar[Enum]
    # Statuses that a first non-zero progress moves forward to in-progress
    pre_production_statuses: ClassVar[frozenset[Enum]]

    progress_percent: int = Field(default=0, ge=0, le=100)
    planned_start_date: datetime | None = None
    planned_end_date: datetime | None = None
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None

    def is_valid(self) -> bool:
        return 0 <= self.progress_percent <= 100

    @property
    def planned_window(self) -> TimeWindow | None:
        return TimeWindow.resolve(self.planned_start_date, self.planned_end_date)

    @property
    def display_label(self) -> str:
        raise NotImplementedError

    def _derive_status(self, progress: int) -> Enum:
        status = self.status  # type: ignore[attr-defined]
        if progress >= 100:
            if status in self.pre_production_statuses or status in {
                self.in_progress_status,
                self.completed_status,
            }:
                return self.completed_status
            return status
        if status == self.completed_status:
            return self.in_progress_status
        if progress > 0 and status in self.pre_production_statuses:
            return self.in_progress_status
        return status

    def apply_recomputed_progress(
        self,
        progress: int,
        derive_status: bool = True,
        now: datetime | None = None,
    ) -> bool:
        """
        Overwrite derived progress (and optionally status) from a recompute.

        Returns:
            True if anything changed
        """
        now = now or utc_now()
        old_progress = self.progress_percent
        old_status = self.status  # type: ignore[attr-defined]
        new_status = self._derive_status(progress) if derive_status else old_status

        if progress == old_progress and new_status == old_status:
            return False

        self.progress_percent = progress
        if new_status != old_status:
            self.status = new_status  # type: ignore[attr-defined]
            if new_status == self.completed_status:
                self.actual_end_date = now
            elif old_status == self.completed_status:
                self.actual_end_date = None
            if (
                new_status in {self.in_progress_status, self.completed_status}
                and self.actual_start_date is None
            ):
                self.actual_start_date = now
        self.mark_updated(now)

        self.add_domain_event(
            ProgressRecomputed(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                level=self.level,
                old_progress=old_progress,
                new_progress=progress,
                old_status=old_status.value,
                new_status=new_status.value,
            )
        )
        return True
