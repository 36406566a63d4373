"""Machine entity for production resources."""

from datetime import datetime

from pydantic import Field

from ..events import MachineStatusChanged
from ..value_objects.enums import MachineStatus
from ...shared.base import AggregateRoot


class Machine(AggregateRoot):
    """A machine referenced (not owned) by tasks."""

    code: str = ""
    name: str = ""
    status: MachineStatus = Field(default=MachineStatus.IDLE)
    is_active: bool = True

    def is_valid(self) -> bool:
        return True

    @property
    def is_down(self) -> bool:
        return self.status == MachineStatus.DOWN

    def change_status(
        self,
        new_status: MachineStatus,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Set machine status and raise an event when it actually changes.

        Returns:
            True if the status changed
        """
        old_status = self.status
        if old_status == new_status:
            return False

        self.status = new_status
        self.mark_updated(now)

        self.add_domain_event(
            MachineStatusChanged(
                aggregate_id=self.id,
                tenant_id=self.tenant_id,
                machine_id=self.id,
                old_status=old_status,
                new_status=new_status,
                reason=reason,
            )
        )
        return True

    def mark_down(self, reason: str | None = None, now: datetime | None = None) -> bool:
        return self.change_status(MachineStatus.DOWN, reason, now)

    def mark_idle(self, reason: str | None = None, now: datetime | None = None) -> bool:
        return self.change_status(MachineStatus.IDLE, reason, now)
