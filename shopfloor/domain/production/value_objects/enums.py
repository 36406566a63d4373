"""Domain enums for shop-floor production tracking."""

from enum import Enum


class OrderStatus(str, Enum):
    """Customer order status enumeration."""

    DRAFT = "DRAFT"
    PLANNING = "PLANNING"
    MATERIAL_PREPARATION = "MATERIAL_PREPARATION"
    IN_PRODUCTION = "IN_PRODUCTION"
    QC = "QC"
    COMPLETED = "COMPLETED"
    DELIVERED = "DELIVERED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Delivered, closed and cancelled orders drop off the schedule."""
        return self in {OrderStatus.DELIVERED, OrderStatus.CLOSED, OrderStatus.CANCELLED}


class MOStatus(str, Enum):
    """Manufacturing order status enumeration."""

    DRAFT = "DRAFT"
    PLANNING = "PLANNING"
    PLANNED = "PLANNED"
    MATERIAL_PREPARATION = "MATERIAL_PREPARATION"
    IN_PROGRESS = "IN_PROGRESS"
    QC = "QC"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class JobsheetStatus(str, Enum):
    """Jobsheet status enumeration."""

    PREPARING = "PREPARING"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskStatus(str, Enum):
    """Task execution status enumeration."""

    PENDING = "PENDING"  # Created, nobody assigned yet
    ASSIGNED = "ASSIGNED"  # Operator/machine assigned
    RUNNING = "RUNNING"  # Clocked in
    PAUSED = "PAUSED"  # Session open, work halted
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Check if task status is terminal."""
        return self in {TaskStatus.COMPLETED, TaskStatus.CANCELLED}

    @property
    def is_active(self) -> bool:
        """Check if an operator session is open on the task."""
        return self in {TaskStatus.RUNNING, TaskStatus.PAUSED}


class MachineStatus(str, Enum):
    """Machine status enumeration."""

    IDLE = "IDLE"
    BUSY = "BUSY"
    DOWN = "DOWN"

    @property
    def is_available_for_work(self) -> bool:
        return self == MachineStatus.IDLE


class BreakdownType(str, Enum):
    """Equipment failure categories."""

    MECHANICAL = "MECHANICAL"
    ELECTRICAL = "ELECTRICAL"
    MAINTENANCE = "MAINTENANCE"
    OTHER = "OTHER"


class ClockAction(str, Enum):
    """Operator actions accepted by the task lifecycle."""

    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    PAUSE = "pause"

    @classmethod
    def values(cls) -> list[str]:
        return [action.value for action in cls]


class HierarchyLevel(str, Enum):
    """Levels of the Order -> MO -> Jobsheet -> Task hierarchy."""

    ORDER = "order"
    MO = "mo"
    JOBSHEET = "jobsheet"
    TASK = "task"

    @property
    def depth(self) -> int:
        return _LEVEL_DEPTH[self]

    @property
    def parent(self) -> "HierarchyLevel | None":
        """The level directly above this one, None for orders."""
        return {
            HierarchyLevel.TASK: HierarchyLevel.JOBSHEET,
            HierarchyLevel.JOBSHEET: HierarchyLevel.MO,
            HierarchyLevel.MO: HierarchyLevel.ORDER,
            HierarchyLevel.ORDER: None,
        }[self]


_LEVEL_DEPTH = {
    HierarchyLevel.ORDER: 0,
    HierarchyLevel.MO: 1,
    HierarchyLevel.JOBSHEET: 2,
    HierarchyLevel.TASK: 3,
}
