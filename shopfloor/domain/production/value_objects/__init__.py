from .context import RequestContext
from .enums import (
    BreakdownType,
    ClockAction,
    HierarchyLevel,
    JobsheetStatus,
    MachineStatus,
    MOStatus,
    OrderStatus,
    TaskStatus,
)
from .time_window import TimeWindow, first_known
from .timeline import TimelineEntry

__all__ = [
    "RequestContext",
    "BreakdownType",
    "ClockAction",
    "HierarchyLevel",
    "JobsheetStatus",
    "MachineStatus",
    "MOStatus",
    "OrderStatus",
    "TaskStatus",
    "TimeWindow",
    "first_known",
    "TimelineEntry",
]
