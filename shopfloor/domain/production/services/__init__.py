"""
Domain services for the production hierarchy.
"""

from .base import ProductionService
from .breakdown_coordinator import BreakdownCoordinator
from .progress_aggregator import (
    CascadePlan,
    CascadeResult,
    CascadeStep,
    ProgressAggregator,
    jobsheet_progress,
    mean_progress,
    mo_progress,
    order_progress,
)
from .task_lifecycle_service import TaskLifecycleService
from .timeline_flattener import (
    JobsheetTree,
    MOTree,
    OrderTree,
    TimelineFlattener,
    flatten_timeline,
)

__all__ = [
    "ProductionService",
    # Progress
    "ProgressAggregator",
    "CascadeStep",
    "CascadePlan",
    "CascadeResult",
    "jobsheet_progress",
    "mo_progress",
    "order_progress",
    "mean_progress",
    # Lifecycle
    "TaskLifecycleService",
    # Breakdowns
    "BreakdownCoordinator",
    # Timeline
    "TimelineFlattener",
    "OrderTree",
    "MOTree",
    "JobsheetTree",
    "flatten_timeline",
]
