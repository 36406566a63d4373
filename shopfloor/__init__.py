"""
Shop-floor execution tracking: operator clock actions, progress roll-up,
machine breakdowns and the production timeline.
"""

from .application.dtos import ReportBreakdownRequest
from .application.services.production_engine import ProductionEngine
from .core.config import Settings, get_settings
from .domain.production.services import CascadeResult
from .domain.production.value_objects import HierarchyLevel, RequestContext, TimelineEntry
from .infrastructure.persistence import build_in_memory_stores

__all__ = [
    "ProductionEngine",
    "ReportBreakdownRequest",
    "RequestContext",
    "HierarchyLevel",
    "CascadeResult",
    "TimelineEntry",
    "Settings",
    "get_settings",
    "build_in_memory_stores",
]
