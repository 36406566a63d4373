"""
Repository interfaces for the production domain.
"""

from .record_store import (
    BreakdownStore,
    JobsheetStore,
    MachineStore,
    ManufacturingOrderStore,
    OrderStore,
    RecordStore,
    TaskStore,
)
from .stores import ProductionStores

__all__ = [
    "RecordStore",
    "OrderStore",
    "ManufacturingOrderStore",
    "JobsheetStore",
    "TaskStore",
    "MachineStore",
    "BreakdownStore",
    "ProductionStores",
]
