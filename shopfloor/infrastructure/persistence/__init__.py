"""
Record store implementations.
"""

from .in_memory import (
    InMemoryBreakdownStore,
    InMemoryJobsheetStore,
    InMemoryMachineStore,
    InMemoryManufacturingOrderStore,
    InMemoryOrderStore,
    InMemoryRecordStore,
    InMemoryTaskStore,
    build_in_memory_stores,
)

__all__ = [
    "InMemoryRecordStore",
    "InMemoryOrderStore",
    "InMemoryManufacturingOrderStore",
    "InMemoryJobsheetStore",
    "InMemoryTaskStore",
    "InMemoryMachineStore",
    "InMemoryBreakdownStore",
    "build_in_memory_stores",
]
