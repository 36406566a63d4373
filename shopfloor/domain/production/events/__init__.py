"""
Domain Events Module

Exports all domain events and event handling infrastructure.
"""

from .domain_events import (
    BreakdownReported,
    BreakdownResolved,
    DomainEventDispatcher,
    DomainEventHandler,
    MachineStatusChanged,
    ProgressRecomputed,
    TaskClockedIn,
    TaskClockedOut,
    TaskPaused,
    TaskProgressUpdated,
)

__all__ = [
    # Dispatching
    "DomainEventHandler",
    "DomainEventDispatcher",
    # Task events
    "TaskClockedIn",
    "TaskClockedOut",
    "TaskPaused",
    "TaskProgressUpdated",
    # Hierarchy events
    "ProgressRecomputed",
    # Machine/breakdown events
    "MachineStatusChanged",
    "BreakdownReported",
    "BreakdownResolved",
]
