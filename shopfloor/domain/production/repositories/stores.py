"""Bundle of record stores handed to the domain services."""

from dataclasses import dataclass

from .record_store import (
    BreakdownStore,
    JobsheetStore,
    MachineStore,
    ManufacturingOrderStore,
    OrderStore,
    TaskStore,
)


@dataclass(frozen=True)
class ProductionStores:
    """One store per entity type of the production hierarchy."""

    orders: OrderStore
    manufacturing_orders: ManufacturingOrderStore
    jobsheets: JobsheetStore
    tasks: TaskStore
    machines: MachineStore
    breakdowns: BreakdownStore
