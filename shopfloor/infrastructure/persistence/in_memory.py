"""
In-Memory Record Stores

Dictionary-backed implementations of the production record stores. Every
read and write goes through snapshot(), so callers never share an instance
with the store. Useful for tests, demos and embedding the engine without a
database.
"""

from typing import ClassVar
from uuid import UUID

from ...core.observability import get_logger
from ...domain.production.entities import (
    Breakdown,
    Jobsheet,
    Machine,
    ManufacturingOrder,
    Order,
    Task,
)
from ...domain.production.repositories import (
    BreakdownStore,
    JobsheetStore,
    MachineStore,
    ManufacturingOrderStore,
    OrderStore,
    ProductionStores,
    RecordStore,
    TaskStore,
)
from ...domain.production.repositories.record_store import EntityT
from ...domain.shared.exceptions import EntityNotFoundError, StoreError

logger = get_logger(__name__)


class InMemoryRecordStore(RecordStore[EntityT]):
    """Generic dictionary store keyed by entity id."""

    entity_type: ClassVar[str] = "entity"
    # Attribute holding the parent id, None for root entities
    parent_field: ClassVar[str | None] = None

    def __init__(self, entities: list[EntityT] | None = None) -> None:
        self._records: dict[UUID, EntityT] = {}
        for entity in entities or []:
            self._records[entity.id] = entity.snapshot()

    def __len__(self) -> int:
        return len(self._records)

    async def find_by_id(self, entity_id: UUID) -> EntityT | None:
        entity = self._records.get(entity_id)
        return entity.snapshot() if entity is not None else None

    async def find_many_by_parent(self, parent_id: UUID) -> list[EntityT]:
        if self.parent_field is None:
            return []
        return [
            entity.snapshot()
            for entity in self._records.values()
            if getattr(entity, self.parent_field) == parent_id
        ]

    async def find_all(self, tenant_id: str) -> list[EntityT]:
        return [
            entity.snapshot()
            for entity in self._records.values()
            if entity.tenant_id == tenant_id
        ]

    async def create(self, entity: EntityT) -> EntityT:
        if entity.id in self._records:
            raise StoreError(
                f"{self.entity_type} {entity.id} already exists",
                operation="create",
                entity_type=self.entity_type,
                entity_id=entity.id,
            )
        self._records[entity.id] = entity.snapshot()
        logger.debug("record_created", entity_type=self.entity_type, entity_id=str(entity.id))
        return entity.snapshot()

    async def update(self, entity: EntityT) -> EntityT:
        if entity.id not in self._records:
            raise EntityNotFoundError(entity.id, self.entity_type)
        self._records[entity.id] = entity.snapshot()
        return entity.snapshot()

    async def delete(self, entity_id: UUID) -> None:
        if entity_id not in self._records:
            raise EntityNotFoundError(entity_id, self.entity_type)
        del self._records[entity_id]
        logger.debug("record_deleted", entity_type=self.entity_type, entity_id=str(entity_id))


class InMemoryOrderStore(InMemoryRecordStore[Order], OrderStore):
    entity_type = "order"


class InMemoryManufacturingOrderStore(
    InMemoryRecordStore[ManufacturingOrder], ManufacturingOrderStore
):
    entity_type = "manufacturing_order"
    parent_field = "order_id"


class InMemoryJobsheetStore(InMemoryRecordStore[Jobsheet], JobsheetStore):
    entity_type = "jobsheet"
    parent_field = "mo_id"


class InMemoryTaskStore(InMemoryRecordStore[Task], TaskStore):
    entity_type = "task"
    parent_field = "jobsheet_id"


class InMemoryMachineStore(InMemoryRecordStore[Machine], MachineStore):
    entity_type = "machine"


class InMemoryBreakdownStore(InMemoryRecordStore[Breakdown], BreakdownStore):
    entity_type = "breakdown"
    parent_field = "machine_id"

    async def find_unresolved_by_machine(self, machine_id: UUID) -> list[Breakdown]:
        return [
            breakdown.snapshot()
            for breakdown in self._records.values()
            if breakdown.machine_id == machine_id and not breakdown.resolved
        ]


def build_in_memory_stores() -> ProductionStores:
    """Fresh, empty stores for every entity type."""
    return ProductionStores(
        orders=InMemoryOrderStore(),
        manufacturing_orders=InMemoryManufacturingOrderStore(),
        jobsheets=InMemoryJobsheetStore(),
        tasks=InMemoryTaskStore(),
        machines=InMemoryMachineStore(),
        breakdowns=InMemoryBreakdownStore(),
    )
