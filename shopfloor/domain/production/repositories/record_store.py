"""
Record Store Interfaces

Defines the contract the persistence layer must implement for every entity
of the production hierarchy. Each call is an independent, atomic
single-entity operation; no multi-entity transaction is assumed.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar
from uuid import UUID

from ..entities.breakdown import Breakdown
from ..entities.jobsheet import Jobsheet
from ..entities.machine import Machine
from ..entities.manufacturing_order import ManufacturingOrder
from ..entities.order import Order
from ..entities.task import Task
from ...shared.base import Entity

EntityT = TypeVar("EntityT", bound=Entity)


class RecordStore(ABC, Generic[EntityT]):
    """
    Abstract repository interface for one entity type.

    Implementations must return detached copies (mutating a returned
    entity never changes stored state) and provide read-your-writes
    consistency within a request.
    """

    @abstractmethod
    async def find_by_id(self, entity_id: UUID) -> EntityT | None:
        """
        Retrieve an entity by its ID.

        Args:
            entity_id: Unique entity identifier

        Returns:
            Entity or None if not found

        Raises:
            StoreError: If retrieval operation fails
        """

    @abstractmethod
    async def find_many_by_parent(self, parent_id: UUID) -> list[EntityT]:
        """
        Retrieve the current full child set of a parent.

        Args:
            parent_id: Identifier of the owning entity

        Returns:
            All entities referencing the parent, possibly empty

        Raises:
            StoreError: If retrieval operation fails
        """

    @abstractmethod
    async def find_all(self, tenant_id: str) -> list[EntityT]:
        """
        Retrieve every entity of a tenant.

        Raises:
            StoreError: If retrieval operation fails
        """

    @abstractmethod
    async def create(self, entity: EntityT) -> EntityT:
        """
        Insert a new entity.

        Returns:
            Stored entity

        Raises:
            StoreError: If the entity exists or the insert fails
        """

    @abstractmethod
    async def update(self, entity: EntityT) -> EntityT:
        """
        Replace an existing entity atomically.

        Returns:
            Stored entity

        Raises:
            EntityNotFoundError: If the entity does not exist
            StoreError: If the update fails
        """

    @abstractmethod
    async def delete(self, entity_id: UUID) -> None:
        """
        Delete an entity. Cascading to children is the caller's job.

        Raises:
            EntityNotFoundError: If the entity does not exist
            StoreError: If the delete fails
        """


class OrderStore(RecordStore[Order]):
    """Orders have no parent; find_many_by_parent is unused for them."""


class ManufacturingOrderStore(RecordStore[ManufacturingOrder]):
    """MOs keyed by order_id."""


class JobsheetStore(RecordStore[Jobsheet]):
    """Jobsheets keyed by mo_id."""


class TaskStore(RecordStore[Task]):
    """Tasks keyed by jobsheet_id."""


class MachineStore(RecordStore[Machine]):
    """Machines have no parent."""


class BreakdownStore(RecordStore[Breakdown]):
    """Breakdowns keyed by machine_id."""

    @abstractmethod
    async def find_unresolved_by_machine(self, machine_id: UUID) -> list[Breakdown]:
        """
        Retrieve the open breakdowns of a machine.

        Raises:
            StoreError: If retrieval operation fails
        """
