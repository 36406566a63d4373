"""Shared plumbing for the production domain services."""

from uuid import UUID

from ....core.config import Settings, get_settings
from ...shared.base import AggregateRoot, Clock, DomainService, EntityT
from ...shared.exceptions import EntityNotFoundError
from ..events import DomainEventDispatcher
from ..repositories.record_store import RecordStore
from ..repositories.stores import ProductionStores
from ..value_objects.context import RequestContext


class ProductionService(DomainService):
    """
    Base for services operating on the production record stores.

    Holds no per-request state: stores, settings, dispatcher and clock are
    injected once and every call receives its RequestContext explicitly.
    """

    def __init__(
        self,
        stores: ProductionStores,
        settings: Settings | None = None,
        dispatcher: DomainEventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        self._stores = stores
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher

    async def _require(
        self,
        store: RecordStore[EntityT],
        ctx: RequestContext,
        entity_id: UUID,
        not_found: type[EntityNotFoundError],
    ) -> EntityT:
        """
        Load an entity visible to the caller.

        Raises:
            EntityNotFoundError: If missing or owned by another tenant
        """
        entity = await store.find_by_id(entity_id)
        if entity is None or not ctx.owns(entity.tenant_id):
            raise not_found(entity_id)
        return entity

    def _publish(self, *aggregates: AggregateRoot) -> None:
        """Hand pending events of committed aggregates to the dispatcher."""
        for aggregate in aggregates:
            events = aggregate.get_domain_events()
            aggregate.clear_domain_events()
            if self._dispatcher is not None and events:
                self._dispatcher.dispatch_all(events)
