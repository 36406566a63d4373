"""
Shared fixtures for the shopfloor test suite.
"""

from uuid import uuid4

import pytest

from shopfloor.application.services.production_engine import ProductionEngine
from shopfloor.core.config import Settings
from shopfloor.domain.production.events import DomainEventDispatcher
from shopfloor.domain.production.repositories import ProductionStores
from shopfloor.domain.production.value_objects import RequestContext
from shopfloor.tests.factories import (
    TENANT,
    FakeClock,
    Hierarchy,
    RecordingHandler,
    build_hierarchy,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(tenant_id=TENANT, user_id=uuid4())


@pytest.fixture
def other_ctx() -> RequestContext:
    return RequestContext(tenant_id="globex", user_id=uuid4())


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def hierarchy() -> Hierarchy:
    return build_hierarchy()


@pytest.fixture
def stores(hierarchy) -> ProductionStores:
    return hierarchy.stores


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def dispatcher(recorder) -> DomainEventDispatcher:
    dispatcher = DomainEventDispatcher()
    dispatcher.register_handler(recorder)
    return dispatcher


@pytest.fixture
def engine(stores, settings, dispatcher, clock) -> ProductionEngine:
    return ProductionEngine(stores, settings=settings, dispatcher=dispatcher, clock=clock)
