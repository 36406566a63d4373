"""Base classes for domain entities and value objects."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Read a naive datetime as UTC; aware values pass through unchanged."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ValueObject(BaseModel):
    """Base class for value objects (immutable, defined by their values)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class DomainEvent(BaseModel):
    """Base class for domain events."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=utc_now)
    aggregate_id: UUID
    tenant_id: str
    event_version: int = 1

    @property
    def event_name(self) -> str:
        return self.__class__.__name__


class Entity(BaseModel, ABC):
    """Base class for entities (have identity, can change over time)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    tenant_id: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None

    @field_validator("*")
    @classmethod
    def assume_utc(cls, v: Any) -> Any:
        """Naive datetimes are stored as UTC."""
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if they have the same ID and type."""
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on entity ID."""
        return hash(self.id)

    def mark_updated(self, at: datetime | None = None) -> None:
        """Mark the entity as updated."""
        self.updated_at = at or utc_now()

    @abstractmethod
    def is_valid(self) -> bool:
        """Validate business rules for this entity."""

    def snapshot(self: "EntityT") -> "EntityT":
        """Detached deep copy, safe to hand to callers."""
        return self.model_copy(deep=True)


class AggregateRoot(Entity, ABC):
    """Base class for aggregate roots (entities that control consistency boundaries)."""

    _domain_events: list[DomainEvent] = PrivateAttr(default_factory=list)

    def add_domain_event(self, event: DomainEvent) -> None:
        """Add a domain event to be published."""
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        """Clear all domain events (typically after publishing)."""
        self._domain_events.clear()

    def get_domain_events(self) -> list[DomainEvent]:
        """Get all pending domain events."""
        return self._domain_events.copy()

    def snapshot(self: "AggregateT") -> "AggregateT":
        copy = self.model_copy(deep=True)
        copy.clear_domain_events()
        return copy


EntityT = TypeVar("EntityT", bound=Entity)
AggregateT = TypeVar("AggregateT", bound=AggregateRoot)


Clock = Callable[[], datetime]


class DomainService(ABC):
    """Base class for domain services (business logic that doesn't belong to a single entity)."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or utc_now

    def now(self) -> datetime:
        return ensure_utc(self._clock())
