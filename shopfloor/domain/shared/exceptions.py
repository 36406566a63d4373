"""
Domain Exceptions

Typed errors returned by every engine operation. Each error carries an
ErrorType discriminator and a details mapping so callers can decide on
retry or compensating action without parsing messages.
"""

from enum import Enum
from uuid import UUID

Details = dict[str, str | int | bool | list[str] | None]


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_ACTION = "invalid_action"
    ALREADY_RESOLVED = "already_resolved"
    ORPHANED_CHILD = "orphaned_child"
    STORE = "store"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: Details | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | Details]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input is missing or out of range. Always raised before any write."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        details: Details = {
            "field": field_name,
            "value": str(value) if value is not None else None,
            "error_code": self.error_code,
        }
        super().__init__(
            f"Validation failed for field '{field_name}': {message}",
            ErrorType.VALIDATION,
            details,
        )


# Not-found errors
class EntityNotFoundError(DomainError):
    """Raised when a referenced entity is missing or outside the caller's tenant."""

    entity_type = "entity"

    def __init__(self, entity_id: UUID, entity_type: str | None = None) -> None:
        entity_type = entity_type or self.entity_type
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            ErrorType.NOT_FOUND,
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class TaskNotFoundError(EntityNotFoundError):
    entity_type = "task"


class JobsheetNotFoundError(EntityNotFoundError):
    entity_type = "jobsheet"


class ManufacturingOrderNotFoundError(EntityNotFoundError):
    entity_type = "manufacturing_order"


class OrderNotFoundError(EntityNotFoundError):
    entity_type = "order"


class MachineNotFoundError(EntityNotFoundError):
    entity_type = "machine"


class BreakdownNotFoundError(EntityNotFoundError):
    entity_type = "breakdown"


class InvalidActionError(DomainError):
    """Raised when a lifecycle action is not recognised."""

    def __init__(self, action: str, allowed: list[str] | None = None) -> None:
        super().__init__(
            f"Invalid action: {action!r}",
            ErrorType.INVALID_ACTION,
            {"action": action, "allowed": allowed or []},
        )
        self.action = action


class AlreadyResolvedError(DomainError):
    """Raised when resolving a breakdown that is already resolved."""

    def __init__(self, breakdown_id: UUID) -> None:
        super().__init__(
            f"Breakdown {breakdown_id} is already resolved",
            ErrorType.ALREADY_RESOLVED,
            {"breakdown_id": str(breakdown_id)},
        )
        self.breakdown_id = breakdown_id


class OrphanedChildError(DomainError):
    """
    Reported (not raised) when a progress cascade reaches a missing ancestor.

    The cascade stops at the orphan; everything below it is already committed.
    """

    def __init__(
        self,
        child_level: str,
        child_id: UUID,
        parent_level: str,
        parent_id: UUID | None,
    ) -> None:
        super().__init__(
            f"{child_level} {child_id} references missing {parent_level} {parent_id}",
            ErrorType.ORPHANED_CHILD,
            {
                "child_level": child_level,
                "child_id": str(child_id),
                "parent_level": parent_level,
                "parent_id": str(parent_id) if parent_id else None,
            },
        )
        self.child_level = child_level
        self.child_id = child_id
        self.parent_level = parent_level
        self.parent_id = parent_id


# Store errors
class StoreError(DomainError):
    """Raised when the underlying record store fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        details: Details | None = None,
    ) -> None:
        store_details: Details = dict(details or {})
        store_details.update(
            {
                "operation": operation,
                "entity_type": entity_type,
                "entity_id": str(entity_id) if entity_id else None,
            }
        )
        super().__init__(message, ErrorType.STORE, store_details)
        self.operation = operation
        self.entity_type = entity_type
        self.entity_id = entity_id


class PartialFailureError(StoreError):
    """
    Raised when step k of a multi-step effect fails after steps 1..k-1 committed.

    Nothing is rolled back; completed_steps tells the caller what already
    happened so the operation can be retried or compensated.
    """

    def __init__(
        self,
        operation: str,
        failed_step: str,
        entity_type: str,
        entity_id: UUID | None,
        completed_steps: list[str],
        cause: Exception,
    ) -> None:
        super().__init__(
            f"{operation} failed at step '{failed_step}' "
            f"({entity_type} {entity_id}): {cause}",
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            details={
                "failed_step": failed_step,
                "completed_steps": list(completed_steps),
                "cause": str(cause),
                "cause_type": type(cause).__name__,
            },
        )
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.cause = cause


class CascadeStepError(StoreError):
    """Raised when a progress recompute step fails in the store."""

    def __init__(
        self,
        level: str,
        entity_id: UUID,
        completed_steps: list[str],
        cause: Exception,
    ) -> None:
        super().__init__(
            f"Progress cascade failed at {level} {entity_id}: {cause}",
            operation="recompute_progress",
            entity_type=level,
            entity_id=entity_id,
            details={
                "failed_step": f"{level}:{entity_id}",
                "completed_steps": list(completed_steps),
                "cause": str(cause),
                "cause_type": type(cause).__name__,
            },
        )
        self.level = level
        self.completed_steps = list(completed_steps)
        self.cause = cause
