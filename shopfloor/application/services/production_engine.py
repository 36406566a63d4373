"""
Production engine application service.

Single entry point for operator actions, progress edits, breakdown handling
and the timeline feed. Each call is an independent unit of work: the caller
passes a RequestContext, the engine delegates to the domain services and
records the outcome in logs and metrics.
"""

from collections.abc import Awaitable, Sequence
from typing import TypeVar
from uuid import UUID

from ...core.config import Settings, get_settings
from ...core.observability import get_logger, record_operation
from ...domain.production.entities import Breakdown, Task
from ...domain.production.events import DomainEventDispatcher
from ...domain.production.repositories import ProductionStores
from ...domain.production.services import (
    BreakdownCoordinator,
    CascadeResult,
    ProgressAggregator,
    TaskLifecycleService,
    TimelineFlattener,
)
from ...domain.production.value_objects import (
    ClockAction,
    HierarchyLevel,
    RequestContext,
    TimelineEntry,
)
from ...domain.shared.base import Clock
from ...domain.shared.exceptions import DomainError
from ..dtos.breakdown_dtos import ReportBreakdownRequest

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


class ProductionEngine:
    """
    Application service for shop-floor execution tracking.

    Holds no per-request state; stores, settings, dispatcher and clock are
    shared by every call.
    """

    def __init__(
        self,
        stores: ProductionStores,
        settings: Settings | None = None,
        dispatcher: DomainEventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            stores: Record stores for every entity of the hierarchy
            settings: Engine settings, defaults to get_settings()
            dispatcher: Optional receiver for domain events after each write
            clock: Optional time source, defaults to UTC now
        """
        self._stores = stores
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher

        self._aggregator = ProgressAggregator(stores, self._settings, dispatcher, clock)
        self._lifecycle = TaskLifecycleService(
            stores, self._settings, dispatcher, clock, aggregator=self._aggregator
        )
        self._breakdowns = BreakdownCoordinator(stores, self._settings, dispatcher, clock)
        self._timeline = TimelineFlattener(stores, self._settings, dispatcher, clock)

    @property
    def settings(self) -> Settings:
        return self._settings

    async def _run(
        self, operation: str, ctx: RequestContext, call: Awaitable[ResultT]
    ) -> ResultT:
        """Await a domain call and record its outcome."""
        log = logger.bind(operation=operation, **ctx.log_fields())
        try:
            result = await call
        except DomainError as exc:
            record_operation(operation, exc.error_type.value)
            log.warning("engine_operation_failed", **exc.to_dict())
            raise
        except Exception:
            record_operation(operation, "error")
            log.exception("engine_operation_crashed")
            raise

        record_operation(operation, "success")
        log.debug("engine_operation_succeeded")
        return result

    # Task lifecycle

    async def clock_in(self, ctx: RequestContext, task_id: UUID) -> Task:
        return await self._run("clock_in", ctx, self._lifecycle.clock_in(ctx, task_id))

    async def clock_out(self, ctx: RequestContext, task_id: UUID) -> Task:
        return await self._run("clock_out", ctx, self._lifecycle.clock_out(ctx, task_id))

    async def pause(self, ctx: RequestContext, task_id: UUID) -> Task:
        return await self._run("pause", ctx, self._lifecycle.pause(ctx, task_id))

    async def perform_action(
        self, ctx: RequestContext, task_id: UUID, action: str | ClockAction
    ) -> Task:
        """
        Apply an operator action given by name (clock_in, clock_out, pause).

        Raises:
            InvalidActionError: If the action is unknown
            TaskNotFoundError: If the task is not visible to the caller
        """
        return await self._run(
            "perform_action", ctx, self._lifecycle.perform(ctx, task_id, action)
        )

    # Progress

    async def set_task_progress(
        self, ctx: RequestContext, task_id: UUID, percent: int
    ) -> CascadeResult:
        """
        Set a task's progress and recompute its jobsheet, MO and order.

        An orphaned ancestor is not an error: the cascade stops there and
        the result carries it in ``orphan``.

        Raises:
            ValidationError: If percent is not an integer in [0, 100]
            TaskNotFoundError: If the task is not visible to the caller
            CascadeStepError: If the store fails mid-cascade
        """
        return await self._run(
            "set_task_progress",
            ctx,
            self._lifecycle.set_progress(ctx, task_id, percent),
        )

    async def recompute_progress(
        self, ctx: RequestContext, level: str | HierarchyLevel, entity_id: UUID
    ) -> CascadeResult:
        """
        Recompute a level and its ancestors from current children.

        Used after children were deleted or moved outside the engine. For a
        task only its ancestors are recomputed.

        Raises:
            ValidationError: If the level is unknown
            EntityNotFoundError: Level-specific subclass if the entity is not visible
            CascadeStepError: If the store fails mid-cascade
        """
        return await self._run(
            "recompute_progress", ctx, self._aggregator.recompute(ctx, level, entity_id)
        )

    # Breakdowns

    async def report_breakdown(
        self, ctx: RequestContext, request: ReportBreakdownRequest
    ) -> Breakdown:
        """
        Report a machine breakdown.

        Raises:
            ValidationError: If type or description is missing
            MachineNotFoundError: If the machine is not visible to the caller
            TaskNotFoundError: If the affected task is not visible to the caller
            PartialFailureError: If a write fails after earlier steps committed
        """
        return await self._run(
            "report_breakdown",
            ctx,
            self._breakdowns.report(
                ctx,
                machine_id=request.machine_id,
                breakdown_type=request.type,
                description=request.description,
                affected_task_id=request.affected_task_id,
                notes=request.notes,
            ),
        )

    async def resolve_breakdown(self, ctx: RequestContext, breakdown_id: UUID) -> Breakdown:
        """
        Resolve a breakdown and return its machine to IDLE.

        Raises:
            BreakdownNotFoundError: If the breakdown is not visible to the caller
            AlreadyResolvedError: If it is already resolved
            PartialFailureError: If a write fails after earlier steps committed
        """
        return await self._run(
            "resolve_breakdown", ctx, self._breakdowns.resolve(ctx, breakdown_id)
        )

    # Timeline

    async def flatten_timeline(
        self, ctx: RequestContext, order_ids: Sequence[UUID] | None = None
    ) -> list[TimelineEntry]:
        return await self._run(
            "flatten_timeline", ctx, self._timeline.flatten(ctx, order_ids)
        )
