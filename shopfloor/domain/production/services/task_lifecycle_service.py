"""
Task Lifecycle Service

Owns a task's execution status and session timestamps. Only the clock
operations (clock in, clock out, pause) and authoritative progress edits
live here; assignment, hold and cancel transitions belong to the workflows
that create and plan tasks.
"""

from uuid import UUID

from ....core.observability import get_logger
from ...shared.exceptions import InvalidActionError, TaskNotFoundError, ValidationError
from ..entities.task import Task
from ..value_objects.context import RequestContext
from ..value_objects.enums import ClockAction
from .base import ProductionService
from .progress_aggregator import CascadeResult, ProgressAggregator

logger = get_logger(__name__)


def parse_action(action: str | ClockAction) -> ClockAction:
    """
    Map an operator action string to a ClockAction.

    Raises:
        InvalidActionError: If the action is not recognised
    """
    if isinstance(action, ClockAction):
        return action
    try:
        return ClockAction(action)
    except ValueError:
        raise InvalidActionError(str(action), ClockAction.values()) from None


def validate_percent(percent: object) -> int:
    """
    Check a progress value before anything is written.

    Raises:
        ValidationError: If not an integer in [0, 100]
    """
    if isinstance(percent, bool) or not isinstance(percent, int):
        raise ValidationError(
            "progress_percent",
            str(percent),
            "must be an integer",
            "PROGRESS_NOT_INTEGER",
        )
    if not 0 <= percent <= 100:
        raise ValidationError(
            "progress_percent",
            percent,
            "must be between 0 and 100",
            "PROGRESS_OUT_OF_RANGE",
        )
    return percent


class TaskLifecycleService(ProductionService):
    """Service for task clock operations and progress edits."""

    def __init__(self, *args, aggregator: ProgressAggregator | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._aggregator = aggregator or ProgressAggregator(
            self._stores, self._settings, self._dispatcher, self._clock
        )

    async def _load(self, ctx: RequestContext, task_id: UUID) -> Task:
        return await self._require(self._stores.tasks, ctx, task_id, TaskNotFoundError)

    async def _commit(self, task: Task) -> Task:
        stored = await self._stores.tasks.update(task)
        self._publish(task)
        return stored

    async def clock_in(self, ctx: RequestContext, task_id: UUID) -> Task:
        """
        Open (or restart) an operator session on a task.

        Raises:
            TaskNotFoundError: If the task doesn't exist for this tenant
        """
        task = await self._load(ctx, task_id)
        task.clock_in(self.now())
        stored = await self._commit(task)

        logger.info(
            "task_clocked_in",
            task_id=str(task_id),
            clocked_in_at=stored.clocked_in_at.isoformat(),
            **ctx.log_fields(),
        )
        return stored

    async def clock_out(self, ctx: RequestContext, task_id: UUID) -> Task:
        """
        Close the operator session and book actual hours.

        Raises:
            TaskNotFoundError: If the task doesn't exist for this tenant
        """
        task = await self._load(ctx, task_id)
        booked = task.clock_out(self.now(), self._settings.ACTUAL_HOURS_PRECISION)
        stored = await self._commit(task)

        if not booked:
            logger.warning(
                "task_clock_out_without_clock_in",
                task_id=str(task_id),
                **ctx.log_fields(),
            )
        else:
            logger.info(
                "task_clocked_out",
                task_id=str(task_id),
                actual_hours=stored.actual_hours,
                **ctx.log_fields(),
            )
        return stored

    async def pause(self, ctx: RequestContext, task_id: UUID) -> Task:
        """
        Pause a task; its session stays open until clock-out.

        Raises:
            TaskNotFoundError: If the task doesn't exist for this tenant
        """
        task = await self._load(ctx, task_id)
        task.pause(self.now())
        stored = await self._commit(task)

        logger.info("task_paused", task_id=str(task_id), **ctx.log_fields())
        return stored

    async def perform(
        self, ctx: RequestContext, task_id: UUID, action: str | ClockAction
    ) -> Task:
        """
        Dispatch an operator action by name.

        Raises:
            InvalidActionError: If the action is not recognised (nothing is read or written)
            TaskNotFoundError: If the task doesn't exist for this tenant
        """
        clock_action = parse_action(action)
        handler = {
            ClockAction.CLOCK_IN: self.clock_in,
            ClockAction.CLOCK_OUT: self.clock_out,
            ClockAction.PAUSE: self.pause,
        }[clock_action]
        return await handler(ctx, task_id)

    async def set_progress(
        self, ctx: RequestContext, task_id: UUID, percent: int
    ) -> CascadeResult:
        """
        Set a task's authoritative progress and cascade it upward.

        The task write is committed before the cascade starts, so an orphaned
        or failing ancestor never loses the task update.

        Raises:
            ValidationError: If percent is not an integer in [0, 100]
            TaskNotFoundError: If the task doesn't exist for this tenant
            CascadeStepError: If the store fails while recomputing ancestors
        """
        percent = validate_percent(percent)
        task = await self._load(ctx, task_id)

        if task.update_progress(percent, self.now()):
            task = await self._commit(task)
            logger.info(
                "task_progress_updated",
                task_id=str(task_id),
                progress=percent,
                **ctx.log_fields(),
            )

        # Recompute even when unchanged; stale ancestors converge here
        return await self._aggregator.cascade_from_task(task)
