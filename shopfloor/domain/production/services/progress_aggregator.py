"""
Progress Aggregator

Recomputes percent-complete bottom-up: Task -> Jobsheet -> MO -> Order.

Jobsheet progress is weighted by task planned hours (estimates exist at
task granularity); MO and Order progress are plain means of their children.
Every level is rounded half-up to an integer before it feeds the next one.

The upward cascade is an explicit, ordered list of CascadeStep values. Each
step re-reads the full child set from the store and writes the parent
independently, so concurrent sibling updates converge on last-write-wins
instead of drifting through incremental deltas.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from ....core.observability import get_logger, record_cascade_step
from ...shared.exceptions import (
    CascadeStepError,
    EntityNotFoundError,
    JobsheetNotFoundError,
    ManufacturingOrderNotFoundError,
    OrderNotFoundError,
    OrphanedChildError,
    StoreError,
    TaskNotFoundError,
    ValidationError,
)
from ..entities.jobsheet import Jobsheet
from ..entities.manufacturing_order import ManufacturingOrder
from ..entities.order import Order
from ..entities.progress_node import ProgressNode
from ..entities.task import Task
from ..repositories.record_store import RecordStore
from ..value_objects.context import RequestContext
from ..value_objects.enums import HierarchyLevel
from ..value_objects.rounding import round_percent, to_decimal
from .base import ProductionService

logger = get_logger(__name__)

_NOT_FOUND: dict[HierarchyLevel, type[EntityNotFoundError]] = {
    HierarchyLevel.ORDER: OrderNotFoundError,
    HierarchyLevel.MO: ManufacturingOrderNotFoundError,
    HierarchyLevel.JOBSHEET: JobsheetNotFoundError,
    HierarchyLevel.TASK: TaskNotFoundError,
}


class _WeightedProgress(Protocol):
    progress_percent: int
    planned_hours: float | None


class _Progress(Protocol):
    progress_percent: int


def parse_level(level: str | HierarchyLevel) -> HierarchyLevel:
    """
    Raises:
        ValidationError: If the level name is unknown
    """
    if isinstance(level, HierarchyLevel):
        return level
    try:
        return HierarchyLevel(str(level).lower())
    except ValueError:
        raise ValidationError(
            "level",
            str(level),
            f"must be one of {', '.join(lvl.value for lvl in HierarchyLevel)}",
            "LEVEL_INVALID",
        ) from None


def mean_progress(children: Iterable[_Progress]) -> int:
    """Unweighted rounded mean; 0 for an empty child set."""
    values = [child.progress_percent for child in children]
    if not values:
        return 0
    return round_percent(Decimal(sum(values)) / len(values))


def jobsheet_progress(tasks: Sequence[_WeightedProgress]) -> int:
    """
    Planned-hours weighted progress of a jobsheet.

    A task with more estimated hours contributes proportionally more, so a
    handful of short finished tasks does not make a jobsheet look done.
    When no task has hours the weighting is undefined and the plain mean is
    used instead.
    """
    if not tasks:
        return 0

    total_planned = sum((to_decimal(t.planned_hours or 0) for t in tasks), Decimal(0))
    if total_planned == 0:
        return mean_progress(tasks)

    weighted = sum(
        (to_decimal(t.progress_percent) * to_decimal(t.planned_hours or 0) for t in tasks),
        Decimal(0),
    )
    return round_percent(weighted / total_planned)


def mo_progress(jobsheets: Sequence[_Progress]) -> int:
    """Unweighted: jobsheet hour totals are not comparable across scopes."""
    return mean_progress(jobsheets)


def order_progress(mos: Sequence[_Progress]) -> int:
    return mean_progress(mos)


@dataclass(frozen=True)
class CascadeStep:
    """One (level, id) pair of the upward recompute chain."""

    level: HierarchyLevel
    entity_id: UUID

    def __str__(self) -> str:
        return f"{self.level.value}:{self.entity_id}"


@dataclass
class CascadePlan:
    """Ordered steps to recompute; orphan is set when the walk hit a gap."""

    origin_level: HierarchyLevel
    origin_id: UUID
    steps: list[CascadeStep] = field(default_factory=list)
    orphan: OrphanedChildError | None = None


@dataclass
class CascadeResult:
    """Snapshots of every level touched by a cascade."""

    task: Task | None = None
    jobsheet: Jobsheet | None = None
    manufacturing_order: ManufacturingOrder | None = None
    order: Order | None = None
    completed_steps: list[CascadeStep] = field(default_factory=list)
    orphan: OrphanedChildError | None = None

    @property
    def is_complete(self) -> bool:
        """True when the cascade reached the top without an orphan."""
        return self.orphan is None

    def record(self, node: ProgressNode) -> None:
        if isinstance(node, Jobsheet):
            self.jobsheet = node
        elif isinstance(node, ManufacturingOrder):
            self.manufacturing_order = node
        elif isinstance(node, Order):
            self.order = node


class ProgressAggregator(ProductionService):
    """Plans and executes the bottom-up progress cascade."""

    def _store_for(self, level: HierarchyLevel) -> RecordStore:
        return {
            HierarchyLevel.JOBSHEET: self._stores.jobsheets,
            HierarchyLevel.MO: self._stores.manufacturing_orders,
            HierarchyLevel.ORDER: self._stores.orders,
        }[level]

    @staticmethod
    def _parent_id(node: ProgressNode) -> UUID | None:
        if isinstance(node, Jobsheet):
            return node.mo_id
        if isinstance(node, ManufacturingOrder):
            return node.order_id
        return None

    async def _compute(self, level: HierarchyLevel, entity_id: UUID) -> int:
        """Recompute a level from a fresh read of its full child set."""
        if level == HierarchyLevel.JOBSHEET:
            return jobsheet_progress(
                await self._stores.tasks.find_many_by_parent(entity_id)
            )
        if level == HierarchyLevel.MO:
            return mo_progress(await self._stores.jobsheets.find_many_by_parent(entity_id))
        return order_progress(
            await self._stores.manufacturing_orders.find_many_by_parent(entity_id)
        )

    async def plan(
        self,
        origin_level: HierarchyLevel,
        origin_id: UUID,
        start_id: UUID | None,
    ) -> CascadePlan:
        """
        Walk ancestors upward from origin and list the levels to recompute.

        Args:
            origin_level: Level of the entity that changed
            origin_id: Id of the entity that changed
            start_id: Id of its direct parent (first level to recompute)

        Raises:
            CascadeStepError: If the store fails while walking ancestors
        """
        cascade = CascadePlan(origin_level=origin_level, origin_id=origin_id)
        child_level, child_id = origin_level, origin_id
        level, entity_id = origin_level.parent, start_id

        while level is not None:
            if entity_id is None:
                cascade.orphan = OrphanedChildError(
                    child_level.value, child_id, level.value, None
                )
                break
            try:
                node = await self._store_for(level).find_by_id(entity_id)
            except StoreError as exc:
                raise CascadeStepError(
                    level.value, entity_id, [str(s) for s in cascade.steps], exc
                ) from exc
            if node is None:
                cascade.orphan = OrphanedChildError(
                    child_level.value, child_id, level.value, entity_id
                )
                break

            cascade.steps.append(CascadeStep(level, entity_id))
            child_level, child_id = level, entity_id
            level, entity_id = level.parent, self._parent_id(node)

        return cascade

    async def execute(
        self, cascade: CascadePlan, result: CascadeResult | None = None
    ) -> CascadeResult:
        """
        Run each planned step in order, committing every level on its own.

        An ancestor that disappeared since planning stops the cascade and is
        reported on the result; store failures raise with the steps already
        committed.

        Raises:
            CascadeStepError: If a store read or write fails mid-cascade
        """
        result = result or CascadeResult()
        result.orphan = cascade.orphan
        child_level, child_id = cascade.origin_level, cascade.origin_id

        for step in cascade.steps:
            store = self._store_for(step.level)
            try:
                node = await store.find_by_id(step.entity_id)
                if node is None:
                    raise EntityNotFoundError(step.entity_id, step.level.value)

                progress = await self._compute(step.level, step.entity_id)
                changed = node.apply_recomputed_progress(
                    progress,
                    derive_status=self._settings.DERIVE_PARENT_STATUS,
                    now=self.now(),
                )
                if changed:
                    stored = await store.update(node)
                    self._publish(node)
                else:
                    stored = node
            except EntityNotFoundError:
                record_cascade_step(step.level.value, "orphaned")
                result.orphan = OrphanedChildError(
                    child_level.value, child_id, step.level.value, step.entity_id
                )
                logger.warning(
                    "progress_cascade_orphaned",
                    level=step.level.value,
                    entity_id=str(step.entity_id),
                    completed_steps=[str(s) for s in result.completed_steps],
                )
                return result
            except StoreError as exc:
                record_cascade_step(step.level.value, "failed")
                logger.error(
                    "progress_cascade_failed",
                    level=step.level.value,
                    entity_id=str(step.entity_id),
                    error=str(exc),
                )
                raise CascadeStepError(
                    step.level.value,
                    step.entity_id,
                    [str(s) for s in result.completed_steps],
                    exc,
                ) from exc

            record_cascade_step(step.level.value, "updated" if changed else "unchanged")
            logger.debug(
                "progress_recomputed",
                level=step.level.value,
                entity_id=str(step.entity_id),
                progress=progress,
                changed=changed,
            )
            result.record(stored)
            result.completed_steps.append(step)
            child_level, child_id = step.level, step.entity_id

        if result.orphan is not None:
            record_cascade_step(result.orphan.parent_level, "orphaned")
            logger.warning(
                "progress_cascade_orphaned",
                level=result.orphan.parent_level,
                entity_id=str(result.orphan.parent_id),
                completed_steps=[str(s) for s in result.completed_steps],
            )
        return result

    async def cascade_from_task(self, task: Task) -> CascadeResult:
        """Recompute jobsheet, MO and order above a task whose progress changed."""
        cascade = await self.plan(HierarchyLevel.TASK, task.id, task.jobsheet_id)
        return await self.execute(cascade, CascadeResult(task=task))

    async def cascade_from(
        self, level: HierarchyLevel, entity_id: UUID
    ) -> CascadeResult:
        """
        Recompute a level and everything above it.

        Used after external deletions shrink a child set: the named level is
        recomputed first, then its ancestors.
        """
        cascade = CascadePlan(origin_level=level, origin_id=entity_id)
        node = await self._store_for(level).find_by_id(entity_id)
        if node is not None:
            cascade.steps.append(CascadeStep(level, entity_id))
            above = await self.plan(level, entity_id, self._parent_id(node))
            cascade.steps.extend(above.steps)
            cascade.orphan = above.orphan
        return await self.execute(cascade)

    async def recompute(
        self, ctx: RequestContext, level: str | HierarchyLevel, entity_id: UUID
    ) -> CascadeResult:
        """
        Recompute an entity's level (or, for a task, its ancestors) on request.

        Raises:
            ValidationError: If the level is unknown
            EntityNotFoundError: Level-specific subclass if the entity is not visible
            CascadeStepError: If the store fails mid-cascade
        """
        parsed = parse_level(level)
        if parsed == HierarchyLevel.TASK:
            task = await self._require(
                self._stores.tasks, ctx, entity_id, TaskNotFoundError
            )
            return await self.cascade_from_task(task)

        await self._require(
            self._store_for(parsed), ctx, entity_id, _NOT_FOUND[parsed]
        )
        return await self.cascade_from(parsed, entity_id)
