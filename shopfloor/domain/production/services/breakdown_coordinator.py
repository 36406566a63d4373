"""
Breakdown Coordinator

Couples equipment failure and recovery events to machine status and to the
affected task. Reporting and resolving are each a fixed sequence of
single-entity writes; the store offers no multi-entity transaction, so a
failure part-way raises PartialFailureError naming the step that failed and
the steps already committed. Nothing is rolled back.
"""

from uuid import UUID

from ....core.observability import get_logger, record_breakdown_event
from ...shared.exceptions import (
    AlreadyResolvedError,
    BreakdownNotFoundError,
    MachineNotFoundError,
    PartialFailureError,
    StoreError,
    TaskNotFoundError,
    ValidationError,
)
from ..entities.breakdown import DESCRIPTION_MAX_LENGTH, Breakdown
from ..entities.machine import Machine
from ..entities.task import Task
from ..value_objects.context import RequestContext
from ..value_objects.enums import BreakdownType
from .base import ProductionService

logger = get_logger(__name__)

# Report steps
STEP_CREATE_BREAKDOWN = "create_breakdown"
STEP_MARK_MACHINE_DOWN = "mark_machine_down"
STEP_STAMP_TASK = "stamp_task"

# Resolve steps
STEP_RESOLVE_BREAKDOWN = "resolve_breakdown"
STEP_RESTORE_MACHINE = "restore_machine"
STEP_CLEAR_TASK = "clear_task"


def parse_breakdown_type(value: str | BreakdownType | None) -> BreakdownType:
    """
    Raises:
        ValidationError: If the type is missing or unknown
    """
    if isinstance(value, BreakdownType):
        return value
    if value is None or not str(value).strip():
        raise ValidationError("type", None, "breakdown type is required", "TYPE_REQUIRED")
    try:
        return BreakdownType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            "type",
            value,
            f"must be one of {', '.join(t.value for t in BreakdownType)}",
            "TYPE_INVALID",
        ) from None


def parse_description(value: str | None) -> str:
    """
    Raises:
        ValidationError: If the description is missing, blank or too long
    """
    if value is None or not value.strip():
        raise ValidationError(
            "description", None, "description is required", "DESCRIPTION_REQUIRED"
        )
    value = value.strip()
    if len(value) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "description",
            f"{len(value)} characters",
            f"must be at most {DESCRIPTION_MAX_LENGTH} characters",
            "DESCRIPTION_TOO_LONG",
        )
    return value


class BreakdownCoordinator(ProductionService):
    """Service reporting and resolving machine breakdowns."""

    async def _find_duplicate(
        self,
        ctx: RequestContext,
        machine_id: UUID,
        affected_task_id: UUID | None,
        breakdown_type: BreakdownType,
        description: str,
    ) -> Breakdown | None:
        """An open breakdown describing the same failure, left by an earlier attempt."""
        open_breakdowns = await self._stores.breakdowns.find_unresolved_by_machine(
            machine_id
        )
        for breakdown in open_breakdowns:
            if ctx.owns(breakdown.tenant_id) and breakdown.matches_report(
                machine_id, affected_task_id, breakdown_type, description
            ):
                return breakdown
        return None

    async def report(
        self,
        ctx: RequestContext,
        machine_id: UUID,
        breakdown_type: str | BreakdownType | None,
        description: str | None,
        affected_task_id: UUID | None = None,
        notes: str | None = None,
    ) -> Breakdown:
        """
        Record a machine failure, take the machine down and flag the task.

        Steps, in order: create the breakdown, set the machine DOWN (whatever
        its previous status), stamp breakdown_at/breakdown_note on the
        affected task. Task status and progress are not touched.

        Raises:
            ValidationError: If type or description is missing (before any write)
            MachineNotFoundError: If the machine is not in the caller's tenant
            TaskNotFoundError: If the affected task is not in the caller's tenant
            PartialFailureError: If a store write fails; completed steps stay committed
        """
        parsed_type = parse_breakdown_type(breakdown_type)
        parsed_description = parse_description(description)

        machine = await self._require(
            self._stores.machines, ctx, machine_id, MachineNotFoundError
        )
        task: Task | None = None
        if affected_task_id is not None:
            task = await self._require(
                self._stores.tasks, ctx, affected_task_id, TaskNotFoundError
            )

        now = self.now()
        completed: list[str] = []

        try:
            existing = None
            if self._settings.DEDUPLICATE_BREAKDOWN_REPORTS:
                existing = await self._find_duplicate(
                    ctx, machine_id, affected_task_id, parsed_type, parsed_description
                )
            if existing is not None:
                breakdown = existing
                logger.info(
                    "breakdown_report_deduplicated",
                    breakdown_id=str(breakdown.id),
                    machine_id=str(machine_id),
                    **ctx.log_fields(),
                )
            else:
                new_breakdown = Breakdown.report(
                    tenant_id=ctx.tenant_id,
                    machine_id=machine_id,
                    breakdown_type=parsed_type,
                    description=parsed_description,
                    reported_by=ctx.user_id,
                    affected_task_id=affected_task_id,
                    notes=notes,
                    now=now,
                )
                breakdown = await self._stores.breakdowns.create(new_breakdown)
                self._publish(new_breakdown)
        except StoreError as exc:
            raise PartialFailureError(
                "report_breakdown", STEP_CREATE_BREAKDOWN, "breakdown", None, completed, exc
            ) from exc
        completed.append(STEP_CREATE_BREAKDOWN)

        await self._write_machine(
            "report_breakdown",
            STEP_MARK_MACHINE_DOWN,
            machine,
            completed,
            machine.mark_down(f"breakdown {breakdown.id}", now),
        )

        if task is not None:
            task.record_breakdown(parsed_description, now)
            await self._write_task("report_breakdown", STEP_STAMP_TASK, task, completed)

        record_breakdown_event("reported")
        logger.info(
            "breakdown_reported",
            breakdown_id=str(breakdown.id),
            machine_id=str(machine_id),
            affected_task_id=str(affected_task_id) if affected_task_id else None,
            breakdown_type=parsed_type.value,
            **ctx.log_fields(),
        )
        return breakdown

    async def resolve(self, ctx: RequestContext, breakdown_id: UUID) -> Breakdown:
        """
        Close out a breakdown and bring the machine back to IDLE.

        The machine goes to IDLE, never BUSY: resuming a task is a separate
        clock-in. With STRICT_BREAKDOWN_RESOLUTION the machine stays DOWN
        while any other breakdown on it is still open. The affected task only
        has its note cleared and breakdown_resolved_at stamped.

        Raises:
            BreakdownNotFoundError: If the breakdown is not in the caller's tenant
            AlreadyResolvedError: If it was resolved before (nothing is written)
            PartialFailureError: If a store write fails; completed steps stay committed
        """
        breakdown = await self._require(
            self._stores.breakdowns, ctx, breakdown_id, BreakdownNotFoundError
        )
        if breakdown.resolved:
            raise AlreadyResolvedError(breakdown_id)

        now = self.now()
        completed: list[str] = []

        breakdown.resolve(ctx.user_id, self._settings.BREAKDOWN_RESOLUTION_NOTE, now)
        try:
            stored = await self._stores.breakdowns.update(breakdown)
        except StoreError as exc:
            raise PartialFailureError(
                "resolve_breakdown",
                STEP_RESOLVE_BREAKDOWN,
                "breakdown",
                breakdown_id,
                completed,
                exc,
            ) from exc
        self._publish(breakdown)
        completed.append(STEP_RESOLVE_BREAKDOWN)

        await self._restore_machine(ctx, breakdown, completed)

        if breakdown.affected_task_id is not None:
            try:
                task = await self._stores.tasks.find_by_id(breakdown.affected_task_id)
            except StoreError as exc:
                raise PartialFailureError(
                    "resolve_breakdown",
                    STEP_CLEAR_TASK,
                    "task",
                    breakdown.affected_task_id,
                    completed,
                    exc,
                ) from exc
            if task is None:
                logger.warning(
                    "breakdown_task_missing",
                    breakdown_id=str(breakdown_id),
                    task_id=str(breakdown.affected_task_id),
                    **ctx.log_fields(),
                )
            else:
                task.clear_breakdown(now)
                await self._write_task("resolve_breakdown", STEP_CLEAR_TASK, task, completed)

        record_breakdown_event("resolved")
        logger.info(
            "breakdown_resolved",
            breakdown_id=str(breakdown_id),
            machine_id=str(breakdown.machine_id),
            **ctx.log_fields(),
        )
        return stored

    async def _restore_machine(
        self, ctx: RequestContext, breakdown: Breakdown, completed: list[str]
    ) -> None:
        try:
            machine = await self._stores.machines.find_by_id(breakdown.machine_id)
            still_open: list[Breakdown] = []
            if machine is not None and self._settings.STRICT_BREAKDOWN_RESOLUTION:
                still_open = [
                    other
                    for other in await self._stores.breakdowns.find_unresolved_by_machine(
                        breakdown.machine_id
                    )
                    if other.id != breakdown.id
                ]
        except StoreError as exc:
            raise PartialFailureError(
                "resolve_breakdown",
                STEP_RESTORE_MACHINE,
                "machine",
                breakdown.machine_id,
                completed,
                exc,
            ) from exc

        if machine is None:
            logger.warning(
                "breakdown_machine_missing",
                breakdown_id=str(breakdown.id),
                machine_id=str(breakdown.machine_id),
                **ctx.log_fields(),
            )
            return

        if still_open:
            logger.info(
                "machine_kept_down",
                machine_id=str(machine.id),
                open_breakdowns=[str(other.id) for other in still_open],
                **ctx.log_fields(),
            )
            completed.append(STEP_RESTORE_MACHINE)
            return

        await self._write_machine(
            "resolve_breakdown",
            STEP_RESTORE_MACHINE,
            machine,
            completed,
            machine.mark_idle(f"breakdown {breakdown.id} resolved", self.now()),
        )

    async def _write_machine(
        self,
        operation: str,
        step: str,
        machine: Machine,
        completed: list[str],
        changed: bool,
    ) -> None:
        if changed:
            try:
                await self._stores.machines.update(machine)
            except StoreError as exc:
                raise PartialFailureError(
                    operation, step, "machine", machine.id, completed, exc
                ) from exc
            self._publish(machine)
        completed.append(step)

    async def _write_task(
        self, operation: str, step: str, task: Task, completed: list[str]
    ) -> None:
        try:
            await self._stores.tasks.update(task)
        except StoreError as exc:
            raise PartialFailureError(
                operation, step, "task", task.id, completed, exc
            ) from exc
        self._publish(task)
        completed.append(step)
