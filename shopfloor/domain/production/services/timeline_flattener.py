"""
Timeline Flattener

Projects the Order -> MO -> Jobsheet -> Task hierarchy into one flat,
start-ordered list of bars for Gantt views. Read-only: nothing here writes
to a store.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from ....core.observability import get_logger
from ..entities.jobsheet import Jobsheet
from ..entities.manufacturing_order import ManufacturingOrder
from ..entities.order import Order
from ..entities.progress_node import ProgressNode
from ..entities.task import Task
from ..value_objects.context import RequestContext
from ..value_objects.enums import HierarchyLevel
from ..value_objects.time_window import TimeWindow, first_known
from ..value_objects.timeline import TimelineEntry
from .base import ProductionService

logger = get_logger(__name__)


@dataclass
class JobsheetTree:
    jobsheet: Jobsheet
    tasks: list[Task] = field(default_factory=list)


@dataclass
class MOTree:
    manufacturing_order: ManufacturingOrder
    jobsheets: list[JobsheetTree] = field(default_factory=list)


@dataclass
class OrderTree:
    """One order loaded together with its full descendant hierarchy."""

    order: Order
    manufacturing_orders: list[MOTree] = field(default_factory=list)


def task_label(task: Task) -> str:
    return f"{task.task_number} - {task.name}"


def task_window(task: Task, jobsheet: Jobsheet) -> TimeWindow | None:
    """
    Resolve a task bar: clocked session, then task plan, then jobsheet plan.

    Each bound falls back independently, so a running task is drawn from
    its clock-in to its planned end.
    """
    return TimeWindow.resolve(
        first_known(
            task.clocked_in_at, task.planned_start_date, jobsheet.planned_start_date
        ),
        first_known(
            task.clocked_out_at, task.planned_end_date, jobsheet.planned_end_date
        ),
    )


def _status_value(status: Enum | str) -> str:
    return status.value if isinstance(status, Enum) else str(status)


def _node_entry(
    node: ProgressNode,
    window: TimeWindow,
    order_id: UUID,
    mo_id: UUID | None = None,
    jobsheet_id: UUID | None = None,
) -> TimelineEntry:
    return TimelineEntry(
        id=TimelineEntry.make_id(node.level, node.id),
        label=node.display_label,
        level=node.level,
        depth=node.level.depth,
        start=window.start,
        end=window.end,
        progress_percent=node.progress_percent,
        status=_status_value(node.status),  # type: ignore[attr-defined]
        order_id=order_id,
        mo_id=mo_id,
        jobsheet_id=jobsheet_id,
    )


def _task_entry(
    task: Task, window: TimeWindow, order_id: UUID, mo_id: UUID, jobsheet_id: UUID
) -> TimelineEntry:
    return TimelineEntry(
        id=TimelineEntry.make_id(HierarchyLevel.TASK, task.id),
        label=task_label(task),
        level=HierarchyLevel.TASK,
        depth=HierarchyLevel.TASK.depth,
        start=window.start,
        end=window.end,
        progress_percent=task.progress_percent,
        status=_status_value(task.status),
        order_id=order_id,
        mo_id=mo_id,
        jobsheet_id=jobsheet_id,
        task_id=task.id,
        machine_id=task.machine_id,
    )


def flatten_timeline(trees: Iterable[OrderTree]) -> list[TimelineEntry]:
    """
    Flatten order trees into timeline entries sorted by start.

    Entities without both a start and an end are skipped; their children
    are still visited. The sort is stable, so bars sharing a start keep
    their hierarchy order (parent before child).
    """
    entries: list[TimelineEntry] = []

    for tree in trees:
        order = tree.order
        window = order.planned_window
        if window is not None:
            entries.append(_node_entry(order, window, order.id))

        for mo_tree in tree.manufacturing_orders:
            mo = mo_tree.manufacturing_order
            window = mo.planned_window
            if window is not None:
                entries.append(_node_entry(mo, window, order.id, mo.id))

            for js_tree in mo_tree.jobsheets:
                jobsheet = js_tree.jobsheet
                window = jobsheet.planned_window
                if window is not None:
                    entries.append(
                        _node_entry(jobsheet, window, order.id, mo.id, jobsheet.id)
                    )

                for task in js_tree.tasks:
                    window = task_window(task, jobsheet)
                    if window is not None:
                        entries.append(
                            _task_entry(task, window, order.id, mo.id, jobsheet.id)
                        )

    return sorted(entries, key=lambda entry: entry.start)


class TimelineFlattener(ProductionService):
    """Loads order trees for a tenant and flattens them."""

    def _is_excluded(self, order: Order) -> bool:
        excluded = {s.upper() for s in self._settings.TIMELINE_EXCLUDED_ORDER_STATUSES}
        return order.status.value in excluded

    async def load_trees(
        self, ctx: RequestContext, order_ids: Sequence[UUID] | None = None
    ) -> list[OrderTree]:
        """
        Read the visible, non-terminal orders and their descendants.

        Args:
            ctx: Caller context; only the caller's tenant is read
            order_ids: Optional restriction; unknown ids are ignored

        Raises:
            StoreError: If any read fails
        """
        orders = await self._stores.orders.find_all(ctx.tenant_id)
        if order_ids is not None:
            wanted = set(order_ids)
            orders = [order for order in orders if order.id in wanted]

        trees: list[OrderTree] = []
        for order in orders:
            if not ctx.owns(order.tenant_id) or self._is_excluded(order):
                continue

            tree = OrderTree(order=order)
            for mo in await self._stores.manufacturing_orders.find_many_by_parent(order.id):
                mo_tree = MOTree(manufacturing_order=mo)
                for jobsheet in await self._stores.jobsheets.find_many_by_parent(mo.id):
                    tasks = await self._stores.tasks.find_many_by_parent(jobsheet.id)
                    mo_tree.jobsheets.append(JobsheetTree(jobsheet=jobsheet, tasks=tasks))
                tree.manufacturing_orders.append(mo_tree)
            trees.append(tree)

        return trees

    async def flatten(
        self, ctx: RequestContext, order_ids: Sequence[UUID] | None = None
    ) -> list[TimelineEntry]:
        trees = await self.load_trees(ctx, order_ids)
        entries = flatten_timeline(trees)
        logger.debug(
            "timeline_flattened",
            orders=len(trees),
            entries=len(entries),
            **ctx.log_fields(),
        )
        return entries
