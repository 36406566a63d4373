"""
Unit Tests for Timeline Flattening

Tests bar resolution per level, task date fallbacks, ordering and the
order filtering done by the TimelineFlattener service.
"""

from datetime import datetime, timedelta, timezone

import pytest

from shopfloor.domain.production.services.timeline_flattener import (
    JobsheetTree,
    MOTree,
    OrderTree,
    TimelineFlattener,
    flatten_timeline,
    task_window,
)
from shopfloor.domain.production.value_objects import HierarchyLevel, OrderStatus
from shopfloor.domain.shared.base import utc_now
from shopfloor.tests.factories import (
    START,
    make_jobsheet,
    make_mo,
    make_order,
    make_task,
)


def day(n, hours=0):
    return START + timedelta(days=n, hours=hours)


class TestTaskWindow:
    """Test the clocked -> planned -> jobsheet fallback chain."""

    def test_clocked_times_win(self):
        jobsheet = make_jobsheet(make_mo(make_order()))
        task = make_task(
            jobsheet,
            clocked_in_at=day(2, 1),
            clocked_out_at=day(2, 5),
            planned_start_date=day(1),
            planned_end_date=day(1, 8),
        )
        window = task_window(task, jobsheet)
        assert (window.start, window.end) == (day(2, 1), day(2, 5))

    def test_open_session_ends_at_planned_end(self):
        jobsheet = make_jobsheet(make_mo(make_order()))
        task = make_task(jobsheet, clocked_in_at=day(2, 1), planned_end_date=day(2, 9))
        window = task_window(task, jobsheet)
        assert (window.start, window.end) == (day(2, 1), day(2, 9))

    def test_falls_back_to_jobsheet_plan(self):
        jobsheet = make_jobsheet(make_mo(make_order()))
        task = make_task(jobsheet)
        window = task_window(task, jobsheet)
        assert (window.start, window.end) == (
            jobsheet.planned_start_date,
            jobsheet.planned_end_date,
        )

    def test_unresolvable_task(self):
        jobsheet = make_jobsheet(
            make_mo(make_order()), planned_start_date=None, planned_end_date=None
        )
        task = make_task(jobsheet, planned_start_date=day(1))
        assert task_window(task, jobsheet) is None


class TestFlattenTimeline:
    """Test the pure flattening of order trees."""

    def build_tree(self):
        order = make_order(planned_start_date=day(0), planned_end_date=day(9))
        # No planned window: no MO bar, children still visited
        mo = make_mo(order, planned_start_date=None, planned_end_date=None)
        jobsheet = make_jobsheet(mo, planned_start_date=day(1), planned_end_date=day(3))
        running = make_task(
            jobsheet, task_number="T-1", name="Cut", clocked_in_at=day(2), progress_percent=30
        )
        planned = make_task(jobsheet, task_number="T-2", name="Bend")
        bare_js = make_jobsheet(
            mo, js_number="JS-2", planned_start_date=None, planned_end_date=None
        )
        orphan_task = make_task(bare_js, task_number="T-3")

        tree = OrderTree(
            order=order,
            manufacturing_orders=[
                MOTree(
                    manufacturing_order=mo,
                    jobsheets=[
                        JobsheetTree(jobsheet=jobsheet, tasks=[running, planned]),
                        JobsheetTree(jobsheet=bare_js, tasks=[orphan_task]),
                    ],
                )
            ],
        )
        return tree, order, mo, jobsheet, running, planned

    def test_unresolvable_entities_are_omitted(self):
        tree, order, mo, jobsheet, running, planned = self.build_tree()

        entries = flatten_timeline([tree])

        assert [entry.id for entry in entries] == [
            f"order-{order.id}",
            f"jobsheet-{jobsheet.id}",
            f"task-{planned.id}",
            f"task-{running.id}",
        ]

    def test_entries_sorted_by_start(self):
        tree, *_ = self.build_tree()
        late_order = make_order(
            order_number="SO-0999", planned_start_date=day(-5), planned_end_date=day(1)
        )

        entries = flatten_timeline([tree, OrderTree(order=late_order)])

        starts = [entry.start for entry in entries]
        assert starts == sorted(starts)
        assert entries[0].order_id == late_order.id

    def test_ties_keep_parent_before_child(self):
        tree, order, mo, jobsheet, running, planned = self.build_tree()

        entries = flatten_timeline([tree])
        js_index = next(i for i, e in enumerate(entries) if e.level == HierarchyLevel.JOBSHEET)

        # The fallback task shares the jobsheet start
        assert entries[js_index + 1].task_id == planned.id

    def test_entry_fields(self):
        tree, order, mo, jobsheet, running, planned = self.build_tree()

        entries = {entry.id: entry for entry in flatten_timeline([tree])}

        order_bar = entries[f"order-{order.id}"]
        assert order_bar.label == "SO-1001 - Northwind"
        assert order_bar.depth == 0
        assert order_bar.status == "DRAFT"
        assert order_bar.mo_id is None
        assert order_bar.entity_id == order.id

        task_bar = entries[f"task-{running.id}"]
        assert task_bar.label == "T-1 - Cut"
        assert task_bar.level == HierarchyLevel.TASK
        assert task_bar.depth == 3
        assert task_bar.progress_percent == 30
        assert task_bar.status == "PENDING"
        assert task_bar.start == day(2)
        assert task_bar.end == jobsheet.planned_end_date
        assert task_bar.ancestor_ids == [order.id, mo.id, jobsheet.id]
        assert task_bar.machine_id is None

    def test_naive_and_aware_dates_sort_together(self):
        order = make_order(
            planned_start_date=datetime(2024, 3, 1), planned_end_date=datetime(2024, 3, 9)
        )
        mo = make_mo(order, planned_start_date=None, planned_end_date=None)
        jobsheet = make_jobsheet(mo)
        task = make_task(jobsheet, clocked_in_at=utc_now(), clocked_out_at=utc_now())
        tree = OrderTree(
            order=order,
            manufacturing_orders=[
                MOTree(
                    manufacturing_order=mo,
                    jobsheets=[JobsheetTree(jobsheet=jobsheet, tasks=[task])],
                )
            ],
        )

        entries = flatten_timeline([tree])

        assert entries[0].id == f"order-{order.id}"
        assert entries[0].start == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert entries[-1].task_id == task.id

    def test_empty_input(self):
        assert flatten_timeline([]) == []


class TestTimelineFlattenerService:
    @pytest.fixture
    def flattener(self, stores, settings, clock):
        return TimelineFlattener(stores, settings, clock=clock)

    @pytest.mark.asyncio
    async def test_loads_hierarchy_for_tenant(self, flattener, hierarchy, ctx, other_ctx):
        entries = await flattener.flatten(ctx)

        levels = [entry.level for entry in entries]
        assert levels == [
            HierarchyLevel.ORDER,
            HierarchyLevel.JOBSHEET,
            HierarchyLevel.TASK,
            HierarchyLevel.TASK,
        ]
        assert await flattener.flatten(other_ctx) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.CLOSED]
    )
    async def test_terminal_orders_are_excluded(self, flattener, hierarchy, ctx, stores, status):
        order = await stores.orders.find_by_id(hierarchy.order.id)
        order.status = status
        await stores.orders.update(order)

        assert await flattener.flatten(ctx) == []
        assert await flattener.flatten(ctx, [hierarchy.order.id]) == []

    @pytest.mark.asyncio
    async def test_restrict_to_order_ids(self, flattener, hierarchy, ctx, stores):
        other = make_order(order_number="SO-2000")
        await stores.orders.create(other)

        entries = await flattener.flatten(ctx, [other.id])

        assert [entry.id for entry in entries] == [f"order-{other.id}"]
