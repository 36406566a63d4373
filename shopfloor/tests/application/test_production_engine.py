"""
End-to-end tests for the ProductionEngine application service, run against
the in-memory record stores.
"""

from uuid import uuid4

import pytest
from prometheus_client import REGISTRY

from shopfloor import ProductionEngine, ReportBreakdownRequest, build_in_memory_stores
from shopfloor.domain.production.events import DomainEventDispatcher
from shopfloor.domain.production.value_objects import (
    HierarchyLevel,
    JobsheetStatus,
    MachineStatus,
    MOStatus,
    OrderStatus,
    TaskStatus,
)
from shopfloor.domain.shared.exceptions import (
    AlreadyResolvedError,
    InvalidActionError,
    JobsheetNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from shopfloor.tests.factories import RecordingHandler


def operation_count(operation, status):
    value = REGISTRY.get_sample_value(
        "shopfloor_engine_operations_total",
        {"operation": operation, "status": status},
    )
    return value or 0


class TestProgressFlow:
    """Test operator progress edits flowing up the hierarchy."""

    @pytest.mark.asyncio
    async def test_two_tasks_roll_up_to_75(self, engine, hierarchy, ctx, stores):
        await engine.set_task_progress(ctx, hierarchy.task1.id, 100)
        result = await engine.set_task_progress(ctx, hierarchy.task2.id, 50)

        assert result.is_complete
        assert result.task.progress_percent == 50
        assert result.jobsheet.progress_percent == 75
        assert result.manufacturing_order.progress_percent == 75
        assert result.order.progress_percent == 75

        order = await stores.orders.find_by_id(hierarchy.order.id)
        assert order.progress_percent == 75
        assert order.status == OrderStatus.IN_PRODUCTION

    @pytest.mark.asyncio
    async def test_everything_done_completes_the_chain(self, engine, hierarchy, ctx):
        await engine.set_task_progress(ctx, hierarchy.task1.id, 100)
        result = await engine.set_task_progress(ctx, hierarchy.task2.id, 100)

        assert result.jobsheet.status == JobsheetStatus.COMPLETED
        assert result.manufacturing_order.status == MOStatus.COMPLETED
        assert result.order.status == OrderStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_out_of_range_progress(self, engine, hierarchy, ctx, stores):
        with pytest.raises(ValidationError):
            await engine.set_task_progress(ctx, hierarchy.task1.id, 120)

        task = await stores.tasks.find_by_id(hierarchy.task1.id)
        assert task.progress_percent == 0

    @pytest.mark.asyncio
    async def test_orphaned_jobsheet_keeps_task_update(self, engine, hierarchy, ctx, stores):
        await stores.jobsheets.delete(hierarchy.jobsheet.id)

        result = await engine.set_task_progress(ctx, hierarchy.task1.id, 60)

        assert result.task.progress_percent == 60
        assert result.orphan is not None
        assert result.orphan.parent_level == "jobsheet"
        assert result.completed_steps == []
        task = await stores.tasks.find_by_id(hierarchy.task1.id)
        assert task.progress_percent == 60

    @pytest.mark.asyncio
    async def test_recompute_progress_after_child_removed(self, engine, hierarchy, ctx, stores):
        await engine.set_task_progress(ctx, hierarchy.task1.id, 100)
        await stores.tasks.delete(hierarchy.task2.id)

        result = await engine.recompute_progress(ctx, "jobsheet", hierarchy.jobsheet.id)

        assert result.jobsheet.progress_percent == 100
        assert result.order.progress_percent == 100

    @pytest.mark.asyncio
    async def test_recompute_from_task_level(self, engine, hierarchy, ctx):
        result = await engine.recompute_progress(ctx, HierarchyLevel.TASK, hierarchy.task1.id)
        assert result.task.id == hierarchy.task1.id
        assert len(result.completed_steps) == 3

    @pytest.mark.asyncio
    async def test_recompute_unknown_entity(self, engine, ctx):
        with pytest.raises(JobsheetNotFoundError):
            await engine.recompute_progress(ctx, "jobsheet", uuid4())


class TestOperatorActions:
    @pytest.mark.asyncio
    async def test_clock_cycle(self, engine, hierarchy, ctx, clock):
        task = await engine.perform_action(ctx, hierarchy.task1.id, "clock_in")
        assert task.status == TaskStatus.RUNNING

        clock.advance(minutes=90)
        task = await engine.pause(ctx, hierarchy.task1.id)
        assert task.status == TaskStatus.PAUSED

        task = await engine.clock_out(ctx, hierarchy.task1.id)
        assert task.actual_hours == 1.5

        task = await engine.clock_in(ctx, hierarchy.task1.id)
        assert task.clocked_out_at is None
        assert task.clocked_in_at == clock()

    @pytest.mark.asyncio
    async def test_unknown_action_is_counted(self, engine, hierarchy, ctx):
        before = operation_count("perform_action", "invalid_action")

        with pytest.raises(InvalidActionError):
            await engine.perform_action(ctx, hierarchy.task1.id, "resume")

        assert operation_count("perform_action", "invalid_action") == before + 1

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, engine, hierarchy, other_ctx):
        with pytest.raises(TaskNotFoundError):
            await engine.clock_in(other_ctx, hierarchy.task1.id)

    @pytest.mark.asyncio
    async def test_success_is_counted(self, engine, hierarchy, ctx):
        before = operation_count("clock_in", "success")
        await engine.clock_in(ctx, hierarchy.task1.id)
        assert operation_count("clock_in", "success") == before + 1


class TestBreakdownFlow:
    @pytest.mark.asyncio
    async def test_report_and_resolve(self, engine, hierarchy, ctx, stores, recorder):
        request = ReportBreakdownRequest(
            machine_id=hierarchy.machine.id,
            type="electrical",
            description="  Contactor burnt  ",
            affected_task_id=hierarchy.task1.id,
        )

        breakdown = await engine.report_breakdown(ctx, request)

        assert breakdown.description == "Contactor burnt"
        machine = await stores.machines.find_by_id(hierarchy.machine.id)
        assert machine.status == MachineStatus.DOWN

        resolved = await engine.resolve_breakdown(ctx, breakdown.id)

        assert resolved.resolved
        machine = await stores.machines.find_by_id(hierarchy.machine.id)
        assert machine.status == MachineStatus.IDLE
        task = await stores.tasks.find_by_id(hierarchy.task1.id)
        assert task.breakdown_resolved_at is not None
        assert recorder.names.count("MachineStatusChanged") == 2

        with pytest.raises(AlreadyResolvedError):
            await engine.resolve_breakdown(ctx, breakdown.id)

    @pytest.mark.asyncio
    async def test_request_without_type(self, engine, hierarchy, ctx):
        request = ReportBreakdownRequest(machine_id=hierarchy.machine.id, description="Noise")
        with pytest.raises(ValidationError) as exc_info:
            await engine.report_breakdown(ctx, request)
        assert exc_info.value.field_name == "type"


class TestTimeline:
    @pytest.mark.asyncio
    async def test_flatten_timeline(self, engine, hierarchy, ctx, clock):
        await engine.clock_in(ctx, hierarchy.task1.id)

        entries = await engine.flatten_timeline(ctx)

        starts = [entry.start for entry in entries]
        assert starts == sorted(starts)
        task_bar = next(e for e in entries if e.task_id == hierarchy.task1.id)
        assert task_bar.start == clock()
        assert task_bar.machine_id == hierarchy.machine.id
        assert task_bar.status == "RUNNING"


class TestEngineWiring:
    @pytest.mark.asyncio
    async def test_failing_handler_does_not_break_operation(self, hierarchy, ctx, settings, clock):
        class Exploding(RecordingHandler):
            def handle(self, event):
                raise RuntimeError("handler down")

        dispatcher = DomainEventDispatcher()
        dispatcher.register_handler(Exploding())
        engine = ProductionEngine(hierarchy.stores, settings, dispatcher, clock)

        task = await engine.clock_in(ctx, hierarchy.task1.id)

        assert task.status == TaskStatus.RUNNING

    @pytest.mark.asyncio
    async def test_empty_stores(self, ctx, settings):
        engine = ProductionEngine(build_in_memory_stores(), settings)
        assert await engine.flatten_timeline(ctx) == []
        assert engine.settings is settings
