"""
Unit Tests for Production Domain Entities

Covers field validation, parent status derivation, breakdown resolution
and machine status changes.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from shopfloor.domain.production.entities import Breakdown, Jobsheet
from shopfloor.domain.production.events import ProgressRecomputed
from shopfloor.domain.production.value_objects import (
    BreakdownType,
    JobsheetStatus,
    MachineStatus,
    MOStatus,
    OrderStatus,
    TaskStatus,
)
from shopfloor.domain.shared.exceptions import AlreadyResolvedError
from shopfloor.tests.factories import (
    START,
    TENANT,
    make_jobsheet,
    make_machine,
    make_mo,
    make_order,
    make_task,
)


@pytest.fixture
def jobsheet():
    return make_jobsheet(make_mo(make_order()))


class TestTask:
    """Test task field rules and session timestamps."""

    @pytest.mark.parametrize("value", [-1, 101])
    def test_progress_out_of_range_rejected(self, jobsheet, value):
        with pytest.raises(PydanticValidationError):
            make_task(jobsheet, progress_percent=value)

    def test_progress_assignment_is_validated(self, jobsheet):
        task = make_task(jobsheet)
        with pytest.raises(PydanticValidationError):
            task.progress_percent = 150

    def test_negative_planned_hours_rejected(self, jobsheet):
        with pytest.raises(PydanticValidationError):
            make_task(jobsheet, planned_hours=-2)

    def test_clock_out_rounds_half_up(self, jobsheet):
        task = make_task(jobsheet)
        task.clock_in(START)
        # 0.125 h
        task.clock_out(START + timedelta(minutes=7, seconds=30))
        assert task.actual_hours == 0.13

    def test_naive_datetimes_are_stored_as_utc(self, jobsheet):
        task = make_task(jobsheet, planned_start_date=datetime(2024, 3, 5, 6, 0))
        task.clocked_in_at = datetime(2024, 3, 5, 7, 0)

        assert task.planned_start_date == datetime(2024, 3, 5, 6, 0, tzinfo=timezone.utc)
        assert task.clocked_in_at.tzinfo is timezone.utc

    def test_aware_datetimes_keep_their_offset(self, jobsheet):
        cet = timezone(timedelta(hours=1))
        task = make_task(jobsheet, planned_end_date=datetime(2024, 3, 5, 9, 0, tzinfo=cet))
        assert task.planned_end_date.utcoffset() == timedelta(hours=1)

    def test_clock_out_with_naive_instant(self, jobsheet):
        task = make_task(jobsheet)
        task.clock_in(START)
        task.clock_out(datetime(2024, 3, 4, 9, 30))
        assert task.actual_hours == 1.5

    def test_clock_out_never_clears_clock_in(self, jobsheet):
        task = make_task(jobsheet)
        task.clock_in(START)
        task.clock_out(START + timedelta(hours=1))
        assert task.clocked_in_at == START
        assert not task.in_session

    def test_update_progress_reports_change(self, jobsheet):
        task = make_task(jobsheet)
        assert task.update_progress(20)
        assert not task.update_progress(20)
        assert [e.event_name for e in task.get_domain_events()] == ["TaskProgressUpdated"]

    def test_breakdown_stamps_leave_status(self, jobsheet):
        task = make_task(jobsheet, status=TaskStatus.RUNNING)
        task.record_breakdown("Spindle seized", START)
        assert task.has_open_breakdown
        task.clear_breakdown(START + timedelta(hours=2))
        assert not task.has_open_breakdown
        assert task.breakdown_at == START
        assert task.breakdown_resolved_at == START + timedelta(hours=2)
        assert task.status == TaskStatus.RUNNING

    def test_snapshot_is_detached(self, jobsheet):
        task = make_task(jobsheet)
        task.update_progress(10)
        copy = task.snapshot()
        copy.progress_percent = 90
        assert task.progress_percent == 10
        assert copy.get_domain_events() == []


class TestParentStatusDerivation:
    """Test status changes driven by recomputed progress."""

    def test_first_progress_starts_jobsheet(self, jobsheet):
        assert jobsheet.apply_recomputed_progress(10, now=START)
        assert jobsheet.status == JobsheetStatus.IN_PROGRESS
        assert jobsheet.actual_start_date == START

    def test_zero_progress_keeps_pre_production_status(self, jobsheet):
        assert not jobsheet.apply_recomputed_progress(0, now=START)
        assert jobsheet.status == JobsheetStatus.PREPARING

    def test_full_progress_completes(self, jobsheet):
        jobsheet.apply_recomputed_progress(100, now=START)
        assert jobsheet.status == JobsheetStatus.COMPLETED
        assert jobsheet.actual_end_date == START

    def test_completed_reverts_below_full(self, jobsheet):
        jobsheet.apply_recomputed_progress(100, now=START)
        jobsheet.apply_recomputed_progress(80, now=START + timedelta(hours=1))
        assert jobsheet.status == JobsheetStatus.IN_PROGRESS
        assert jobsheet.actual_end_date is None
        assert jobsheet.actual_start_date == START

    def test_hold_is_never_touched(self, jobsheet):
        jobsheet.status = JobsheetStatus.ON_HOLD
        jobsheet.apply_recomputed_progress(100, now=START)
        assert jobsheet.status == JobsheetStatus.ON_HOLD
        assert jobsheet.progress_percent == 100

    def test_order_uses_in_production(self):
        order = make_order()
        order.apply_recomputed_progress(5, now=START)
        assert order.status == OrderStatus.IN_PRODUCTION

    def test_cancelled_order_keeps_status(self):
        order = make_order(status=OrderStatus.CANCELLED)
        order.apply_recomputed_progress(100, now=START)
        assert order.status == OrderStatus.CANCELLED

    def test_mo_from_planned(self):
        mo = make_mo(make_order())
        mo.apply_recomputed_progress(100, now=START)
        assert mo.status == MOStatus.COMPLETED

    def test_derivation_disabled(self, jobsheet):
        jobsheet.apply_recomputed_progress(100, derive_status=False, now=START)
        assert jobsheet.status == JobsheetStatus.PREPARING
        assert jobsheet.actual_end_date is None

    def test_emits_recomputed_event(self, jobsheet):
        jobsheet.apply_recomputed_progress(40, now=START)
        (event,) = jobsheet.get_domain_events()
        assert isinstance(event, ProgressRecomputed)
        assert (event.old_progress, event.new_progress) == (0, 40)
        assert (event.old_status, event.new_status) == ("PREPARING", "IN_PROGRESS")

    def test_display_labels(self, jobsheet):
        assert jobsheet.display_label == "JS-1 - Welding"
        assert make_mo(make_order()).display_label.startswith("MO-1")
        assert isinstance(jobsheet, Jobsheet)


class TestBreakdown:
    def make(self, **overrides):
        data = {
            "tenant_id": TENANT,
            "machine_id": uuid4(),
            "breakdown_type": BreakdownType.MECHANICAL,
            "description": "  Belt snapped  ",
            "now": START,
        }
        data.update(overrides)
        return Breakdown.report(**data)

    def test_report_strips_description(self):
        breakdown = self.make()
        assert breakdown.description == "Belt snapped"
        assert breakdown.reported_at == START
        assert not breakdown.resolved

    def test_blank_description_rejected(self):
        with pytest.raises(PydanticValidationError):
            self.make(description="   ")

    def test_resolve_once(self):
        breakdown = self.make()
        user = uuid4()
        breakdown.resolve(user, "Belt replaced", START + timedelta(hours=1))

        assert breakdown.resolved
        assert breakdown.resolved_by == user
        assert breakdown.is_valid()
        with pytest.raises(AlreadyResolvedError):
            breakdown.resolve(user, "again")
        assert breakdown.resolution == "Belt replaced"

    def test_matches_report(self):
        breakdown = self.make()
        assert breakdown.matches_report(
            breakdown.machine_id, None, BreakdownType.MECHANICAL, "Belt snapped "
        )
        assert not breakdown.matches_report(
            breakdown.machine_id, None, BreakdownType.ELECTRICAL, "Belt snapped"
        )


class TestMachine:
    def test_change_status_reports_change(self):
        machine = make_machine()
        assert machine.mark_down("jam")
        assert machine.is_down
        assert not machine.mark_down("jam again")
        assert machine.mark_idle()
        assert machine.status == MachineStatus.IDLE
        assert [e.event_name for e in machine.get_domain_events()] == [
            "MachineStatusChanged",
            "MachineStatusChanged",
        ]
