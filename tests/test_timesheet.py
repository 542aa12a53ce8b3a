# =============================================================================
# tests/test_timesheet.py - Clock-in / Clock-out Tests
# =============================================================================
# This module contains tests for:
# - Work order selection and clock-in rules
# - Material / consumable lines
# - The clock-out steps, failure and resumption
# - Discarding a clock-out that keeps failing
# - Resuming stored entries by id
#
# Tests run against the in-memory FakeGateway and a fake clock.
# =============================================================================

import pytest

from app.exceptions import ClockOutError, ClockStateError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models import WorkOrderCreate
from core.services.timesheet_service import ClockRegistry, TimesheetService, format_elapsed


@pytest.fixture
def service(ctx):
    return TimesheetService(ctx)


@pytest.fixture
def clocked_in(service, project, clock):
    """Employee clocked in on the project at 08:00."""
    service.clock_in(project["id"])
    return service


# =============================================================================
# Clock In Tests
# =============================================================================

class TestClockIn:
    """Test work order selection and clock-in."""

    def test_requires_work_order(self, service, gateway):
        with pytest.raises(ValidationFailedError, match="Please select a work order before clocking in."):
            service.clock_in()
        assert service.status()["clocked_in"] is False

    def test_clock_in_with_selected_work_order(self, service, project):
        service.select_project(project["id"])
        status = service.clock_in()

        assert status["clocked_in"] is True
        assert status["project_name"] == "Industrial Railing System"
        assert status["elapsed_display"] == "00:00:00"

    def test_elapsed_time(self, clocked_in, clock):
        clock.advance(hours=1, minutes=2, seconds=3)
        status = clocked_in.status()
        assert status["elapsed_seconds"] == 3723
        assert status["elapsed_display"] == "01:02:03"

    def test_cannot_clock_in_twice(self, clocked_in):
        with pytest.raises(ClockStateError):
            clocked_in.clock_in()

    def test_cannot_switch_work_order_while_clocked_in(self, clocked_in, project):
        with pytest.raises(ClockStateError):
            clocked_in.select_project(project["id"])

    def test_unknown_work_order(self, service):
        with pytest.raises(EntityNotFoundError):
            service.select_project("550e8400-e29b-41d4-a716-446655440000")

    def test_created_work_order_is_selected(self, service, customer):
        work_order = service.create_work_order(
            WorkOrderCreate(title="WO-2001", customer_name="Alberta Steel Works"),
        )

        status = service.clock_in()

        assert status["project_id"] == str(work_order["id"])
        assert status["project_name"] == "WO-2001"

    def test_sessions_are_per_employee(self, gateway, clocks, employee, manager, project):
        TimesheetService(AppContext(gateway=gateway, user=employee, clocks=clocks)).clock_in(project["id"])
        other = TimesheetService(AppContext(gateway=gateway, user=manager, clocks=clocks))
        assert other.status()["clocked_in"] is False

    def test_format_elapsed(self):
        assert format_elapsed(0) == "00:00:00"
        assert format_elapsed(59) == "00:00:59"
        assert format_elapsed(36000 + 61) == "10:01:01"


# =============================================================================
# Line Tests
# =============================================================================

class TestLines:
    """Test attaching materials and consumables."""

    def test_partitioned_by_category(self, clocked_in, wire, discs):
        clocked_in.add_line(wire["id"])
        status = clocked_in.add_line(discs["id"])

        assert [l["name"] for l in status["materials"]] == ["ER70S-6 MIG Wire"]
        assert [l["name"] for l in status["consumables"]] == ["Grinding Discs"]
        assert status["materials"][0]["quantity"] == 0.0
        assert status["materials"][0]["unit"] == "spool"

    def test_gas_is_consumable(self, clocked_in, gateway):
        argon = gateway.seed("inventory", name="Argon", category="Gas", quantity=6, min_quantity=2)
        status = clocked_in.add_line(argon["id"])
        assert [l["name"] for l in status["consumables"]] == ["Argon"]

    def test_duplicate_prevented(self, clocked_in, wire):
        clocked_in.add_line(wire["id"])
        status = clocked_in.add_line(wire["id"])
        assert len(status["materials"]) == 1

    def test_requires_clock_in(self, service, wire):
        with pytest.raises(ClockStateError):
            service.add_line(wire["id"])

    @pytest.mark.parametrize("value,expected", [("3", 3.0), ("-5", 0.0), ("abc", 0.0), (1.5, 1.5)])
    def test_quantity_coerced(self, clocked_in, wire, value, expected):
        clocked_in.add_line(wire["id"])
        status = clocked_in.set_line_quantity(wire["id"], value)
        assert status["materials"][0]["quantity"] == expected

    def test_remove_line(self, clocked_in, wire):
        clocked_in.add_line(wire["id"])
        status = clocked_in.remove_line(wire["id"])
        assert status["materials"] == []

    def test_remove_unknown_line(self, clocked_in, wire):
        with pytest.raises(EntityNotFoundError):
            clocked_in.remove_line(wire["id"])


# =============================================================================
# Clock Out Tests
# =============================================================================

class TestClockOut:
    """Test the clock-out steps."""

    def test_requires_clock_in(self, service):
        with pytest.raises(ClockStateError):
            service.clock_out()

    def test_zero_lines_skips_inventory(self, clocked_in, gateway, clock, employee, project):
        """Test that a timesheet with no materials makes no decrement call."""
        clock.advance(minutes=90)

        result = clocked_in.clock_out(notes="Fit-up only")

        entries = gateway.rows("timesheet_entries")
        assert len(entries) == 1
        entry = entries[0]
        assert entry["employee_id"] == str(employee.id)
        assert entry["project_id"] == project["id"]
        assert entry["duration_minutes"] == 90.0
        assert entry["notes"] == "Fit-up only"
        assert entry["clockout_step"] == "inventory_applied"
        assert gateway.rows("timesheet_materials_used") == []
        assert gateway.invocations == []

        assert result["entry_id"] == entry["id"]
        assert result["message"] == "Timesheet submitted successfully!"
        assert result["message_seconds"] == 5
        assert result["inventory_updated"] is False

    def test_zero_quantity_lines_not_logged(self, clocked_in, gateway, wire):
        clocked_in.add_line(wire["id"])
        clocked_in.clock_out()
        assert gateway.rows("timesheet_materials_used") == []
        assert gateway.invocations == []

    def test_one_consumable_line(self, clocked_in, gateway, discs):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)

        result = clocked_in.clock_out()

        usage = gateway.rows("timesheet_materials_used")
        assert len(usage) == 1
        assert usage[0]["inventory_id"] == discs["id"]
        assert usage[0]["quantity_used"] == 3.0
        assert usage[0]["timesheet_entry_id"] == result["entry_id"]
        assert gateway.invocations == [
            ("update-inventory", {"items": [{"item_id": discs["id"], "amount": 3.0}]}),
        ]
        assert gateway.rows("timesheet_entries")[0]["clockout_step"] == "inventory_applied"

    def test_session_reset_after_success(self, clocked_in):
        clocked_in.clock_out()
        status = clocked_in.status()
        assert status["clocked_in"] is False
        assert status["project_id"] is None

    def test_decrement_failure_keeps_rows(self, clocked_in, gateway, discs):
        """Test that a failed decrement leaves the entry and usage stored."""
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "Insufficient stock for Grinding Discs"

        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()

        error = exc_info.value
        assert error.message == (
            "Error: Inventory update failed: Insufficient stock for Grinding Discs. "
            "Please check your inputs and try again."
        )
        assert error.status_code == 502
        assert error.details["step"] == "usage_logged"

        entries = gateway.rows("timesheet_entries")
        assert len(entries) == 1
        assert entries[0]["clockout_step"] == "usage_logged"
        assert error.details["entry_id"] == entries[0]["id"]
        assert len(gateway.rows("timesheet_materials_used")) == 1

        status = clocked_in.status()
        assert status["clocked_in"] is True
        assert status["clockout_step"] == "usage_logged"

    def test_retry_resumes_without_duplicates(self, clocked_in, gateway, discs, clock):
        """Test that retrying only repeats the failed decrement."""
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        clock.advance(minutes=30)
        gateway.invoke_error = "Function timed out"
        with pytest.raises(ClockOutError):
            clocked_in.clock_out()

        gateway.invoke_error = None
        clock.advance(minutes=10)
        result = clocked_in.clock_out()

        assert len(gateway.rows("timesheet_entries")) == 1
        assert len(gateway.rows("timesheet_materials_used")) == 1
        assert len(gateway.invocations) == 2
        assert result["duration_minutes"] == 30.0
        assert gateway.rows("timesheet_entries")[0]["clockout_step"] == "inventory_applied"

    def test_lines_locked_during_clock_out(self, clocked_in, gateway, discs):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError):
            clocked_in.clock_out()

        with pytest.raises(ClockStateError):
            clocked_in.set_line_quantity(discs["id"], 5)
        with pytest.raises(ClockStateError):
            clocked_in.set_notes("changed after the entry was written")

    def test_retry_ignores_new_notes(self, clocked_in, gateway, discs):
        clocked_in.set_notes("Welded base plates")
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError):
            clocked_in.clock_out()

        gateway.invoke_error = None
        clocked_in.clock_out(notes="Something else")

        assert gateway.rows("timesheet_entries")[0]["notes"] == "Welded base plates"

    def test_retry_after_entry_finished_elsewhere(self, clocked_in, gateway, discs):
        """Test that a retry reads the stored step instead of decrementing again."""
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        entry_id = exc_info.value.details["entry_id"]

        # Another process finished the entry in the meantime
        gateway.invoke_error = None
        gateway.update("timesheet_entries", entry_id, {"clockout_step": "inventory_applied"})

        result = clocked_in.clock_out()

        assert result["entry_id"] == entry_id
        assert len(gateway.invocations) == 1
        assert clocked_in.status()["clocked_in"] is False

    def test_retry_after_entry_deleted(self, clocked_in, gateway, discs):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        gateway.delete("timesheet_entries", exc_info.value.details["entry_id"])

        with pytest.raises(ClockStateError):
            clocked_in.clock_out()
        assert clocked_in.status()["clocked_in"] is False


# =============================================================================
# Discard Tests
# =============================================================================

class TestDiscard:
    """Test giving up on a clock-out that keeps failing."""

    def test_discard_frees_employee(self, clocked_in, gateway, discs, project):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "Insufficient stock for Grinding Discs"
        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        with pytest.raises(ClockOutError):
            clocked_in.clock_out()

        result = clocked_in.discard()

        assert result == {"entry_id": exc_info.value.details["entry_id"], "clockout_step": "usage_logged"}
        assert clocked_in.status()["clocked_in"] is False
        assert clocked_in.clock_in(project["id"])["clocked_in"] is True
        # The stored entry is still there to be resumed
        pending = clocked_in.list_entries(pending_only=True)
        assert [e["id"] for e in pending] == [result["entry_id"]]

    def test_discard_requires_started_clock_out(self, clocked_in):
        with pytest.raises(ClockStateError):
            clocked_in.discard()
        assert clocked_in.status()["clocked_in"] is True

    def test_entry_insert_failure(self, clocked_in, gateway):
        gateway.insert_errors["timesheet_entries"] = "permission denied"

        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()

        assert exc_info.value.details == {"entry_id": None, "step": None}
        assert gateway.rows("timesheet_entries") == []
        assert clocked_in.status()["clocked_in"] is True

    def test_usage_insert_failure_then_retry(self, clocked_in, gateway, wire):
        clocked_in.add_line(wire["id"])
        clocked_in.set_line_quantity(wire["id"], 2)
        gateway.insert_errors["timesheet_materials_used"] = "insert failed"

        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        assert exc_info.value.details["step"] == "entry_recorded"
        assert gateway.invocations == []

        del gateway.insert_errors["timesheet_materials_used"]
        clocked_in.clock_out()

        assert len(gateway.rows("timesheet_entries")) == 1
        assert len(gateway.rows("timesheet_materials_used")) == 1
        assert len(gateway.invocations) == 1


# =============================================================================
# Stored Entry Tests
# =============================================================================

class TestEntries:
    """Test listing and resuming stored entries."""

    def test_pending_entries(self, clocked_in, gateway, discs):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError):
            clocked_in.clock_out()

        pending = clocked_in.list_entries(pending_only=True)
        assert [e["clockout_step"] for e in pending] == ["usage_logged"]

    def test_manager_resumes_entry(self, clocked_in, gateway, discs, manager):
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        entry_id = exc_info.value.details["entry_id"]

        gateway.invoke_error = None
        # Fresh registry, as after a restart
        manager_ctx = AppContext(gateway=gateway, user=manager, clocks=ClockRegistry())
        entry = TimesheetService(manager_ctx).resume_entry(entry_id)

        assert entry["clockout_step"] == "inventory_applied"
        assert gateway.invocations[-1] == (
            "update-inventory", {"items": [{"item_id": discs["id"], "amount": 3.0}]},
        )
        assert len(gateway.rows("timesheet_materials_used")) == 1

    def test_resume_then_employee_retry(self, clocked_in, gateway, discs, manager, clocks):
        """Test that a resumed entry is never decremented a second time."""
        clocked_in.add_line(discs["id"])
        clocked_in.set_line_quantity(discs["id"], 3)
        gateway.invoke_error = "down"
        with pytest.raises(ClockOutError) as exc_info:
            clocked_in.clock_out()
        entry_id = exc_info.value.details["entry_id"]

        gateway.invoke_error = None
        manager_ctx = AppContext(gateway=gateway, user=manager, clocks=clocks)
        TimesheetService(manager_ctx).resume_entry(entry_id)

        # The employee's session was released by the resume
        assert clocked_in.status()["clocked_in"] is False
        with pytest.raises(ClockStateError):
            clocked_in.clock_out()
        assert len(gateway.invocations) == 2

    def test_resume_leaves_other_sessions(self, clocked_in, gateway, discs, manager, clocks, employee):
        entry = gateway.seed(
            "timesheet_entries", employee_id=str(employee.id), clockout_step="inventory_applied",
        )
        manager_ctx = AppContext(gateway=gateway, user=manager, clocks=clocks)
        TimesheetService(manager_ctx).resume_entry(entry["id"])

        assert clocked_in.status()["clocked_in"] is True

    def test_resume_applied_entry_is_noop(self, service, gateway, employee, project):
        entry = gateway.seed(
            "timesheet_entries", employee_id=str(employee.id), project_id=project["id"],
            clockout_step="inventory_applied",
        )
        assert service.resume_entry(entry["id"])["id"] == entry["id"]
        assert gateway.invocations == []

    def test_resume_without_logged_usage(self, service, gateway, employee):
        entry = gateway.seed("timesheet_entries", employee_id=str(employee.id), clockout_step="entry_recorded")
        with pytest.raises(ClockStateError):
            service.resume_entry(entry["id"])

    def test_list_own_entries(self, service, gateway, employee, manager):
        gateway.seed("timesheet_entries", employee_id=str(employee.id), clockout_step="inventory_applied")
        gateway.seed("timesheet_entries", employee_id=str(manager.id), clockout_step="inventory_applied")
        assert len(service.list_entries(employee_id=employee.id)) == 1
        assert len(service.list_entries()) == 2
