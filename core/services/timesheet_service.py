# =============================================================================
# core/services/timesheet_service.py - Clock-in / Clock-out Workflow
# =============================================================================
# The employee timesheet flow:
#   1. Pick (or quickly create) a work order
#   2. Clock in - the start time is held in memory, not written yet
#   3. Attach materials / consumables with quantities used
#   4. Clock out - written in three steps:
#        a. insert the timesheet entry          -> entry_recorded
#        b. insert the materials-used rows      -> usage_logged
#        c. call the update-inventory function  -> inventory_applied
#
# The step reached is stored on the entry (clockout_step). The steps are
# not a transaction: when (c) fails the entry and usage rows stay, the
# employee's clock session is kept, and clocking out again resumes at the
# failed step without writing (a) or (b) twice. Managers can resume entries
# stuck before inventory_applied by id, which also clears the employee's
# session, and employees can discard a clock-out that keeps failing.
# =============================================================================

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from app.config import settings
from app.exceptions import ClockOutError, ClockStateError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models.inventory import CONSUMABLE_CATEGORIES
from core.models.project import WorkOrderCreate
from core.models.timesheet import PENDING_STEPS, ClockOutStep, LineKind, coerce_quantity
from core.services.inventory_service import InventoryService
from core.services.project_service import ProjectService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

ENTRIES_TABLE = "timesheet_entries"
USAGE_TABLE = "timesheet_materials_used"
INVENTORY_FUNCTION = "update-inventory"


def format_elapsed(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Clock Sessions
# =============================================================================

@dataclass
class ClockLine:
    """An inventory item attached to a running timesheet."""
    inventory_id: str
    name: str
    category: str
    unit: str | None = None
    quantity: float = 0.0

    @property
    def kind(self) -> LineKind:
        if self.category in CONSUMABLE_CATEGORIES:
            return LineKind.CONSUMABLE
        return LineKind.MATERIAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "inventory_id": self.inventory_id,
            "name": self.name,
            "unit": self.unit,
            "category": self.category,
            "kind": self.kind.value,
            "quantity": self.quantity,
        }


@dataclass
class ClockSession:
    """
    One employee's timesheet screen state.

    entry_id and step are set once clock-out has written something, and
    clock_out_time is fixed at the first attempt so retries keep the same
    duration.
    """
    employee_id: str
    project_id: str | None = None
    project_name: str | None = None
    clock_in_time: datetime | None = None
    clock_out_time: datetime | None = None
    lines: list[ClockLine] = field(default_factory=list)
    notes: str = ""
    entry_id: str | None = None
    step: ClockOutStep | None = None

    @property
    def clocked_in(self) -> bool:
        return self.clock_in_time is not None

    @property
    def clocking_out(self) -> bool:
        return self.entry_id is not None

    def find_line(self, inventory_id: str) -> ClockLine | None:
        for line in self.lines:
            if line.inventory_id == inventory_id:
                return line
        return None

    def used_items(self) -> list[tuple[str, float]]:
        """(inventory_id, quantity) for every line with a positive quantity."""
        return [(line.inventory_id, line.quantity) for line in self.lines if line.quantity > 0]


class ClockRegistry:
    """
    Process-local store of clock sessions keyed by employee id.

    `now` can be swapped out to control time in tests.
    """

    def __init__(self, now: Callable[[], datetime] = _utcnow):
        self.now = now
        self._sessions: dict[str, ClockSession] = {}
        self._lock = threading.Lock()

    def get(self, employee_id: str | UUID) -> ClockSession:
        """The employee's session, created empty on first use."""
        key = str(employee_id)
        with self._lock:
            if key not in self._sessions:
                self._sessions[key] = ClockSession(employee_id=key)
            return self._sessions[key]

    def reset(self, employee_id: str | UUID) -> None:
        """Discard the employee's session."""
        with self._lock:
            self._sessions.pop(str(employee_id), None)

    def release(self, employee_id: str | UUID, entry_id: str) -> bool:
        """Discard the employee's session only if it is clocking out `entry_id`."""
        key = str(employee_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None or session.entry_id != entry_id:
                return False
            del self._sessions[key]
            return True

    def clocked_in(self) -> list[ClockSession]:
        """Sessions currently on the clock."""
        with self._lock:
            return [s for s in self._sessions.values() if s.clocked_in]


# =============================================================================
# Service
# =============================================================================

class TimesheetService:
    """
    Service for the employee clock-in / clock-out workflow.

    Acts on the clock session of the user in the context.
    """

    def __init__(self, ctx: AppContext):
        if ctx.user is None:
            raise ClockStateError("A signed-in employee is required for timesheets")
        if ctx.clocks is None:
            raise ClockStateError("Clock sessions are not available")
        self.ctx = ctx
        self.gateway = ctx.gateway
        self.clocks = ctx.clocks
        self.employee_id = str(ctx.user.id)

    @property
    def session(self) -> ClockSession:
        return self.clocks.get(self.employee_id)

    # -------------------------------------------------------------------------
    # Screen State
    # -------------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Current timesheet screen state including elapsed time."""
        session = self.session
        elapsed = 0
        if session.clock_in_time:
            end = session.clock_out_time or self.clocks.now()
            elapsed = int((end - session.clock_in_time).total_seconds())

        return {
            "employee_id": self.employee_id,
            "clocked_in": session.clocked_in,
            "project_id": session.project_id,
            "project_name": session.project_name,
            "clock_in_time": session.clock_in_time,
            "elapsed_seconds": elapsed,
            "elapsed_display": format_elapsed(elapsed),
            "materials": [l.to_dict() for l in session.lines if l.kind == LineKind.MATERIAL],
            "consumables": [l.to_dict() for l in session.lines if l.kind == LineKind.CONSUMABLE],
            "notes": session.notes,
            "entry_id": session.entry_id,
            "clockout_step": session.step.value if session.step else None,
        }

    def _ensure_editable(self) -> ClockSession:
        session = self.session
        if session.clocking_out:
            raise ClockStateError(
                "Clock-out is already in progress for this timesheet",
                suggestion="Retry the clock-out before changing the timesheet",
            )
        return session

    # -------------------------------------------------------------------------
    # Work Orders
    # -------------------------------------------------------------------------

    def select_project(self, project_id: str | UUID) -> dict[str, Any]:
        """
        Choose the work order to clock in against.

        Raises:
            ClockStateError: If already clocked in
            EntityNotFoundError: If the project doesn't exist
        """
        session = self.session
        if session.clocked_in:
            raise ClockStateError("Clock out before switching work orders")

        project = self.gateway.select_one("projects", project_id, "id, title")
        if not project:
            raise EntityNotFoundError("project", str(project_id))

        session.project_id = str(project["id"])
        session.project_name = project["title"]
        return self.status()

    def create_work_order(self, data: WorkOrderCreate) -> dict[str, Any]:
        """
        Create a work order (reusing a customer by exact name) and select it.
        """
        work_order = ProjectService(self.ctx).create_work_order(data)
        session = self.session
        if not session.clocked_in:
            session.project_id = str(work_order["id"])
            session.project_name = work_order["name"]
        return work_order

    # -------------------------------------------------------------------------
    # Clock In
    # -------------------------------------------------------------------------

    def clock_in(self, project_id: str | UUID | None = None) -> dict[str, Any]:
        """
        Start the clock.

        Raises:
            ValidationFailedError: If no work order is selected
            ClockStateError: If already clocked in
        """
        if self.session.clocked_in:
            raise ClockStateError("Already clocked in", suggestion="Clock out first")
        if project_id is not None:
            self.select_project(project_id)

        session = self.session
        if not session.project_id:
            raise ValidationFailedError(
                "Please select a work order before clocking in.", fields=["project_id"],
            )

        session.clock_in_time = self.clocks.now()
        logger.info(f"Employee {self.employee_id} clocked in on project {session.project_id}")
        return self.status()

    # -------------------------------------------------------------------------
    # Materials & Consumables
    # -------------------------------------------------------------------------

    def add_line(self, inventory_id: str | UUID) -> dict[str, Any]:
        """
        Attach an inventory item with quantity 0.

        Items already attached are left as they are. Consumables and Gas
        go in the consumables list, everything else in materials.

        Raises:
            ClockStateError: If not clocked in
            EntityNotFoundError: If the item doesn't exist
        """
        session = self._ensure_editable()
        if not session.clocked_in:
            raise ClockStateError("Clock in before adding materials")

        key = str(inventory_id)
        if session.find_line(key):
            logger.debug(f"Item {key} already on timesheet, not adding again")
            return self.status()

        item = InventoryService(self.ctx).get_item(key)
        session.lines.append(ClockLine(
            inventory_id=key,
            name=item["name"],
            category=item.get("category") or "",
            unit=item.get("unit"),
        ))
        return self.status()

    def set_line_quantity(self, inventory_id: str | UUID, quantity: Any) -> dict[str, Any]:
        """
        Set the quantity used for an attached item.

        Non-numeric or negative input becomes 0.

        Raises:
            EntityNotFoundError: If the item isn't attached
        """
        session = self._ensure_editable()
        line = session.find_line(str(inventory_id))
        if line is None:
            raise EntityNotFoundError("timesheet line", str(inventory_id))
        line.quantity = coerce_quantity(quantity)
        return self.status()

    def remove_line(self, inventory_id: str | UUID) -> dict[str, Any]:
        """
        Drop an attached item before submission.

        Raises:
            EntityNotFoundError: If the item isn't attached
        """
        session = self._ensure_editable()
        line = session.find_line(str(inventory_id))
        if line is None:
            raise EntityNotFoundError("timesheet line", str(inventory_id))
        session.lines.remove(line)
        return self.status()

    def set_notes(self, notes: str) -> dict[str, Any]:
        """Replace the timesheet notes."""
        session = self._ensure_editable()
        session.notes = notes or ""
        return self.status()

    # -------------------------------------------------------------------------
    # Clock Out
    # -------------------------------------------------------------------------

    def clock_out(self, notes: str | None = None) -> dict[str, Any]:
        """
        Submit the timesheet.

        Resumes from the recorded step when a previous attempt failed.
        On success the clock session is reset.

        Returns:
            Dict with entry_id, duration_minutes, lines_logged,
            inventory_updated, message and message_seconds

        Raises:
            ClockStateError: If not clocked in
            ClockOutError: If a step fails; earlier steps stay written
        """
        session = self.session
        if not session.clocked_in:
            raise ClockStateError("Not clocked in")
        # Notes are written with the entry; a retry cannot change them
        if notes is not None and not session.clocking_out:
            session.notes = notes
        if session.clock_out_time is None:
            session.clock_out_time = self.clocks.now()

        duration = round((session.clock_out_time - session.clock_in_time).total_seconds() / 60, 2)
        used = session.used_items()

        try:
            if session.entry_id is None:
                session.entry_id = self._record_entry(session, duration, has_usage=bool(used))
                session.step = (
                    ClockOutStep.ENTRY_RECORDED if used else ClockOutStep.INVENTORY_APPLIED
                )
            else:
                session.step = self._stored_step(session.entry_id)
            session.step = self._finish(session.entry_id, session.step, used)
        except SupabaseClientError as e:
            logger.error(
                f"Clock-out for employee {self.employee_id} stopped at "
                f"{session.step.value if session.step else 'start'}: {e.message}"
            )
            raise ClockOutError(
                self._failure_message(e),
                entry_id=session.entry_id,
                step=session.step.value if session.step else None,
            )

        entry_id = session.entry_id
        self.clocks.reset(self.employee_id)
        logger.info(f"Employee {self.employee_id} clocked out, entry {entry_id}")

        return {
            "entry_id": entry_id,
            "duration_minutes": duration,
            "lines_logged": len(used),
            "inventory_updated": bool(used),
            "message": "Timesheet submitted successfully!",
            "message_seconds": settings.SUCCESS_MESSAGE_SECONDS,
        }

    def _record_entry(self, session: ClockSession, duration: float, has_usage: bool) -> str:
        """Step (a): insert the entry. Without usage there is nothing left to do."""
        entry = self.gateway.insert(ENTRIES_TABLE, {
            "employee_id": self.employee_id,
            "project_id": session.project_id,
            "start_time": session.clock_in_time.isoformat(),
            "end_time": session.clock_out_time.isoformat(),
            "duration_minutes": duration,
            "notes": session.notes,
            "clockout_step": (
                ClockOutStep.ENTRY_RECORDED.value if has_usage
                else ClockOutStep.INVENTORY_APPLIED.value
            ),
        })[0]
        return str(entry["id"])

    def _stored_step(self, entry_id: str) -> ClockOutStep:
        """
        Step persisted on the entry.

        The entry may have been resumed by someone else since the last
        attempt, so the stored step wins over the session's copy.
        """
        entry = self.gateway.select_one(ENTRIES_TABLE, entry_id, "id, clockout_step")
        if not entry:
            self.clocks.reset(self.employee_id)
            raise ClockStateError(
                f"Timesheet entry {entry_id} no longer exists",
                suggestion="Clock in again to start a new timesheet",
            )
        return ClockOutStep(entry.get("clockout_step") or ClockOutStep.INVENTORY_APPLIED.value)

    def _finish(
        self,
        entry_id: str,
        step: ClockOutStep,
        used: list[tuple[str, float]],
    ) -> ClockOutStep:
        """Run steps (b) and (c) from `step` onwards, returning the step reached."""
        if step == ClockOutStep.ENTRY_RECORDED:
            self._log_usage(entry_id, used)
            step = ClockOutStep.USAGE_LOGGED
            self._mark(entry_id, step)
            # Keep the caller's view current in case (c) fails next
            if self.session.entry_id == entry_id:
                self.session.step = step

        if step == ClockOutStep.USAGE_LOGGED:
            self._apply_inventory(used)
            step = ClockOutStep.INVENTORY_APPLIED
            self._mark(entry_id, step)

        return step

    def _log_usage(self, entry_id: str, used: list[tuple[str, float]]) -> None:
        """Step (b): one timesheet_materials_used row per used item."""
        if self.gateway.select(USAGE_TABLE, "id", eq={"timesheet_entry_id": entry_id}, limit=1):
            logger.info(f"Usage for entry {entry_id} already logged")
            return
        self.gateway.insert(USAGE_TABLE, [
            {"timesheet_entry_id": entry_id, "inventory_id": item_id, "quantity_used": quantity}
            for item_id, quantity in used
        ])

    def _apply_inventory(self, used: list[tuple[str, float]]) -> None:
        """Step (c): decrement inventory through the server-side function."""
        self.gateway.invoke(INVENTORY_FUNCTION, {
            "items": [{"item_id": item_id, "amount": quantity} for item_id, quantity in used],
        })

    def _mark(self, entry_id: str, step: ClockOutStep) -> None:
        self.gateway.update(ENTRIES_TABLE, entry_id, {"clockout_step": step.value})

    def discard(self) -> dict[str, Any]:
        """
        Give up on a clock-out that keeps failing.

        The employee's session is cleared so they can clock in again. The
        stored entry is left as it is and can still be finished with
        resume_entry once the cause is fixed.

        Raises:
            ClockStateError: If no clock-out has been started
        """
        session = self.session
        if not session.clocking_out:
            raise ClockStateError(
                "No clock-out in progress to discard",
                suggestion="Clock out first",
            )

        entry_id = session.entry_id
        step = session.step.value if session.step else None
        self.clocks.reset(self.employee_id)
        logger.warning(f"Employee {self.employee_id} discarded clock-out of entry {entry_id} at {step}")
        return {"entry_id": entry_id, "clockout_step": step}

    def _release_owner(self, entry: dict[str, Any]) -> None:
        """Clear the owning employee's session if it is still holding this entry."""
        owner = entry.get("employee_id")
        if owner and self.clocks.release(owner, str(entry["id"])):
            logger.info(f"Cleared clock session of employee {owner} for entry {entry['id']}")

    @staticmethod
    def _failure_message(error: SupabaseClientError) -> str:
        if error.code == "FUNCTION_FAILED":
            return f"Inventory update failed: {error.message}"
        return error.message

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def list_entries(
        self,
        employee_id: str | UUID | None = None,
        pending_only: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Timesheet entries, newest first.

        Args:
            employee_id: Only this employee's entries
            pending_only: Only entries whose inventory was never decremented
        """
        eq = {"employee_id": employee_id} if employee_id else None
        in_ = {"clockout_step": list(PENDING_STEPS)} if pending_only else None
        return self.gateway.select(ENTRIES_TABLE, eq=eq, in_=in_, order="created_at", desc=True)

    def resume_entry(self, entry_id: str | UUID) -> dict[str, Any]:
        """
        Finish a stored entry whose inventory decrement never completed.

        Uses the logged usage rows, so it works after a restart as long as
        step (b) was reached. Entries already applied are returned as is.

        Raises:
            EntityNotFoundError: If the entry doesn't exist
            ClockStateError: If usage was never logged for the entry
            ClockOutError: If the decrement fails again
        """
        key = str(entry_id)
        entry = self.gateway.select_one(ENTRIES_TABLE, key)
        if not entry:
            raise EntityNotFoundError("timesheet entry", key)

        step = ClockOutStep(entry.get("clockout_step") or ClockOutStep.INVENTORY_APPLIED.value)
        if step == ClockOutStep.INVENTORY_APPLIED:
            self._release_owner(entry)
            return entry
        if step == ClockOutStep.ENTRY_RECORDED:
            raise ClockStateError(
                "Materials for this entry were never logged",
                suggestion="The employee must retry the clock-out from their timesheet",
            )

        usage = self.gateway.select(USAGE_TABLE, eq={"timesheet_entry_id": key})
        used = [(str(row["inventory_id"]), float(row["quantity_used"])) for row in usage]

        try:
            step = self._finish(key, step, used)
        except SupabaseClientError as e:
            raise ClockOutError(self._failure_message(e), entry_id=key, step=step.value)

        logger.info(f"Resumed clock-out for entry {key}")
        self._release_owner(entry)
        entry["clockout_step"] = step.value
        return entry
