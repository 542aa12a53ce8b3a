# =============================================================================
# core/models/timesheet.py - Timesheet Schemas
# =============================================================================
# These models define the API contract for the clock-in / clock-out flow:
# - ClockInRequest: Pick a work order and start the clock
# - LineAddRequest / LineQuantityRequest: Materials and consumables used
# - ClockOutRequest / ClockOutResponse: Submit the timesheet
# - ClockOutDiscardResponse: Give up on a clock-out that keeps failing
# - ClockStatus: What the employee's timesheet screen shows right now
# - TimesheetEntryResponse: A stored timesheet entry
#
# Clock-out is written in three steps, and the step reached is stored on
# the entry (clockout_step):
#   entry_recorded -> usage_logged -> inventory_applied
# An entry that never reaches inventory_applied had its inventory decrement
# fail and can be resumed.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ClockOutStep(str, Enum):
    """Persisted progress marker of a clock-out."""
    ENTRY_RECORDED = "entry_recorded"
    USAGE_LOGGED = "usage_logged"
    INVENTORY_APPLIED = "inventory_applied"


# Steps after which inventory still needs decrementing
PENDING_STEPS = (ClockOutStep.ENTRY_RECORDED.value, ClockOutStep.USAGE_LOGGED.value)


class LineKind(str, Enum):
    """Which list a used item appears in on the timesheet."""
    MATERIAL = "material"
    CONSUMABLE = "consumable"


def coerce_quantity(value) -> float:
    """
    Turn user input into a usable quantity.

    Anything that isn't a number (including "") becomes 0 and negatives
    are clamped to 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, number)


class ClockInRequest(BaseModel):
    """Start the clock against a work order."""
    project_id: UUID | None = None


class LineAddRequest(BaseModel):
    """Attach an inventory item to the running timesheet."""
    inventory_id: UUID


class LineQuantityRequest(BaseModel):
    """Set the quantity used for an attached item."""

    quantity: float = 0.0

    @field_validator("quantity", mode="before")
    @classmethod
    def clamp(cls, value):
        return coerce_quantity(value)


class UsedLine(BaseModel):
    """An item attached to the running timesheet."""
    inventory_id: UUID
    name: str
    unit: str | None = None
    category: str
    kind: LineKind
    quantity: float = 0.0


class ClockStatus(BaseModel):
    """
    Current state of an employee's timesheet screen.

    elapsed_display is formatted HH:MM:SS.
    """
    employee_id: UUID
    clocked_in: bool = False
    project_id: UUID | None = None
    project_name: str | None = None
    clock_in_time: datetime | None = None
    elapsed_seconds: int = 0
    elapsed_display: str = "00:00:00"
    materials: list[UsedLine] = Field(default_factory=list)
    consumables: list[UsedLine] = Field(default_factory=list)
    notes: str = ""
    # Set once clock-out has started writing; used to resume after a failure
    entry_id: UUID | None = None
    clockout_step: ClockOutStep | None = None


class ClockOutRequest(BaseModel):
    """Submit the running timesheet."""
    notes: str | None = None


class ClockOutResponse(BaseModel):
    """Result of a completed clock-out."""
    entry_id: UUID
    duration_minutes: float
    lines_logged: int = 0
    inventory_updated: bool = False
    message: str = "Timesheet submitted successfully!"
    message_seconds: int = 5


class TimesheetEntryResponse(BaseModel):
    """A stored timesheet entry."""
    id: UUID
    employee_id: UUID
    project_id: UUID | None = None
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: float | None = None
    notes: str | None = None
    clockout_step: str | None = None
    created_at: datetime | None = None


class ClockOutDiscardResponse(BaseModel):
    """A stuck clock-out given up by the employee."""
    entry_id: UUID
    clockout_step: ClockOutStep | None = None
    message: str = "Clock-out discarded. The stored entry can still be resumed."
