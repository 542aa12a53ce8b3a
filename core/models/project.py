# =============================================================================
# core/models/project.py - Project (Job / Work Order) Schemas
# =============================================================================
# A project is a job done for a customer. Employees see projects as
# "work orders" when clocking in.
#
# Status is display-only: any status may be changed to any other through an
# update, there are no enforced transitions. Each status has a fixed color.
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ProjectStatus(str, Enum):
    """Lifecycle label of a project."""
    PENDING = "pending"
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


class ProjectPriority(str, Enum):
    """How urgent a project is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Statuses counted as "active jobs" on the dashboard
ACTIVE_STATUSES = (
    ProjectStatus.PENDING.value,
    ProjectStatus.PLANNING.value,
    ProjectStatus.IN_PROGRESS.value,
)

STATUS_COLORS: dict[str, str] = {
    ProjectStatus.COMPLETED.value: "#34d399",
    ProjectStatus.IN_PROGRESS.value: "#60a5fa",
    ProjectStatus.PENDING.value: "#fbbf24",
    ProjectStatus.ON_HOLD.value: "#9ca3af",
    ProjectStatus.PLANNING.value: "#c084fc",
}
DEFAULT_STATUS_COLOR = "#374151"


def status_color(status: str | None) -> str:
    """Display color for a status; unknown statuses get the neutral color."""
    return STATUS_COLORS.get(status or "", DEFAULT_STATUS_COLOR)


def _blank_to_none(value):
    # HTML forms submit "" for untouched date/number inputs
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ProjectCreate(BaseModel):
    """
    Schema for creating a project.

    Title and customer are required; ProjectService reports them as form
    errors when missing.

    Example:
        {
            "customer_id": "550e8400-e29b-41d4-a716-446655440000",
            "title": "Industrial Railing System",
            "status": "in_progress",
            "estimated_hours": 40,
            "materials_cost": 1250.00
        }
    """

    customer_id: UUID | None = None
    title: str = Field(default="", max_length=255)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PENDING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    start_date: date | None = None
    due_date: date | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    materials_cost: float | None = Field(default=None, ge=0)
    labor_rate: float | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator(
        "customer_id", "start_date", "due_date", "estimated_hours",
        "actual_hours", "materials_cost", "labor_rate", mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class ProjectUpdate(BaseModel):
    """Schema for updating a project. Omitted fields are left unchanged."""

    customer_id: UUID | None = None
    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    start_date: date | None = None
    due_date: date | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    materials_cost: float | None = Field(default=None, ge=0)
    labor_rate: float | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator(
        "customer_id", "start_date", "due_date", "estimated_hours",
        "actual_hours", "materials_cost", "labor_rate", mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class ProjectResponse(BaseModel):
    """A project row joined with its customer's name."""

    id: UUID
    customer_id: UUID | None = None
    # None when the customer was deleted (customer_id is set null)
    customer_name: str | None = None
    title: str
    description: str | None = None
    status: str = ProjectStatus.PENDING.value
    status_color: str = DEFAULT_STATUS_COLOR
    priority: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    materials_cost: float | None = None
    labor_rate: float | None = None
    total_cost: float | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectList(BaseModel):
    """Projects matching the current search and status filter, newest first."""

    projects: list[ProjectResponse] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class WorkOrderCreate(BaseModel):
    """
    Quick work order created from the timesheet screen.

    The customer is given by name; an existing customer with exactly that
    name is reused, otherwise one is created.
    """

    title: str = Field(default="", max_length=255, description="Work order number")
    customer_name: str = Field(default="", max_length=255)


class WorkOrderResponse(BaseModel):
    """The created work order, ready to clock in against."""

    id: UUID
    name: str
    customer_id: UUID
    customer_name: str
    message: str
