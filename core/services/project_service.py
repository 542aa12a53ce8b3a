# =============================================================================
# core/services/project_service.py - Project Business Logic
# =============================================================================
# Handles project (job) CRUD, search and the dashboard's active-job count,
# plus the quick "work order" creation used from the timesheet screen.
#
# Status is a free label with a fixed display color; any status can be set
# to any other.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import DeleteNotConfirmedError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models.project import (
    ACTIVE_STATUSES,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    WorkOrderCreate,
    status_color,
)
from core.services.customer_service import CustomerService
from lib.utils import form_payload, matches_search, round_money

logger = logging.getLogger(__name__)

TABLE = "projects"
# Embed the customer's name through the customer_id foreign key
LIST_COLUMNS = "*, customer:customers(name)"
SEARCH_FIELDS = ("title", "customer_name")
COST_FIELDS = ("materials_cost", "labor_rate", "actual_hours")


def flatten_project(row: dict[str, Any]) -> dict[str, Any]:
    """
    Turn a joined project row into the response shape.

    The embedded customer is None when the customer was deleted, which
    leaves customer_name as None.
    """
    project = dict(row)
    customer = project.pop("customer", None) or {}
    project["customer_name"] = customer.get("name")
    project["status_color"] = status_color(project.get("status"))
    return project


def compute_total_cost(
    materials_cost: float | None,
    labor_rate: float | None,
    actual_hours: float | None,
) -> float:
    """total_cost = materials_cost + labor_rate * actual_hours"""
    return round_money((materials_cost or 0) + (labor_rate or 0) * (actual_hours or 0))


class ProjectService:
    """
    Service for project management operations.

    Provides a clean interface between API routes and database.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    def list_projects(
        self,
        search: str | None = None,
        status: ProjectStatus | str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List projects with their customer's name, newest first.

        Args:
            search: Case-insensitive substring matched against the title
                    and the customer's name
            status: Only projects with exactly this status

        Returns:
            Matching project rows (flattened)
        """
        rows = self.gateway.select(TABLE, LIST_COLUMNS, order="created_at", desc=True)
        projects = [flatten_project(row) for row in rows]

        status_value = status.value if isinstance(status, ProjectStatus) else status
        return [
            p for p in projects
            if matches_search(p, search, SEARCH_FIELDS)
            and (not status_value or p.get("status") == status_value)
        ]

    def get_project(self, project_id: str | UUID) -> dict[str, Any]:
        """
        Get a project by ID.

        Raises:
            EntityNotFoundError: If no project has this id
        """
        row = self.gateway.select_one(TABLE, project_id, LIST_COLUMNS)
        if not row:
            raise EntityNotFoundError("project", str(project_id))
        return flatten_project(row)

    def create_project(self, data: ProjectCreate) -> dict[str, Any]:
        """
        Create a project.

        Title and customer are required. Labor rate defaults to the shop
        rate, and total_cost is derived from the cost fields.

        Raises:
            ValidationFailedError: If title or customer is missing
        """
        payload = form_payload(data)
        payload["title"] = payload["title"].strip()
        missing = [f for f in ("title", "customer_id") if not payload.get(f)]
        if missing:
            raise ValidationFailedError("Project Title and Customer are required.", fields=missing)

        if payload.get("labor_rate") is None:
            payload["labor_rate"] = settings.DEFAULT_LABOR_RATE
        if payload.get("materials_cost") is None:
            payload["materials_cost"] = 0
        payload["total_cost"] = compute_total_cost(
            payload["materials_cost"], payload["labor_rate"], payload.get("actual_hours"),
        )

        project = self.gateway.insert(TABLE, payload)[0]
        logger.info(f"Created project: {project['id']}")
        return self.get_project(project["id"])

    def update_project(self, project_id: str | UUID, data: ProjectUpdate) -> dict[str, Any]:
        """
        Update a project.

        Any status may be set. total_cost is recomputed when a cost field
        changes.

        Raises:
            ValidationFailedError: If title or customer is being cleared
            EntityNotFoundError: If no project has this id
        """
        payload = form_payload(data, partial=True)
        if "title" in payload:
            payload["title"] = (payload["title"] or "").strip()
        missing = [f for f in ("title", "customer_id") if f in payload and not payload[f]]
        if missing:
            raise ValidationFailedError("Project Title and Customer are required.", fields=missing)

        if not payload:
            return self.get_project(project_id)

        if any(f in payload for f in COST_FIELDS):
            current = self.get_project(project_id)
            merged = {f: payload.get(f, current.get(f)) for f in COST_FIELDS}
            payload["total_cost"] = compute_total_cost(**merged)

        if not self.gateway.update(TABLE, project_id, payload):
            raise EntityNotFoundError("project", str(project_id))
        return self.get_project(project_id)

    def delete_project(self, project_id: str | UUID, confirm: bool = False) -> None:
        """
        Delete a project. This cannot be undone.

        Raises:
            DeleteNotConfirmedError: If confirm is not set
        """
        if not confirm:
            raise DeleteNotConfirmedError("project", str(project_id))
        self.gateway.delete(TABLE, project_id)

    def active_count(self) -> int:
        """Number of projects that are pending, planning or in progress."""
        return self.gateway.count(TABLE, in_={"status": list(ACTIVE_STATUSES)})

    # -------------------------------------------------------------------------
    # Work Orders
    # -------------------------------------------------------------------------

    def list_work_orders(self) -> list[dict[str, Any]]:
        """Projects as work orders ({id, name}), newest first."""
        rows = self.gateway.select(TABLE, "id, title", order="created_at", desc=True)
        return [{"id": row["id"], "name": row["title"]} for row in rows]

    def create_work_order(self, data: WorkOrderCreate) -> dict[str, Any]:
        """
        Create a work order from the timesheet screen.

        Reuses the customer whose name matches exactly, otherwise creates
        one, then inserts a pending project for it.

        Raises:
            ValidationFailedError: If the work order number or customer
                                   name is blank
        """
        title = data.title.strip()
        customer_name = data.customer_name.strip()
        if not title:
            raise ValidationFailedError("Work order number is required.", fields=["title"])
        if not customer_name:
            raise ValidationFailedError("Customer name is required.", fields=["customer_name"])

        customer, created = CustomerService(self.ctx).find_or_create_by_name(customer_name)
        if created:
            logger.info(f"Created customer {customer['id']} for work order {title}")

        project = self.gateway.insert(TABLE, {
            "title": title,
            "customer_id": customer["id"],
            "status": ProjectStatus.PENDING.value,
            "labor_rate": settings.DEFAULT_LABOR_RATE,
        })[0]

        return {
            "id": project["id"],
            "name": project["title"],
            "customer_id": customer["id"],
            "customer_name": customer_name,
            "message": f"Work order '{project['title']}' created for {customer_name}. You can now clock in.",
        }
