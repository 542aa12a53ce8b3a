# =============================================================================
# app/routers/projects.py - Project (Job) Endpoints
# =============================================================================
# Handles project listing, search, status filtering and maintenance.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.dependencies import ContextDep
from core.models.project import (
    ProjectCreate,
    ProjectList,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdate,
)
from core.services.project_service import ProjectService

router = APIRouter()


@router.get("", response_model=ProjectList)
def list_projects(
    ctx: ContextDep,
    search: Annotated[str | None, Query(description="Match title or customer name")] = None,
    status: Annotated[ProjectStatus | None, Query(description="Filter by status")] = None,
):
    """
    List projects with their customer's name, newest first.
    """
    projects = ProjectService(ctx).list_projects(search=search, status=status)
    return ProjectList(projects=projects, total=len(projects))


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(request: ProjectCreate, ctx: ContextDep):
    """
    Create a project.

    Title and customer are required. total_cost is derived from
    materials_cost + labor_rate * actual_hours.
    """
    return ProjectService(ctx).create_project(request)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    ctx: ContextDep,
):
    """Get one project."""
    return ProjectService(ctx).get_project(project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    request: ProjectUpdate,
    ctx: ContextDep,
):
    """Update the fields that were sent. Any status may be set."""
    return ProjectService(ctx).update_project(project_id, request)


@router.delete("/{project_id}")
def delete_project(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    ctx: ContextDep,
    confirm: Annotated[bool, Query(description="Must be true; deletion cannot be undone")] = False,
):
    """Delete a project."""
    ProjectService(ctx).delete_project(project_id, confirm=confirm)
    return {"id": str(project_id), "message": "Project deleted successfully"}
