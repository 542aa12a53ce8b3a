# =============================================================================
# app/routers/timesheet.py - Employee Timesheet Endpoints
# =============================================================================
# The clock-in / clock-out screen for the signed-in employee:
#   GET  ""                       -> current screen state
#   work-orders                   -> pick or quickly create a work order
#   clock-in / lines / clock-out  -> the timesheet itself
#   clock-out/discard             -> give up on a clock-out that keeps failing
#   entries                       -> stored entries, resume a failed clock-out
#
# Elapsed time is also pushed every second on /ws/timesheet.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query
from pydantic import BaseModel, Field

from app.dependencies import ContextDep
from core.models.project import WorkOrderCreate, WorkOrderResponse
from core.models.timesheet import (
    ClockInRequest,
    ClockOutDiscardResponse,
    ClockOutRequest,
    ClockOutResponse,
    ClockStatus,
    LineAddRequest,
    LineQuantityRequest,
    TimesheetEntryResponse,
)
from core.services.project_service import ProjectService
from core.services.timesheet_service import TimesheetService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class WorkOrderSelectRequest(BaseModel):
    """Choose the work order to clock in against."""
    project_id: UUID = Field(..., example="550e8400-e29b-41d4-a716-446655440000")


class NotesRequest(BaseModel):
    """Replace the timesheet notes."""
    notes: str = Field(default="", example="Welded base plates, waiting on paint")


# =============================================================================
# Screen State
# =============================================================================

@router.get("", response_model=ClockStatus)
def get_status(ctx: ContextDep):
    """
    Current timesheet screen state.

    Includes elapsed time while clocked in, and entry_id/clockout_step
    when a previous clock-out stopped part way.
    """
    return TimesheetService(ctx).status()


# =============================================================================
# Work Orders
# =============================================================================

@router.get("/work-orders")
def list_work_orders(ctx: ContextDep):
    """Work orders to clock in against, newest first."""
    return {"work_orders": ProjectService(ctx).list_work_orders()}


@router.post("/work-orders", response_model=WorkOrderResponse, status_code=201)
def create_work_order(request: WorkOrderCreate, ctx: ContextDep):
    """
    Quickly create a work order and select it.

    An existing customer with exactly this name is reused.
    """
    return TimesheetService(ctx).create_work_order(request)


@router.put("/work-order", response_model=ClockStatus)
def select_work_order(request: WorkOrderSelectRequest, ctx: ContextDep):
    """Select the work order for the next clock-in."""
    return TimesheetService(ctx).select_project(request.project_id)


# =============================================================================
# Clock In / Lines
# =============================================================================

@router.post("/clock-in", response_model=ClockStatus)
def clock_in(ctx: ContextDep, request: ClockInRequest | None = None):
    """
    Start the clock.

    project_id may be given here instead of selecting it first.
    """
    project_id = request.project_id if request else None
    return TimesheetService(ctx).clock_in(project_id)


@router.post("/lines", response_model=ClockStatus)
def add_line(request: LineAddRequest, ctx: ContextDep):
    """
    Attach an inventory item with quantity 0.

    Consumables and Gas are listed as consumables, everything else as
    materials. Adding an item twice has no effect.
    """
    return TimesheetService(ctx).add_line(request.inventory_id)


@router.put("/lines/{inventory_id}", response_model=ClockStatus)
def set_line_quantity(
    inventory_id: Annotated[UUID, Path(description="Inventory item UUID")],
    request: LineQuantityRequest,
    ctx: ContextDep,
):
    """Set the quantity used. Invalid or negative input becomes 0."""
    return TimesheetService(ctx).set_line_quantity(inventory_id, request.quantity)


@router.delete("/lines/{inventory_id}", response_model=ClockStatus)
def remove_line(
    inventory_id: Annotated[UUID, Path(description="Inventory item UUID")],
    ctx: ContextDep,
):
    """Remove an attached item."""
    return TimesheetService(ctx).remove_line(inventory_id)


@router.put("/notes", response_model=ClockStatus)
def set_notes(request: NotesRequest, ctx: ContextDep):
    """Replace the timesheet notes."""
    return TimesheetService(ctx).set_notes(request.notes)


# =============================================================================
# Clock Out
# =============================================================================

@router.post("/clock-out", response_model=ClockOutResponse)
def clock_out(ctx: ContextDep, request: ClockOutRequest | None = None):
    """
    Submit the timesheet.

    Writes the entry, the materials used, then decrements inventory. If a
    step fails the response is a 502 naming the step reached; calling
    clock-out again continues from there without writing anything twice.
    """
    notes = request.notes if request else None
    return TimesheetService(ctx).clock_out(notes)


@router.post("/clock-out/discard", response_model=ClockOutDiscardResponse)
def discard_clock_out(ctx: ContextDep):
    """
    Give up on a clock-out that keeps failing.

    Clears the caller's timesheet so they can clock in again. The stored
    entry stays pending and can be finished with entries/{id}/resume.
    """
    return TimesheetService(ctx).discard()


@router.get("/entries", response_model=list[TimesheetEntryResponse])
def list_entries(
    ctx: ContextDep,
    mine: Annotated[bool, Query(description="Only the caller's entries")] = True,
    pending: Annotated[bool, Query(description="Only entries whose inventory wasn't decremented")] = False,
):
    """List stored timesheet entries, newest first."""
    employee_id = ctx.user.id if mine else None
    return TimesheetService(ctx).list_entries(employee_id=employee_id, pending_only=pending)


@router.post("/entries/{entry_id}/resume", response_model=TimesheetEntryResponse)
def resume_entry(
    entry_id: Annotated[UUID, Path(description="Timesheet entry UUID")],
    ctx: ContextDep,
):
    """
    Finish an entry whose inventory decrement failed.

    Works from the logged usage rows, so any manager can run it.
    """
    return TimesheetService(ctx).resume_entry(entry_id)
