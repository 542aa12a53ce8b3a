# =============================================================================
# app/routers/customers.py - Customer CRUD Endpoints
# =============================================================================
# Handles customer listing, search and maintenance.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.dependencies import ContextDep
from core.models.customer import CustomerCreate, CustomerList, CustomerResponse, CustomerUpdate
from core.services.customer_service import CustomerService

router = APIRouter()


@router.get("", response_model=CustomerList)
def list_customers(
    ctx: ContextDep,
    search: Annotated[str | None, Query(description="Match name, email or phone")] = None,
):
    """
    List customers ordered by name.

    The search is a case-insensitive substring match.
    """
    customers = CustomerService(ctx).list_customers(search)
    return CustomerList(customers=customers, total=len(customers))


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(request: CustomerCreate, ctx: ContextDep):
    """
    Create a customer.

    Only the name is required.
    """
    return CustomerService(ctx).create_customer(request)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: Annotated[UUID, Path(description="Customer UUID")],
    ctx: ContextDep,
):
    """Get one customer."""
    return CustomerService(ctx).get_customer(customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: Annotated[UUID, Path(description="Customer UUID")],
    request: CustomerUpdate,
    ctx: ContextDep,
):
    """Update the fields that were sent."""
    return CustomerService(ctx).update_customer(customer_id, request)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: Annotated[UUID, Path(description="Customer UUID")],
    ctx: ContextDep,
    confirm: Annotated[bool, Query(description="Must be true; deletion cannot be undone")] = False,
):
    """
    Delete a customer.

    Their projects, quotes and invoices are kept without a customer.
    """
    CustomerService(ctx).delete_customer(customer_id, confirm=confirm)
    return {"id": str(customer_id), "message": "Customer deleted successfully"}
