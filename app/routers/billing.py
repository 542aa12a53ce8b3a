# =============================================================================
# app/routers/billing.py - Quote & Invoice Endpoints
# =============================================================================
# Two routers, mounted at /api/v1/quotes and /api/v1/invoices.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.dependencies import ContextDep
from core.models.billing import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceUpdate,
    PaymentCreate,
    QuoteCreate,
    QuoteResponse,
    QuoteStatus,
    QuoteUpdate,
)
from core.services.billing_service import InvoiceService, QuoteService

quotes_router = APIRouter()
invoices_router = APIRouter()


# =============================================================================
# Quotes
# =============================================================================

@quotes_router.get("", response_model=list[QuoteResponse])
def list_quotes(
    ctx: ContextDep,
    status: Annotated[QuoteStatus | None, Query(description="Filter by status")] = None,
):
    """List quotes newest first."""
    return QuoteService(ctx).list_quotes(status)


@quotes_router.post("", response_model=QuoteResponse, status_code=201)
def create_quote(request: QuoteCreate, ctx: ContextDep):
    """
    Create a quote.

    total_amount = (materials_cost + labor_cost) * (1 + tax_rate)
    """
    return QuoteService(ctx).create_quote(request)


@quotes_router.get("/{quote_id}", response_model=QuoteResponse)
def get_quote(
    quote_id: Annotated[UUID, Path(description="Quote UUID")],
    ctx: ContextDep,
):
    """Get one quote."""
    return QuoteService(ctx).get_quote(quote_id)


@quotes_router.patch("/{quote_id}", response_model=QuoteResponse)
def update_quote(
    quote_id: Annotated[UUID, Path(description="Quote UUID")],
    request: QuoteUpdate,
    ctx: ContextDep,
):
    """Update the fields that were sent; the total is recomputed."""
    return QuoteService(ctx).update_quote(quote_id, request)


@quotes_router.delete("/{quote_id}")
def delete_quote(
    quote_id: Annotated[UUID, Path(description="Quote UUID")],
    ctx: ContextDep,
    confirm: Annotated[bool, Query(description="Must be true; deletion cannot be undone")] = False,
):
    """Delete a quote."""
    QuoteService(ctx).delete_quote(quote_id, confirm=confirm)
    return {"id": str(quote_id), "message": "Quote deleted successfully"}


# =============================================================================
# Invoices
# =============================================================================

@invoices_router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    ctx: ContextDep,
    status: Annotated[InvoiceStatus | None, Query(description="Filter by status")] = None,
):
    """List invoices newest first."""
    return InvoiceService(ctx).list_invoices(status)


@invoices_router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(request: InvoiceCreate, ctx: ContextDep):
    """
    Create an invoice.

    Tax defaults to subtotal * DEFAULT_TAX_RATE.
    """
    return InvoiceService(ctx).create_invoice(request)


@invoices_router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: Annotated[UUID, Path(description="Invoice UUID")],
    ctx: ContextDep,
):
    """Get one invoice with its balance due."""
    return InvoiceService(ctx).get_invoice(invoice_id)


@invoices_router.patch("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: Annotated[UUID, Path(description="Invoice UUID")],
    request: InvoiceUpdate,
    ctx: ContextDep,
):
    """Update the fields that were sent."""
    return InvoiceService(ctx).update_invoice(invoice_id, request)


@invoices_router.post("/{invoice_id}/payments", response_model=InvoiceResponse)
def record_payment(
    invoice_id: Annotated[UUID, Path(description="Invoice UUID")],
    request: PaymentCreate,
    ctx: ContextDep,
):
    """
    Record a payment.

    The invoice becomes paid once the total is covered, otherwise partial.
    """
    return InvoiceService(ctx).record_payment(invoice_id, request)


@invoices_router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: Annotated[UUID, Path(description="Invoice UUID")],
    ctx: ContextDep,
    confirm: Annotated[bool, Query(description="Must be true; deletion cannot be undone")] = False,
):
    """Delete an invoice."""
    InvoiceService(ctx).delete_invoice(invoice_id, confirm=confirm)
    return {"id": str(invoice_id), "message": "Invoice deleted successfully"}
