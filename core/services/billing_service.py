# =============================================================================
# core/services/billing_service.py - Quote & Invoice Business Logic
# =============================================================================
# Handles quote and invoice CRUD and payments.
#
# Totals are always derived here from their inputs (see core/models/billing.py)
# so a stored total never disagrees with its parts.
# =============================================================================

import logging
from datetime import date
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import DeleteNotConfirmedError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models.billing import (
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
    PaymentCreate,
    QuoteCreate,
    QuoteStatus,
    QuoteUpdate,
)
from lib.utils import form_payload, round_money

logger = logging.getLogger(__name__)

QUOTES_TABLE = "quotes"
INVOICES_TABLE = "invoices"
QUOTE_COLUMNS = "*, customer:customers(name)"


def quote_total(materials_cost: float | None, labor_cost: float | None, tax_rate: float | None) -> float:
    """(materials + labor) * (1 + tax_rate), rounded to cents."""
    return round_money(((materials_cost or 0) + (labor_cost or 0)) * (1 + (tax_rate or 0)))


def with_balance(invoice: dict[str, Any]) -> dict[str, Any]:
    """Add balance_due (never negative) to an invoice row."""
    row = dict(invoice)
    row["balance_due"] = round_money(max(0.0, float(row.get("total_amount") or 0) - float(row.get("amount_paid") or 0)))
    return row


def _settled_status(invoice: dict[str, Any], total_amount: float) -> dict[str, Any]:
    """
    Payment status fields after an invoice's total changes.

    Only invoices whose status comes from payments (partial / paid) move.
    """
    if invoice.get("status") not in (InvoiceStatus.PARTIAL.value, InvoiceStatus.PAID.value):
        return {}
    amount_paid = float(invoice.get("amount_paid") or 0)
    if amount_paid <= 0:
        return {}

    if amount_paid >= total_amount:
        if invoice.get("status") == InvoiceStatus.PAID.value:
            return {}
        return {"status": InvoiceStatus.PAID.value, "paid_date": date.today().isoformat()}
    return {"status": InvoiceStatus.PARTIAL.value, "paid_date": None}


def _flatten_quote(row: dict[str, Any]) -> dict[str, Any]:
    quote = dict(row)
    customer = quote.pop("customer", None) or {}
    quote["customer_name"] = customer.get("name")
    return quote


class QuoteService:
    """Service for quote operations."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    def list_quotes(self, status: QuoteStatus | str | None = None) -> list[dict[str, Any]]:
        """Quotes newest first, optionally only those with one status."""
        rows = self.gateway.select(QUOTES_TABLE, QUOTE_COLUMNS, order="created_at", desc=True)
        status_value = status.value if isinstance(status, QuoteStatus) else status
        return [
            _flatten_quote(row) for row in rows
            if not status_value or row.get("status") == status_value
        ]

    def get_quote(self, quote_id: str | UUID) -> dict[str, Any]:
        """
        Get a quote by ID.

        Raises:
            EntityNotFoundError: If no quote has this id
        """
        row = self.gateway.select_one(QUOTES_TABLE, quote_id, QUOTE_COLUMNS)
        if not row:
            raise EntityNotFoundError("quote", str(quote_id))
        return _flatten_quote(row)

    def create_quote(self, data: QuoteCreate) -> dict[str, Any]:
        """
        Create a quote with its total derived.

        Raises:
            ValidationFailedError: If quote number or title is blank
        """
        payload = form_payload(data)
        for key in ("quote_number", "title"):
            payload[key] = payload[key].strip()
        missing = [f for f in ("quote_number", "title") if not payload[f]]
        if missing:
            raise ValidationFailedError("Quote Number and Title are required.", fields=missing)

        if payload.get("tax_rate") is None:
            payload["tax_rate"] = settings.DEFAULT_TAX_RATE
        payload["total_amount"] = quote_total(
            payload["materials_cost"], payload["labor_cost"], payload["tax_rate"],
        )

        quote = self.gateway.insert(QUOTES_TABLE, payload)[0]
        logger.info(f"Created quote: {quote['quote_number']}")
        return self.get_quote(quote["id"])

    def update_quote(self, quote_id: str | UUID, data: QuoteUpdate) -> dict[str, Any]:
        """
        Update a quote and recompute its total.

        Raises:
            ValidationFailedError: If quote number or title is being blanked
            EntityNotFoundError: If no quote has this id
        """
        payload = form_payload(data, partial=True)
        for key in ("quote_number", "title"):
            if key in payload:
                payload[key] = (payload[key] or "").strip()
        missing = [f for f in ("quote_number", "title") if f in payload and not payload[f]]
        if missing:
            raise ValidationFailedError("Quote Number and Title are required.", fields=missing)

        current = self.get_quote(quote_id)
        if not payload:
            return current

        merged = {f: payload.get(f, current.get(f)) for f in ("materials_cost", "labor_cost", "tax_rate")}
        payload["total_amount"] = quote_total(**merged)

        if not self.gateway.update(QUOTES_TABLE, quote_id, payload):
            raise EntityNotFoundError("quote", str(quote_id))
        return self.get_quote(quote_id)

    def delete_quote(self, quote_id: str | UUID, confirm: bool = False) -> None:
        """
        Delete a quote.

        Raises:
            DeleteNotConfirmedError: If confirm is not set
        """
        if not confirm:
            raise DeleteNotConfirmedError("quote", str(quote_id))
        self.gateway.delete(QUOTES_TABLE, quote_id)


class InvoiceService:
    """Service for invoice operations and payments."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    def list_invoices(self, status: InvoiceStatus | str | None = None) -> list[dict[str, Any]]:
        """Invoices newest first, optionally only those with one status."""
        eq = None
        if status:
            eq = {"status": status.value if isinstance(status, InvoiceStatus) else status}
        rows = self.gateway.select(INVOICES_TABLE, eq=eq, order="created_at", desc=True)
        return [with_balance(row) for row in rows]

    def get_invoice(self, invoice_id: str | UUID) -> dict[str, Any]:
        """
        Get an invoice by ID.

        Raises:
            EntityNotFoundError: If no invoice has this id
        """
        row = self.gateway.select_one(INVOICES_TABLE, invoice_id)
        if not row:
            raise EntityNotFoundError("invoice", str(invoice_id))
        return with_balance(row)

    def create_invoice(self, data: InvoiceCreate) -> dict[str, Any]:
        """
        Create an invoice.

        Tax defaults to subtotal * DEFAULT_TAX_RATE when not given.

        Raises:
            ValidationFailedError: If invoice number or subtotal is missing
        """
        payload = form_payload(data)
        payload["invoice_number"] = payload["invoice_number"].strip()
        missing = [f for f in ("invoice_number", "subtotal") if payload.get(f) in (None, "")]
        if missing:
            raise ValidationFailedError("Invoice Number and Subtotal are required.", fields=missing)

        subtotal = round_money(payload["subtotal"])
        tax_amount = payload.get("tax_amount")
        if tax_amount is None:
            tax_amount = subtotal * settings.DEFAULT_TAX_RATE
        payload.update({
            "subtotal": subtotal,
            "tax_amount": round_money(tax_amount),
            "total_amount": round_money(subtotal + round_money(tax_amount)),
            "amount_paid": 0,
            "status": InvoiceStatus.PENDING.value,
        })

        invoice = self.gateway.insert(INVOICES_TABLE, payload)[0]
        logger.info(f"Created invoice: {invoice['invoice_number']}")
        return with_balance(invoice)

    def update_invoice(self, invoice_id: str | UUID, data: InvoiceUpdate) -> dict[str, Any]:
        """
        Update an invoice; the total follows subtotal and tax.

        Raises:
            ValidationFailedError: If the invoice number is being blanked
            EntityNotFoundError: If no invoice has this id
        """
        payload = form_payload(data, partial=True)
        if "invoice_number" in payload:
            payload["invoice_number"] = (payload["invoice_number"] or "").strip()
            if not payload["invoice_number"]:
                raise ValidationFailedError("Invoice Number is required.", fields=["invoice_number"])

        current = self.get_invoice(invoice_id)
        if not payload:
            return current

        if "subtotal" in payload or "tax_amount" in payload:
            subtotal = payload.get("subtotal", current.get("subtotal"))
            tax_amount = payload.get("tax_amount", current.get("tax_amount"))
            payload["total_amount"] = round_money((subtotal or 0) + (tax_amount or 0))
            if "status" not in payload:
                payload.update(_settled_status(current, payload["total_amount"]))

        invoice = self.gateway.update(INVOICES_TABLE, invoice_id, payload)
        if not invoice:
            raise EntityNotFoundError("invoice", str(invoice_id))
        return with_balance(invoice)

    def record_payment(self, invoice_id: str | UUID, payment: PaymentCreate) -> dict[str, Any]:
        """
        Record a payment against an invoice.

        The invoice becomes paid (with paid_date) once amount_paid covers
        the total, otherwise partial.

        Raises:
            ValidationFailedError: If the amount isn't positive
            EntityNotFoundError: If no invoice has this id
        """
        if payment.amount <= 0:
            raise ValidationFailedError("Payment amount must be greater than zero.", fields=["amount"])

        invoice = self.get_invoice(invoice_id)
        amount_paid = round_money(float(invoice.get("amount_paid") or 0) + payment.amount)
        fully_paid = amount_paid >= float(invoice.get("total_amount") or 0)

        update = {
            "amount_paid": amount_paid,
            "payment_method": payment.payment_method.value,
            "status": InvoiceStatus.PAID.value if fully_paid else InvoiceStatus.PARTIAL.value,
        }
        if fully_paid:
            update["paid_date"] = (payment.paid_date or date.today()).isoformat()

        updated = self.gateway.update(INVOICES_TABLE, invoice_id, update)
        if not updated:
            raise EntityNotFoundError("invoice", str(invoice_id))
        logger.info(f"Recorded payment of {payment.amount} on invoice {invoice_id}")
        return with_balance(updated)

    def delete_invoice(self, invoice_id: str | UUID, confirm: bool = False) -> None:
        """
        Delete an invoice.

        Raises:
            DeleteNotConfirmedError: If confirm is not set
        """
        if not confirm:
            raise DeleteNotConfirmedError("invoice", str(invoice_id))
        self.gateway.delete(INVOICES_TABLE, invoice_id)
