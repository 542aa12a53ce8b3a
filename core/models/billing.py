# =============================================================================
# core/models/billing.py - Quote & Invoice Schemas
# =============================================================================
# Quotes price a job before it starts; invoices bill it afterwards.
#
# Amounts are derived server-side so clients can't submit inconsistent
# totals:
#   quote.total_amount   = (materials_cost + labor_cost) * (1 + tax_rate)
#   invoice.tax_amount   = subtotal * tax_rate   (unless given explicitly)
#   invoice.total_amount = subtotal + tax_amount
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class QuoteStatus(str, Enum):
    """Where a quote stands with the customer."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"


class InvoiceStatus(str, Enum):
    """
    Payment state of an invoice.

    - pending: nothing paid yet
    - partial: some payment recorded, balance outstanding
    - paid: amount_paid covers total_amount
    - overdue / cancelled: set manually
    """
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """How a customer paid."""
    CASH = "cash"
    CHEQUE = "cheque"
    CREDIT_CARD = "credit_card"
    E_TRANSFER = "e_transfer"
    OTHER = "other"


# -----------------------------------------------------------------------------
# Quotes
# -----------------------------------------------------------------------------

class QuoteCreate(BaseModel):
    """
    Schema for creating a quote.

    Example:
        {
            "quote_number": "Q-2024-001",
            "title": "Industrial Railing System",
            "customer_id": "550e8400-e29b-41d4-a716-446655440000",
            "materials_cost": 1250.00,
            "labor_cost": 3000.00
        }
    """

    quote_number: str = Field(default="", max_length=50)
    title: str = Field(default="", max_length=255)
    customer_id: UUID | None = None
    project_id: UUID | None = None
    description: str | None = None
    status: QuoteStatus = QuoteStatus.DRAFT
    materials_cost: float = Field(default=0.0, ge=0)
    labor_cost: float = Field(default=0.0, ge=0)
    # None means "use DEFAULT_TAX_RATE"
    tax_rate: float | None = Field(default=None, ge=0, le=1)
    valid_until: date | None = None
    notes: str | None = None


class QuoteUpdate(BaseModel):
    """Schema for updating a quote. The total is recomputed on every update."""

    quote_number: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=255)
    customer_id: UUID | None = None
    project_id: UUID | None = None
    description: str | None = None
    status: QuoteStatus | None = None
    materials_cost: float | None = Field(default=None, ge=0)
    labor_cost: float | None = Field(default=None, ge=0)
    tax_rate: float | None = Field(default=None, ge=0, le=1)
    valid_until: date | None = None
    notes: str | None = None


class QuoteResponse(BaseModel):
    """A quote row with its customer's name."""

    id: UUID
    quote_number: str
    title: str
    customer_id: UUID | None = None
    customer_name: str | None = None
    project_id: UUID | None = None
    description: str | None = None
    status: str = QuoteStatus.DRAFT.value
    materials_cost: float = 0.0
    labor_cost: float = 0.0
    tax_rate: float = 0.0
    total_amount: float = 0.0
    valid_until: date | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# -----------------------------------------------------------------------------
# Invoices
# -----------------------------------------------------------------------------

class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice.

    Example:
        {
            "invoice_number": "INV-2024-001",
            "customer_id": "550e8400-e29b-41d4-a716-446655440000",
            "subtotal": 3162.50
        }
    """

    invoice_number: str = Field(default="", max_length=50)
    customer_id: UUID | None = None
    project_id: UUID | None = None
    quote_id: UUID | None = None
    subtotal: float | None = Field(default=None, ge=0)
    # None means "subtotal * DEFAULT_TAX_RATE"
    tax_amount: float | None = Field(default=None, ge=0)
    due_date: date | None = None
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice. The total follows subtotal and tax."""

    invoice_number: str | None = Field(default=None, max_length=50)
    customer_id: UUID | None = None
    project_id: UUID | None = None
    quote_id: UUID | None = None
    status: InvoiceStatus | None = None
    subtotal: float | None = Field(default=None, ge=0)
    tax_amount: float | None = Field(default=None, ge=0)
    due_date: date | None = None
    notes: str | None = None


class PaymentCreate(BaseModel):
    """A payment received against an invoice."""

    amount: float = Field(..., description="Amount received (must be positive)")
    payment_method: PaymentMethod = PaymentMethod.OTHER
    paid_date: date | None = Field(default=None, description="Defaults to today")


class InvoiceResponse(BaseModel):
    """An invoice row."""

    id: UUID
    invoice_number: str
    customer_id: UUID | None = None
    project_id: UUID | None = None
    quote_id: UUID | None = None
    status: str = InvoiceStatus.PENDING.value
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total_amount: float = 0.0
    amount_paid: float = 0.0
    balance_due: float = 0.0
    due_date: date | None = None
    paid_date: date | None = None
    payment_method: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
