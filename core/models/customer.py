# =============================================================================
# core/models/customer.py - Customer Schemas
# =============================================================================
# These models define the API contract for customer operations:
# - CustomerCreate: Form submitted to create a customer
# - CustomerUpdate: Partial update (only sent fields change)
# - CustomerResponse: A customer row returned to clients
#
# Only the name is required. Optional text fields are stored as empty
# strings rather than NULL so clients never need a null check.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CustomerCreate(BaseModel):
    """
    Schema for creating a new customer.

    Example:
        {
            "name": "Alberta Steel Works",
            "email": "info@albertasteelworks.ca",
            "phone": "(403) 555-0101"
        }
    """

    # Required, but checked by CustomerService so a blank name
    # produces a form error instead of a schema error
    name: str = Field(default="", max_length=255, description="Customer or company name")
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    address: str = Field(default="")
    notes: str = Field(default="")


class CustomerUpdate(BaseModel):
    """Schema for updating a customer. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    notes: str | None = None


class CustomerResponse(BaseModel):
    """Schema for returning a customer row to clients."""

    id: UUID
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("email", "phone", "address", "notes", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        # Rows created before the empty-string default may hold NULL
        return "" if value is None else value


class CustomerList(BaseModel):
    """Customers matching the current search, ordered by name."""

    customers: list[CustomerResponse] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
