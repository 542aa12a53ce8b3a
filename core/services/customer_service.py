# =============================================================================
# core/services/customer_service.py - Customer Business Logic
# =============================================================================
# Handles customer CRUD operations and search.
# Separates HTTP concerns from database/business logic.
#
# The whole table is loaded per listing and searched in memory; there is
# no pagination.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import DeleteNotConfirmedError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models.customer import CustomerCreate, CustomerUpdate
from lib.utils import form_payload, matches_search

logger = logging.getLogger(__name__)

TABLE = "customers"
SEARCH_FIELDS = ("name", "email", "phone")


class CustomerService:
    """
    Service for customer management operations.

    Provides a clean interface between API routes and database.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    def list_customers(self, search: str | None = None) -> list[dict[str, Any]]:
        """
        List customers ordered by name.

        Args:
            search: Optional case-insensitive substring matched against
                    name, email and phone

        Returns:
            Matching customer rows
        """
        customers = self.gateway.select(TABLE, order="name")
        return [c for c in customers if matches_search(c, search, SEARCH_FIELDS)]

    def get_customer(self, customer_id: str | UUID) -> dict[str, Any]:
        """
        Get a customer by ID.

        Raises:
            EntityNotFoundError: If no customer has this id
        """
        customer = self.gateway.select_one(TABLE, customer_id)
        if not customer:
            raise EntityNotFoundError("customer", str(customer_id))
        return customer

    def create_customer(self, data: CustomerCreate) -> dict[str, Any]:
        """
        Create a customer.

        Only the name is required; optional fields are stored as "".

        Raises:
            ValidationFailedError: If the name is blank
        """
        payload = form_payload(data)
        payload["name"] = payload["name"].strip()
        if not payload["name"]:
            raise ValidationFailedError("Customer name is required.", fields=["name"])

        customer = self.gateway.insert(TABLE, payload)[0]
        logger.info(f"Created customer: {customer['id']}")
        return customer

    def update_customer(self, customer_id: str | UUID, data: CustomerUpdate) -> dict[str, Any]:
        """
        Update a customer.

        Raises:
            ValidationFailedError: If the name is being blanked
            EntityNotFoundError: If no customer has this id
        """
        payload = form_payload(data, partial=True)
        if "name" in payload:
            payload["name"] = (payload["name"] or "").strip()
            if not payload["name"]:
                raise ValidationFailedError("Customer name is required.", fields=["name"])

        if not payload:
            return self.get_customer(customer_id)

        customer = self.gateway.update(TABLE, customer_id, payload)
        if not customer:
            raise EntityNotFoundError("customer", str(customer_id))
        return customer

    def delete_customer(self, customer_id: str | UUID, confirm: bool = False) -> None:
        """
        Delete a customer.

        Projects, quotes and invoices that referenced the customer keep
        existing with their customer reference cleared by the database.

        Raises:
            DeleteNotConfirmedError: If confirm is not set
        """
        if not confirm:
            raise DeleteNotConfirmedError("customer", str(customer_id))
        self.gateway.delete(TABLE, customer_id)

    def find_or_create_by_name(self, name: str) -> tuple[dict[str, Any], bool]:
        """
        Look up a customer by exact name, creating one if none exists.

        Returns:
            Tuple of (customer row, created flag)

        Raises:
            ValidationFailedError: If the name is blank
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError("Customer name is required.", fields=["customer_name"])

        existing = self.gateway.select(TABLE, "id, name", eq={"name": name}, limit=1)
        if existing:
            return existing[0], False

        customer = self.create_customer(CustomerCreate(name=name))
        return customer, True
