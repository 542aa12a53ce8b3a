# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeGateway: an in-memory stand-in for SupabaseGateway
# - A controllable clock for timesheet tests
# - A TestClient wired to the fake gateway with auth overridden
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("INVENTORY_REALTIME_ENABLED", "false")

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import pytest

from app.auth.models import AuthUser
from core.context import AppContext
from core.services.timesheet_service import ClockRegistry
from lib.inventory_cache import InventoryCache
from lib.supabase_client import RemoteFunctionError, SupabaseClientError

CUSTOMER_EMBED = "customer:customers(name)"
# Tables whose customer_id is set null when the customer is deleted
CUSTOMER_REFERENCES = ("projects", "quotes", "invoices")


# =============================================================================
# Fake Gateway
# =============================================================================

class FakeGateway:
    """
    In-memory SupabaseGateway.

    Supports the filters the services use, the customer-name embed, and
    ON DELETE SET NULL for customer references. Failures can be switched
    on per table (inserts) or for function calls.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.invocations: list[tuple[str, dict[str, Any]]] = []
        self.invoke_error: str | None = None
        self.insert_errors: dict[str, str] = {}
        self.connected = True
        self.subscriptions: list[str] = []
        self.status_callbacks: list[Any] = []
        self._seq = 0
        self._epoch = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)

    # -- helpers --------------------------------------------------------------

    def _timestamp(self) -> str:
        self._seq += 1
        return (self._epoch + timedelta(seconds=self._seq)).isoformat()

    def _shape(self, row: dict[str, Any], columns: str) -> dict[str, Any]:
        result = dict(row)
        if CUSTOMER_EMBED in columns:
            customer = self.tables["customers"].get(str(row.get("customer_id")))
            result["customer"] = {"name": customer["name"]} if customer else None
        if not columns.strip().startswith("*"):
            wanted = [c.strip() for c in columns.split(",") if "(" not in c]
            result = {k: v for k, v in result.items() if k in wanted or k == "customer"}
        return result

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Every stored row of a table, in insertion order."""
        return [dict(row) for row in self.tables[table].values()]

    def seed(self, table: str, **values) -> dict[str, Any]:
        """Store a row directly, bypassing insert failures."""
        row = {"id": str(uuid4()), "created_at": self._timestamp(), **values}
        self.tables[table][row["id"]] = row
        return dict(row)

    # -- gateway interface ----------------------------------------------------

    def probe(self) -> bool:
        return self.connected

    def select(self, table, columns="*", *, eq=None, in_=None, order=None, desc=False, limit=None):
        rows = self.rows(table)
        for column, value in (eq or {}).items():
            rows = [r for r in rows if str(r.get(column)) == str(value)]
        for column, values in (in_ or {}).items():
            allowed = {str(v) for v in values}
            rows = [r for r in rows if str(r.get(column)) in allowed]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order) or ""), reverse=desc)
        if limit is not None:
            rows = rows[:limit]
        return [self._shape(r, columns) for r in rows]

    def select_one(self, table, row_id, columns="*"):
        rows = self.select(table, columns, eq={"id": row_id}, limit=1)
        return rows[0] if rows else None

    def insert(self, table, rows):
        if table in self.insert_errors:
            raise SupabaseClientError(self.insert_errors[table], code="INSERT_FAILED")
        payload = rows if isinstance(rows, list) else [rows]
        return [self.seed(table, **row) for row in payload]

    def update(self, table, row_id, data):
        row = self.tables[table].get(str(row_id))
        if row is None:
            return None
        row.update(data)
        return dict(row)

    def delete(self, table, row_id):
        self.tables[table].pop(str(row_id), None)
        if table == "customers":
            for ref_table in CUSTOMER_REFERENCES:
                for row in self.tables[ref_table].values():
                    if str(row.get("customer_id")) == str(row_id):
                        row["customer_id"] = None

    def count(self, table, *, eq=None, in_=None):
        return len(self.select(table, eq=eq, in_=in_))

    def invoke(self, function_name, body):
        self.invocations.append((function_name, body))
        if self.invoke_error:
            raise RemoteFunctionError(function_name, self.invoke_error)
        return {"success": True}

    async def subscribe(self, table, callback, on_status=None):
        self.subscriptions.append(table)
        self.status_callbacks.append(on_status)

    async def unsubscribe_all(self):
        self.subscriptions.clear()


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self):
        self.current = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def gateway():
    """Empty in-memory gateway."""
    return FakeGateway()


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def clocks(clock):
    """Clock registry driven by the fake clock."""
    return ClockRegistry(now=clock)


@pytest.fixture
def employee():
    """A signed-in employee."""
    return AuthUser(id=uuid4(), email="welder@example.com", role="employee")


@pytest.fixture
def manager():
    """A signed-in manager."""
    return AuthUser(id=uuid4(), email="boss@example.com", role="manager")


@pytest.fixture
def ctx(gateway, employee, clocks):
    """AppContext for the employee over the fake gateway."""
    return AppContext(
        gateway=gateway,
        user=employee,
        inventory_cache=InventoryCache(),
        clocks=clocks,
    )


@pytest.fixture
def customer(gateway):
    """A stored customer."""
    return gateway.seed(
        "customers", name="Alberta Steel Works", email="info@albertasteelworks.ca",
        phone="(403) 555-0101", address="", notes="",
    )


@pytest.fixture
def project(gateway, customer):
    """A stored in-progress project for the customer."""
    return gateway.seed(
        "projects", title="Industrial Railing System", customer_id=customer["id"],
        status="in_progress", labor_rate=75.0, materials_cost=1250.0, total_cost=1250.0,
    )


@pytest.fixture
def wire(gateway):
    """A stored material item."""
    return gateway.seed(
        "inventory", name="ER70S-6 MIG Wire", category="Welding Wire", unit="spool",
        quantity=25, min_quantity=5, unit_price=45.99, supplier="Lincoln Electric",
        description='0.035" diameter, 10lb spool',
    )


@pytest.fixture
def discs(gateway):
    """A stored consumable item."""
    return gateway.seed(
        "inventory", name="Grinding Discs", category="Consumables", unit="pack",
        quantity=30, min_quantity=10, unit_price=15.99, supplier="Norton",
        description='4.5" diameter, pack of 10',
    )


@pytest.fixture
def client(gateway, clocks, employee):
    """TestClient over the fake gateway, signed in as the employee."""
    from fastapi.testclient import TestClient

    from app.auth import get_current_user
    from app.main import app

    app.state.gateway = gateway
    app.state.inventory_cache = InventoryCache()
    app.state.clocks = clocks
    app.dependency_overrides[get_current_user] = lambda: employee

    yield TestClient(app)

    app.dependency_overrides.clear()
