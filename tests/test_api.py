# =============================================================================
# tests/test_api.py - API Endpoint Tests
# =============================================================================
# This module contains tests for:
# - Error responses (400 / 404 / 409 / 502 shapes)
# - Record endpoints
# - The timesheet flow over HTTP
# - Current user, view and dashboard
#
# Uses FastAPI's TestClient with the fake gateway from conftest.
# =============================================================================

from uuid import uuid4

import pytest

from app.auth import get_current_user


# =============================================================================
# Error Response Tests
# =============================================================================

class TestErrorResponses:
    """Test that failures come back as structured JSON."""

    def test_validation_failed(self, client):
        response = client.post("/api/v1/customers", json={"email": "a@b.ca"})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Customer name is required."
        assert body["code"] == "VALIDATION_FAILED"
        assert body["details"] == {"fields": ["name"]}

    def test_not_found(self, client):
        response = client.get(f"/api/v1/projects/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "PROJECT_NOT_FOUND"

    def test_delete_without_confirmation(self, client, customer, gateway):
        response = client.delete(f"/api/v1/customers/{customer['id']}")

        assert response.status_code == 409
        assert response.json()["code"] == "DELETE_NOT_CONFIRMED"
        assert len(gateway.rows("customers")) == 1

    def test_remote_failure_is_502(self, client, gateway):
        gateway.insert_errors["customers"] = "Failed to create customers row: network down"

        response = client.post("/api/v1/customers", json={"name": "Prairie Fab"})

        assert response.status_code == 502
        assert response.json()["code"] == "INSERT_FAILED"

    def test_malformed_body(self, client):
        response = client.put("/api/v1/timesheet/work-order", json={"project_id": "not-a-uuid"})
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_requires_auth(self, client):
        from app.main import app

        del app.dependency_overrides[get_current_user]
        response = client.get("/api/v1/customers")
        assert response.status_code in (401, 403)


# =============================================================================
# Record Endpoint Tests
# =============================================================================

class TestRecords:
    """Test record endpoints end to end."""

    def test_customer_crud(self, client, gateway):
        created = client.post("/api/v1/customers", json={"name": "Prairie Fab"})
        assert created.status_code == 201
        customer_id = created.json()["id"]
        assert created.json()["email"] == ""

        updated = client.patch(f"/api/v1/customers/{customer_id}", json={"phone": "(403) 555-0000"})
        assert updated.json()["phone"] == "(403) 555-0000"

        listing = client.get("/api/v1/customers", params={"search": "prairie"}).json()
        assert listing["total"] == 1

        deleted = client.delete(f"/api/v1/customers/{customer_id}", params={"confirm": "true"})
        assert deleted.status_code == 200
        assert gateway.rows("customers") == []

    def test_project_list(self, client, project):
        body = client.get("/api/v1/projects", params={"search": "ALBERTA"}).json()

        assert body["total"] == 1
        assert body["projects"][0]["customer_name"] == "Alberta Steel Works"
        assert body["projects"][0]["status_color"] == "#60a5fa"

    def test_inventory_list(self, client, wire, discs):
        body = client.get("/api/v1/inventory", params={"category": "Consumables"}).json()

        assert body["total"] == 1
        assert body["items"][0]["name"] == "Grinding Discs"
        assert body["total_value"] == 479.7

    def test_inventory_row_without_category(self, client, gateway, wire):
        gateway.seed("inventory", name="Old Stock", category=None, quantity=1, min_quantity=0)

        response = client.get("/api/v1/inventory")

        assert response.status_code == 200
        assert {item["category"] for item in response.json()["items"]} == {None, "Welding Wire"}

    def test_inventory_picker(self, client, wire):
        body = client.get("/api/v1/inventory/picker").json()
        assert body["items"] == [
            {"id": wire["id"], "name": "ER70S-6 MIG Wire", "unit": "spool", "category": "Welding Wire"},
        ]

    def test_invoice_payment(self, client):
        invoice = client.post("/api/v1/invoices", json={"invoice_number": "INV-9", "subtotal": 100}).json()
        assert invoice["total_amount"] == 105.0

        paid = client.post(
            f"/api/v1/invoices/{invoice['id']}/payments",
            json={"amount": 105, "payment_method": "e_transfer"},
        ).json()
        assert paid["status"] == "paid"
        assert paid["balance_due"] == 0.0

    def test_quote_create(self, client, customer):
        quote = client.post("/api/v1/quotes", json={
            "quote_number": "Q-7", "title": "Stair Stringers", "customer_id": customer["id"],
            "materials_cost": 100, "labor_cost": 100, "tax_rate": 0.1,
        })
        assert quote.status_code == 201
        assert quote.json()["total_amount"] == 220.0


# =============================================================================
# Timesheet Flow Tests
# =============================================================================

class TestTimesheetFlow:
    """Test the employee flow over HTTP."""

    def test_full_flow(self, client, gateway, customer, discs, clock):
        work_order = client.post(
            "/api/v1/timesheet/work-orders",
            json={"title": "WO-3001", "customer_name": "Alberta Steel Works"},
        )
        assert work_order.status_code == 201
        assert work_order.json()["customer_id"] == customer["id"]

        status = client.post("/api/v1/timesheet/clock-in").json()
        assert status["clocked_in"] is True
        assert status["project_name"] == "WO-3001"

        client.post("/api/v1/timesheet/lines", json={"inventory_id": discs["id"]})
        status = client.put(f"/api/v1/timesheet/lines/{discs['id']}", json={"quantity": "3"}).json()
        assert status["consumables"][0]["quantity"] == 3.0

        clock.advance(minutes=45)
        result = client.post("/api/v1/timesheet/clock-out", json={"notes": "Done"})

        assert result.status_code == 200
        assert result.json()["duration_minutes"] == 45.0
        assert result.json()["message"] == "Timesheet submitted successfully!"
        assert len(gateway.invocations) == 1

    def test_clock_in_without_work_order(self, client):
        response = client.post("/api/v1/timesheet/clock-in")
        assert response.status_code == 400
        assert response.json()["detail"] == "Please select a work order before clocking in."

    def test_discard_stuck_clock_out(self, client, gateway, project, wire):
        client.post("/api/v1/timesheet/clock-in", json={"project_id": project["id"]})
        client.post("/api/v1/timesheet/lines", json={"inventory_id": wire["id"]})
        client.put(f"/api/v1/timesheet/lines/{wire['id']}", json={"quantity": 2})
        gateway.invoke_error = "Insufficient stock"
        failed = client.post("/api/v1/timesheet/clock-out").json()

        discarded = client.post("/api/v1/timesheet/clock-out/discard")

        assert discarded.status_code == 200
        assert discarded.json()["entry_id"] == failed["details"]["entry_id"]
        assert discarded.json()["clockout_step"] == "usage_logged"
        clock_in = client.post("/api/v1/timesheet/clock-in", json={"project_id": project["id"]})
        assert clock_in.json()["clocked_in"] is True

    def test_discard_without_clock_out(self, client):
        response = client.post("/api/v1/timesheet/clock-out/discard")
        assert response.status_code == 409
        assert response.json()["code"] == "CLOCK_STATE_INVALID"

    def test_failed_clock_out_then_retry(self, client, gateway, project, wire):
        client.post("/api/v1/timesheet/clock-in", json={"project_id": project["id"]})
        client.post("/api/v1/timesheet/lines", json={"inventory_id": wire["id"]})
        client.put(f"/api/v1/timesheet/lines/{wire['id']}", json={"quantity": 2})
        gateway.invoke_error = "Insufficient stock"

        failed = client.post("/api/v1/timesheet/clock-out")
        assert failed.status_code == 502
        assert failed.json()["code"] == "CLOCK_OUT_FAILED"
        assert failed.json()["details"]["step"] == "usage_logged"

        pending = client.get("/api/v1/timesheet/entries", params={"pending": "true"}).json()
        assert len(pending) == 1

        gateway.invoke_error = None
        retried = client.post("/api/v1/timesheet/clock-out")
        assert retried.status_code == 200
        assert len(gateway.rows("timesheet_entries")) == 1
        assert len(gateway.rows("timesheet_materials_used")) == 1


# =============================================================================
# Shell Tests
# =============================================================================

class TestShell:
    """Test current user, view and dashboard endpoints."""

    def test_me(self, client, employee):
        body = client.get("/api/v1/me").json()
        assert body["id"] == str(employee.id)
        assert body["role"] == "employee"
        assert body["is_employee"] is True

    def test_employee_view(self, client):
        assert client.get("/api/v1/me/view").json()["view"] == "employee_timesheet"

    def test_manager_view(self, client, manager):
        from app.main import app

        app.dependency_overrides[get_current_user] = lambda: manager
        body = client.get("/api/v1/me/view").json()

        assert body["view"] == "management"
        assert body["tabs"] == ["dashboard", "customers", "jobs", "inventory"]

    def test_dashboard(self, client, project, wire):
        body = client.get("/api/v1/dashboard").json()
        assert body == {"active_jobs": 1, "low_stock_items": 0, "database_connected": True}

    @pytest.mark.parametrize("path", ["/api/v1/health", "/api/v1/health/live"])
    def test_health(self, client, path):
        assert client.get(path).status_code == 200

    def test_readiness(self, client, gateway):
        gateway.connected = False
        body = client.get("/api/v1/health/ready").json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"] == "unhealthy"
