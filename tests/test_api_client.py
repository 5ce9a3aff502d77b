"""PortalClient against the real app, using the FastAPI TestClient as its HTTP session."""

import pytest

from api_client import ApiError, PortalClient
from conftest import CUSTOMER_PASSWORD, EMPLOYEE_PASSWORD, add_account, valid_payment


@pytest.fixture
def portal(client, database):
    add_account(database, "john_doe", CUSTOMER_PASSWORD, "customer", full_name="John Doe")
    add_account(database, "alice", EMPLOYEE_PASSWORD, "employee", full_name="Alice Banda")

    def make():
        return PortalClient("http://testserver", session=client)

    return make


def test_customer_and_employee_flow(portal):
    customer = portal()
    body = customer.login("john_doe", CUSTOMER_PASSWORD)
    assert body["user"]["role"] == "customer"
    assert customer.me()["username"] == "john_doe"

    created = customer.create_payment(valid_payment())
    assert created["status"] == "pending"

    employee = portal()
    employee.login("alice", EMPLOYEE_PASSWORD, role="employee")
    pending = employee.pending_payments()
    assert [p["reference"] for p in pending] == [created["reference"]]

    result = employee.update_status(pending[0]["id"], "approved")
    assert result["message"] == "Payment approved successfully"
    assert employee.pending_payments() == []
    assert employee.stats()["approved"] == 1
    assert len(employee.all_payments()) == 1

    assert customer.my_payments()[0]["status"] == "approved"


def test_server_message_is_surfaced(portal):
    customer = portal()
    with pytest.raises(ApiError) as exc:
        customer.login("john_doe", "Wrong@1234")
    assert exc.value.status_code == 400
    assert exc.value.message == "Authentication failed"


def test_validation_errors_are_surfaced(portal):
    customer = portal()
    customer.login("john_doe", CUSTOMER_PASSWORD)
    with pytest.raises(ApiError) as exc:
        customer.create_payment(valid_payment(currency="us"))
    assert exc.value.message == "Validation failed"
    assert exc.value.errors == ["Invalid currency code (use 3-letter format like USD, EUR, GBP)"]


def test_forbidden_route(portal):
    customer = portal()
    customer.login("john_doe", CUSTOMER_PASSWORD)
    with pytest.raises(ApiError) as exc:
        customer.pending_payments()
    assert exc.value.status_code == 403
