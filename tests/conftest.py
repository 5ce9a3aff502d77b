"""
Pytest fixtures: an app wired to an in-memory mongomock database.
"""
from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import security
from config import Settings
from database import Database
from main import create_app

JWT_SECRET = "test-signing-secret-that-is-long-enough-0123456789"
ADMIN_SECRET = "let-me-in-please"

CUSTOMER_PASSWORD = "Customer@123"
EMPLOYEE_PASSWORD = "Employee@123"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    # Cost 4 keeps the suite fast; production hashes use 12.
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="mongodb://localhost:27017",
        database_name="portal_test",
        jwt_secret=JWT_SECRET,
        admin_signup_secret=ADMIN_SECRET,
        log_level="WARNING",
        app_env="test",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def database(settings) -> Database:
    return Database(settings.database_url, settings.database_name, client=mongomock.MongoClient())


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def add_account(database: Database, username: str, password: str, role: str = "customer", **extra) -> str:
    collection = {"customer": "customers", "employee": "employees", "admin": "users"}[role]
    doc = {
        "username": username,
        "password_hash": security.hash_password(password),
        "full_name": extra.pop("full_name", username.replace("_", " ").title()),
        "role": role,
        "is_active": True,
        "permissions": [],
        "created_at": datetime.now(timezone.utc),
    }
    doc.update(extra)
    return str(database.collection(collection).insert_one(doc).inserted_id)


def login(client: TestClient, username: str, password: str, role: str = "customer") -> str:
    res = client.post("/user/login", json={"username": username, "password": password, "role": role})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_token(client, database) -> str:
    add_account(database, "john_doe", CUSTOMER_PASSWORD, "customer", full_name="John Doe")
    return login(client, "john_doe", CUSTOMER_PASSWORD, "customer")


@pytest.fixture
def other_customer_token(client, database) -> str:
    add_account(database, "sarah_smith", CUSTOMER_PASSWORD, "customer", full_name="Sarah Smith")
    return login(client, "sarah_smith", CUSTOMER_PASSWORD, "customer")


@pytest.fixture
def employee_token(client, database) -> str:
    add_account(database, "alice", EMPLOYEE_PASSWORD, "employee", full_name="Alice Banda")
    return login(client, "alice", EMPLOYEE_PASSWORD, "employee")


def valid_payment(**overrides) -> dict:
    payment = {
        "source_account": "ACC123456789",
        "target_account": "GB29NWBK60161331926819",
        "beneficiary_name": "Jane Smith",
        "beneficiary_bank": "NWBKGB2L",
        "amount": "1500.50",
        "currency": "GBP",
        "purpose": "Invoice 42 settlement",
    }
    payment.update(overrides)
    return payment
