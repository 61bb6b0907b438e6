from __future__ import annotations

import pytest

from app import create_app
from app.config import Config
from app.extensions import db
from app.services.auth_service import create_user, ensure_default_roles


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-jwt-secret-key-at-least-32-bytes-long"
    SECRET_KEY = "test-secret"
    LOG_LEVEL = "WARNING"
    INBOUND_STORE_BACKEND = "memory"
    INBOUND_SEED_SAMPLES = True
    INBOUND_ENFORCE_TRANSITIONS = True
    ADMIN_SETUP_SECRET = None


class SqlStoreConfig(TestConfig):
    INBOUND_STORE_BACKEND = "sql"


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def sql_app():
    app = create_app(SqlStoreConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def store(app):
    return app.extensions["inbound_store"]


@pytest.fixture()
def admin_token(app, client) -> str:
    with app.app_context():
        roles = ensure_default_roles()
        create_user(email="admin@example.com", password="Admin123!", roles=[roles["admin"]])

    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "Admin123!"})
    return response.get_json()["data"]["accessToken"]


@pytest.fixture()
def operator_token(app, client) -> str:
    with app.app_context():
        roles = ensure_default_roles()
        create_user(email="operator@example.com", password="Operator123!", roles=[roles["operator"]])

    response = client.post(
        "/api/auth/login", json={"email": "operator@example.com", "password": "Operator123!"}
    )
    return response.get_json()["data"]["accessToken"]


@pytest.fixture()
def make_payload():
    def _make(**overrides) -> dict[str, object]:
        payload: dict[str, object] = {
            "poNumber": "PO-X1",
            "supplierName": "Acme",
            "items": [{"skuCode": "S1", "productName": "Widget", "quantity": 5, "unit": "EA"}],
        }
        payload.update(overrides)
        return payload

    return _make
