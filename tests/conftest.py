"""Pytest fixtures and configuration for accountkeeper tests."""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from accountkeeper.api.app import create_app
from accountkeeper.auth.jwt import TokenService
from accountkeeper.auth.passwords import MIN_ROUNDS, PasswordHasher
from accountkeeper.config import Settings
from accountkeeper.database.user_repository import UserRepository
from accountkeeper.services.accounts import AccountService


TEST_SECRET_KEY = "test-secret-key-for-accountkeeper-tests-only"


@pytest.fixture
def test_settings():
    """Settings with the cheapest allowed hashing cost."""
    return Settings(
        jwt_secret_key=TEST_SECRET_KEY,
        jwt_expiration_hours=168,
        password_hash_rounds=MIN_ROUNDS,
    )


@pytest.fixture
def user_repository():
    """A fresh, empty in-memory repository for each test."""
    return UserRepository()


@pytest.fixture(scope="session")
def password_hasher():
    """Shared hasher; it holds no per-test state."""
    return PasswordHasher(rounds=MIN_ROUNDS)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET_KEY, expiration=timedelta(days=7))


@pytest.fixture
def account_service(user_repository, password_hasher, token_service):
    return AccountService(user_repository, password_hasher, token_service)


@pytest.fixture
def registration_data():
    """Valid registration payload. Copy before modifying."""
    return {"name": "John Doe", "email": "JOHN@x.com", "password": "secret1"}


@pytest.fixture
def test_client(test_settings, user_repository):
    """FastAPI test client around a fresh app and repository."""
    app = create_app(settings=test_settings, repository=user_repository)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register_and_login(test_client):
    """Register through the API and return (user, auth headers)."""
    def _register_and_login(name, email, password="secret1"):
        created = test_client.post("/accounts", json={"name": name, "email": email, "password": password})
        assert created.status_code == 201, created.text
        login = test_client.post("/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return created.json(), {"Authorization": f"Bearer {login.json()['token']}"}
    return _register_and_login


@pytest.fixture
def alice(register_and_login):
    """A registered user with auth headers."""
    return register_and_login("Alice Smith", "alice@mail.com")


@pytest.fixture
def bob(register_and_login):
    """A second registered user with auth headers."""
    return register_and_login("Bob Jones", "bob@mail.com")
