import sqlite3

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient

from estatehub.core.config import Settings
from estatehub.main import create_app

PASSWORD = "P@ssw0rd1"


@pytest.fixture(autouse=True)
def fast_hasher(monkeypatch):
    # Production parameters take ~250ms per hash
    monkeypatch.setattr(
        "estatehub.auth.password.ph",
        PasswordHasher(time_cost=1, memory_cost=8, parallelism=1, hash_len=16, salt_len=8),
    )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "estatehub_test.db"


@pytest.fixture
def settings(db_path):
    return Settings(
        _env_file=None,
        environment="test",
        database_url=f"sqlite+aiosqlite:///{db_path}",
        jwt_secret_key="test-access-secret",
        jwt_refresh_secret_key="test-refresh-secret",
        log_level="WARNING",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def register(client, username, email=None, password=PASSWORD):
    """Register a user and return its access token, leaving the cookie jar empty."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        },
    )
    assert response.status_code == 201, response.json()
    token = response.cookies["token"]
    client.cookies.clear()
    return token


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def run_sql(db_path, sql, params=()):
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


def set_role(db_path, username, role):
    run_sql(db_path, "UPDATE users SET role = ? WHERE username = ?", (role, username))


@pytest.fixture
def user_token(client):
    return register(client, "buyer")


@pytest.fixture
def agent_token(client, db_path):
    token = register(client, "agent")
    set_role(db_path, "agent", "AGENT")
    return token


@pytest.fixture
def admin_token(client, db_path):
    token = register(client, "admin")
    set_role(db_path, "admin", "ADMIN")
    return token
