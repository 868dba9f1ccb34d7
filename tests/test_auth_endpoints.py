import uuid
from datetime import timedelta

from conftest import PASSWORD, bearer, register, run_sql


def set_cookies(response):
    return response.headers.get_list("set-cookie")


def test_root_and_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "EstateHub API"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["database"] == "healthy"


def test_register_login_and_role_gate_end_to_end(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "a@x.com", "password": "P@ssw0rd1"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["username"] == "alice"
    assert body["data"]["role"] == "USER"
    for secret in ("password", "password_hash", "verification_token", "reset_password_token"):
        assert secret not in body["data"]

    assert response.cookies.get("token")
    assert response.cookies.get("refreshToken")
    assert response.cookies["token"] != response.cookies["refreshToken"]
    assert all("HttpOnly" in c for c in set_cookies(response))
    assert all("SameSite=strict" in c for c in set_cookies(response))
    client.cookies.clear()

    response = client.post("/api/auth/login", json={"username": "alice", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["message"] == "Invalid credentials"
    assert not set_cookies(response)

    response = client.post("/api/auth/login", json={"username": "alice", "password": "P@ssw0rd1"})
    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"

    # Cookie jar now carries alice's session
    response = client.get("/api/users")
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. Insufficient permissions."


def test_register_validation(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "a!", "email": "not-an-email", "password": "weak"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert {"username", "email", "password"} <= fields


def test_register_duplicates(client):
    register(client, "alice", "alice@example.com")

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "new@example.com", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Username already taken"

    response = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "ALICE@example.com", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


def test_unknown_user_and_wrong_password_look_the_same(client):
    register(client, "alice")

    unknown = client.post("/api/auth/login", json={"username": "ghost", "password": PASSWORD})
    wrong = client.post("/api/auth/login", json={"username": "alice", "password": "Wr0ng!pass"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["message"] == wrong.json()["message"] == "Invalid credentials"


def test_login_with_email(client):
    register(client, "alice", "alice@example.com")

    response = client.post(
        "/api/auth/login", json={"username": "alice@example.com", "password": PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "alice"


def test_me_with_cookie_and_bearer(client):
    token = register(client, "alice")

    response = client.get("/api/auth/me", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "alice"

    client.cookies.set("token", token)
    response = client.get("/api/auth/me")
    assert response.status_code == 200


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Access denied. No token provided."

    response = client.get("/api/auth/me", headers=bearer("garbage"))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token."


def test_refresh_token_rejected_as_access(client):
    client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
    )
    refresh = client.cookies["refreshToken"]
    client.cookies.clear()

    response = client.get("/api/auth/me", headers=bearer(refresh))
    assert response.status_code == 401


def test_refresh_rotates_cookies(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
    )
    old_refresh = response.cookies["refreshToken"]

    response = client.post("/api/auth/refresh-token")
    assert response.status_code == 200
    assert response.json()["message"] == "Token refreshed successfully"
    assert response.cookies.get("token")
    assert response.cookies["refreshToken"] != old_refresh


def test_refresh_without_cookie(client):
    response = client.post("/api/auth/refresh-token")
    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token not provided"


def test_expired_refresh_token_issues_nothing(client):
    token = register(client, "alice")
    user_id = client.get("/api/auth/me", headers=bearer(token)).json()["data"]["id"]
    expired = client.app.state.tokens.issue_refresh(
        uuid.UUID(user_id), expires_delta=timedelta(seconds=-5)
    )
    client.cookies.set("refreshToken", expired)

    response = client.post("/api/auth/refresh-token")
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid refresh token"
    assert not set_cookies(response)


def test_logout_clears_cookies(client):
    client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
    )
    assert client.get("/api/auth/me").status_code == 200

    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    cleared = set_cookies(response)
    assert any(c.startswith("token=") and "Max-Age=0" in c for c in cleared)
    assert any(c.startswith("refreshToken=") and "Max-Age=0" in c for c in cleared)

    assert client.get("/api/auth/me").status_code == 401


def test_deactivated_user_token_rejected(client, db_path):
    token = register(client, "alice")
    run_sql(db_path, "UPDATE users SET is_active = 0 WHERE username = ?", ("alice",))

    response = client.get("/api/auth/me", headers=bearer(token))
    assert response.status_code == 401

    response = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert response.status_code == 401
    assert response.json()["message"] == "Account is deactivated"


def test_deleted_user_token_rejected(client):
    token = register(client, "alice")

    response = client.delete("/api/users/account", headers=bearer(token))
    assert response.status_code == 200

    response = client.get("/api/auth/me", headers=bearer(token))
    assert response.status_code == 401


def test_forgot_and_reset_password(client, monkeypatch):
    register(client, "alice", "alice@example.com")
    sent = []
    monkeypatch.setattr(
        "estatehub.core.email.EmailService.send_password_reset",
        lambda self, to_email, username, token: sent.append((to_email, username, token)),
    )

    response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert response.status_code == 200
    assert sent and sent[0][:2] == ("alice@example.com", "alice")
    token = sent[0][2]

    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "N3w!Passw0rd"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password reset successfully"

    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "An0ther!Pass"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired reset token"

    old = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    new = client.post("/api/auth/login", json={"username": "alice", "password": "N3w!Passw0rd"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_forgot_password_unknown_email_is_generic(client, monkeypatch):
    register(client, "alice", "alice@example.com")
    sent = []
    monkeypatch.setattr(
        "estatehub.core.email.EmailService.send_password_reset",
        lambda self, *args: sent.append(args),
    )

    known = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert len(sent) == 1


def test_expired_reset_token(client, db_path, monkeypatch):
    register(client, "alice", "alice@example.com")
    sent = []
    monkeypatch.setattr(
        "estatehub.core.email.EmailService.send_password_reset",
        lambda self, to_email, username, token: sent.append(token),
    )
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    run_sql(
        db_path,
        "UPDATE users SET reset_password_expires = '2000-01-01 00:00:00.000000' WHERE username = ?",
        ("alice",),
    )

    response = client.post(
        "/api/auth/reset-password", json={"token": sent[0], "password": "N3w!Passw0rd"}
    )
    assert response.status_code == 400

    response = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert response.status_code == 200


def test_request_id_and_security_headers(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
