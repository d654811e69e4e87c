"""Registration and login over HTTP."""

from __future__ import annotations

from fastapi.testclient import TestClient

from affiliate_hub.tokens import TokenService

from conftest import EMAIL, PASSWORD


def _register(client: TestClient, **overrides):
    payload = {"name": "Test User", "email": EMAIL, "password": PASSWORD}
    payload.update(overrides)
    return client.post("/register", json=payload)


def test_register_then_login_returns_verifiable_token(client: TestClient, tokens: TokenService) -> None:
    response = _register(client)
    assert response.status_code == 201
    assert response.json() == {"message": "User registered successfully"}

    login = client.post("/login", json={"email": EMAIL, "password": PASSWORD})
    assert login.status_code == 200
    claims = tokens.verify(login.json()["token"])
    assert claims.role == "user"
    assert len(claims.id) == 24


def test_register_stores_hash_not_plaintext(client: TestClient, database) -> None:
    assert _register(client).status_code == 201
    record = database.get_credentials(EMAIL)
    assert record is not None
    _, password_hash = record
    assert password_hash != PASSWORD
    assert password_hash.startswith("$2b$")


def test_register_duplicate_email_conflicts(client: TestClient) -> None:
    assert _register(client).status_code == 201

    duplicate = _register(client, email=EMAIL.upper(), name="Someone Else")
    assert duplicate.status_code == 409
    assert duplicate.json() == {"success": False, "message": "User already exists"}


def test_register_reports_all_violations(client: TestClient) -> None:
    response = client.post("/register", json={})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == [
        {"field": "name", "message": "Name is required"},
        {"field": "email", "message": "Please include a valid email"},
        {"field": "password", "message": "Please enter a password with 6 or more characters"},
    ]


def test_register_with_malformed_body_is_a_validation_error(client: TestClient) -> None:
    response = client.post(
        "/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert len(response.json()["errors"]) == 3


def test_register_short_password_creates_nothing(client: TestClient, database) -> None:
    response = _register(client, password="12345")
    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["password"]
    assert database.get_user_by_email(EMAIL) is None


def test_login_failures_are_indistinguishable(client: TestClient) -> None:
    assert _register(client).status_code == 201

    unknown = client.post("/login", json={"email": "nobody@example.com", "password": PASSWORD})
    wrong = client.post("/login", json={"email": EMAIL, "password": "not-the-password"})

    assert unknown.status_code == wrong.status_code == 400
    assert unknown.json() == wrong.json() == {"success": False, "message": "Invalid email or password"}


def test_login_validation_errors(client: TestClient) -> None:
    response = client.post("/login", json={"email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["errors"] == [
        {"field": "email", "message": "Please include a valid email"},
        {"field": "password", "message": "Password is required"},
    ]


def test_login_accepts_email_in_any_case(client: TestClient) -> None:
    assert _register(client).status_code == 201
    response = client.post("/login", json={"email": "  USER@Example.com ", "password": PASSWORD})
    assert response.status_code == 200


def test_whitespace_password_can_register_and_log_in(client: TestClient) -> None:
    assert _register(client, password="      ").status_code == 201

    login = client.post("/login", json={"email": EMAIL, "password": "      "})
    assert login.status_code == 200
    assert "token" in login.json()


def test_login_with_unknown_email_still_checks_a_hash(client: TestClient, hasher, monkeypatch) -> None:
    attempts = []
    original = hasher.verify_dummy_sync

    def recording(password):
        attempts.append(password)
        return original(password)

    monkeypatch.setattr(hasher, "verify_dummy_sync", recording)

    response = client.post("/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert response.status_code == 400
    assert attempts == [PASSWORD]

    assert _register(client).status_code == 201
    assert client.post("/login", json={"email": EMAIL, "password": "not-the-password"}).status_code == 400
    assert attempts == [PASSWORD]
