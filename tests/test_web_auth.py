from __future__ import annotations

import pytest

from denguedash.web.responses import ValidationFailed
from denguedash.web.schemas import LoginSchema, SignupSchema, parse_body

USER = {
    "fullName": "Budi Santoso",
    "email": "Budi@Example.org",
    "username": "BudiS",
    "password": "Secret#123",
}


def _register(client, **overrides):
    return client.post("/api/auth/register", json={**USER, **overrides})


def test_signup_schema_normalizes() -> None:
    data = parse_body(SignupSchema, USER)
    assert data.email == "budi@example.org"
    assert data.username == "budis"


@pytest.mark.parametrize(
    "password, message",
    [
        ("Sh0rt!", "Passwords must be at least 8 characters long!"),
        ("NoDigits!!", "Passwords must contain at least 1 number!"),
        ("NOLOWER1!", "Passwords must contain at least 1 lowercase letter!"),
        ("noupper1!", "Passwords must contain at least 1 uppercase letter!"),
        ("NoSpecial1", "Passwords must contain at least 1 special character!"),
    ],
)
def test_password_rules(password: str, message: str) -> None:
    with pytest.raises(ValidationFailed) as exc:
        parse_body(LoginSchema, {"username": "budis", "password": password})
    assert exc.value.errors["fields"] == [{"field": "password", "message": message}]


def test_parse_body_requires_object() -> None:
    with pytest.raises(ValidationFailed) as exc:
        parse_body(LoginSchema, None)
    assert exc.value.errors["fields"][0]["field"] == "body"


def test_register_creates_user(client, users_collection) -> None:
    res = _register(client)
    body = res.get_json()
    assert res.status_code == 201
    user = body["data"]["user"]
    assert user["username"] == "budis"
    assert "password" not in user

    stored = users_collection.find_one({"username": "budis"})
    assert stored["password"] != USER["password"]


def test_register_duplicate_is_conflict(client) -> None:
    _register(client)
    res = _register(client, email="other@example.org")
    assert res.status_code == 409


def test_register_validation_errors(client) -> None:
    res = _register(client, fullName="Bu", password="weak")
    body = res.get_json()
    assert res.status_code == 400
    fields = {f["field"] for f in body["errors"]["fields"]}
    assert fields == {"fullName", "password"}

    res = client.post("/api/auth/register", data="plain text", content_type="text/plain")
    assert res.status_code == 400


def test_login_check_and_logout(client, users_collection) -> None:
    _register(client)
    assert client.get("/api/auth/check-auth").status_code == 401

    res = client.post("/api/auth/login", json={"username": "budis", "password": USER["password"]})
    assert res.status_code == 200
    assert users_collection.find_one({"username": "budis"}).get("lastLogin") is not None

    res = client.get("/api/auth/check-auth")
    assert res.status_code == 200
    assert res.get_json()["data"]["user"]["email"] == "budi@example.org"

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/check-auth").status_code == 401


def test_login_wrong_password(client) -> None:
    _register(client)
    res = client.post("/api/auth/login", json={"username": "budis", "password": "Wrong#999"})
    assert res.status_code == 400
    assert res.get_json()["message"] == "Invalid credentials, please try again"


def test_verify_account(client) -> None:
    _register(client)
    res = client.post("/api/auth/verify-account", json={"username": "budis"})
    assert res.status_code == 200
    assert res.get_json()["data"] == {"exist": True}

    res = client.post("/api/auth/verify-account", json={"username": "nobody"})
    assert res.status_code == 404
    assert res.get_json()["data"] == {"exist": False}


def test_reset_password(client) -> None:
    """Old password stops working after a reset."""
    _register(client)
    res = client.put("/api/auth/reset-password", json={"username": "budis", "password": "Fresh#4567"})
    assert res.status_code == 200

    old = client.post("/api/auth/login", json={"username": "budis", "password": USER["password"]})
    assert old.status_code == 400
    new = client.post("/api/auth/login", json={"username": "budis", "password": "Fresh#4567"})
    assert new.status_code == 200

    res = client.put("/api/auth/reset-password", json={"username": "ghost", "password": "Fresh#4567"})
    assert res.status_code == 404


def test_actions_are_logged(client, tmp_path) -> None:
    _register(client)
    client.post("/api/auth/login", json={"username": "budis", "password": USER["password"]})
    logs = list((tmp_path / "logs").glob("*-web-actions.log"))
    assert len(logs) == 1
    lines = logs[0].read_text(encoding="utf-8").splitlines()
    assert [line.split('"action": "')[1].split('"')[0] for line in lines] == ["register", "login"]
