"""Tests for the account and PIN API routes."""

import hashlib

import pytest


def _digest(text):
    return hashlib.sha256(text.encode()).hexdigest()


def _register(client, username="alice", password="master-pw"):
    return client.post("/api/auth/register", json={
        "username": username,
        "masterPasswordHash": _digest(password),
    })


class TestRegister:

    def test_register(self, client):
        response = _register(client)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"]["username"] == "alice"
        assert isinstance(body["user"]["id"], int)

    def test_duplicate_username_conflicts(self, client):
        _register(client)
        response = _register(client, password="other")
        assert response.status_code == 409
        assert response.json()["detail"] == "Username already exists"

    def test_missing_fields_rejected(self, client):
        response = client.post("/api/auth/register", json={"username": "alice"})
        assert response.status_code == 422

    def test_snake_case_fields_accepted(self, client):
        response = client.post("/api/auth/register", json={
            "username": "bob",
            "master_password_hash": _digest("pw"),
        })
        assert response.status_code == 200


class TestLogin:

    def test_login_without_pin(self, client):
        user = _register(client).json()["user"]
        response = client.post("/api/auth/login", json={
            "username": "alice",
            "masterPasswordHash": _digest("master-pw"),
        })
        assert response.status_code == 200
        assert response.json() == {"success": True, "user": user, "hasPin": False}

    def test_login_reports_pin(self, client):
        user = _register(client).json()["user"]
        client.post("/api/auth/setup-pin", json={"userId": user["id"], "pinHash": _digest("123456")})

        response = client.post("/api/auth/login", json={
            "username": "alice",
            "masterPasswordHash": _digest("master-pw"),
        })
        assert response.json()["hasPin"] is True

    def test_wrong_password(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={
            "username": "alice",
            "masterPasswordHash": _digest("wrong"),
        })
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    def test_failed_login_is_audited(self, client):
        from pinvault.core import get_audit_logger

        client.post("/api/auth/login", json={
            "username": "mallory",
            "masterPasswordHash": _digest("guess"),
        })
        content = get_audit_logger().log_file.read_text()
        assert "user.login.failed" in content


class TestPin:

    def test_setup_and_login_with_pin(self, client):
        user = _register(client).json()["user"]
        setup = client.post("/api/auth/setup-pin", json={
            "userId": user["id"],
            "pinHash": _digest("123456"),
        })
        assert setup.json() == {"success": True}

        response = client.post("/api/auth/login-pin", json={"pinHash": _digest("123456")})
        assert response.status_code == 200
        assert response.json()["user"] == user

    def test_setup_pin_unknown_user(self, client):
        response = client.post("/api/auth/setup-pin", json={
            "userId": 999,
            "pinHash": _digest("123456"),
        })
        assert response.status_code == 404

    def test_wrong_pin(self, client):
        user = _register(client).json()["user"]
        client.post("/api/auth/setup-pin", json={"userId": user["id"], "pinHash": _digest("123456")})

        response = client.post("/api/auth/login-pin", json={"pinHash": _digest("654321")})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid PIN"

    def test_pin_scoped_to_remembered_user(self, client):
        alice = _register(client, "alice").json()["user"]
        bob = _register(client, "bob").json()["user"]
        for user in (alice, bob):
            client.post("/api/auth/setup-pin", json={"userId": user["id"], "pinHash": _digest("111111")})

        unscoped = client.post("/api/auth/login-pin", json={"pinHash": _digest("111111")})
        assert unscoped.json()["user"]["id"] == alice["id"]

        scoped = client.post("/api/auth/login-pin", json={
            "pinHash": _digest("111111"),
            "userId": bob["id"],
        })
        assert scoped.json()["user"]["id"] == bob["id"]


class TestHealth:

    def test_health(self, client):
        from pinvault import __version__

        response = client.get("/api/health")
        assert response.json() == {"status": "ok", "version": __version__}


class TestStoreFailure:

    @pytest.mark.parametrize("path,body,detail", [
        ("/api/auth/login", {"username": "alice", "masterPasswordHash": "d"}, "Failed to log in"),
        ("/api/auth/login-pin", {"pinHash": "d"}, "Failed to unlock vault"),
    ])
    def test_database_error_returns_500_and_audit(self, client, path, body, detail):
        import sqlite3

        from pinvault.api.main import app
        from pinvault.core import get_audit_logger
        from pinvault.vault.credential_store import get_credential_store

        class LockedStore:
            def authenticate(self, *args, **kwargs):
                raise sqlite3.OperationalError("database is locked")

            def find_user_by_pin(self, *args, **kwargs):
                raise sqlite3.OperationalError("database is locked")

        app.dependency_overrides[get_credential_store] = lambda: LockedStore()
        try:
            response = client.post(path, json=body)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["detail"] == detail
        assert "vault.error" in get_audit_logger().log_file.read_text()
