"""Tests for the SQLite CredentialStore."""

import pytest

from pinvault.vault.credential_store import (
    CredentialStore,
    get_credential_store,
    set_credential_store,
)
from pinvault.vault.exceptions import UnknownUserError, UsernameTakenError


def _add(store, user_id, platform="GitHub", ciphertext="v1:AAAA", **kwargs):
    return store.add_credential(
        user_id=user_id,
        platform=platform,
        account_name=kwargs.get("account_name", "work"),
        username=kwargs.get("username", "octocat"),
        encrypted_password=ciphertext,
        notes=kwargs.get("notes"),
        category=kwargs.get("category", "Social"),
    )


class TestUsers:

    def test_create_and_authenticate(self, store):
        user = store.create_user("alice", "digest-a")
        assert user == {"id": user["id"], "username": "alice"}

        found = store.authenticate("alice", "digest-a")
        assert found == {"id": user["id"], "username": "alice", "has_pin": False}

    def test_authenticate_wrong_digest(self, store):
        store.create_user("alice", "digest-a")
        assert store.authenticate("alice", "digest-b") is None
        assert store.authenticate("bob", "digest-a") is None

    def test_duplicate_username(self, store):
        store.create_user("alice", "digest-a")
        with pytest.raises(UsernameTakenError):
            store.create_user("alice", "digest-b")

    def test_set_pin_and_find(self, store):
        user = store.create_user("alice", "digest-a")
        assert store.set_pin(user["id"], "pin-digest") is True

        assert store.find_user_by_pin("pin-digest") == {"id": user["id"], "username": "alice"}
        assert store.authenticate("alice", "digest-a")["has_pin"] is True

    def test_set_pin_unknown_user(self, store):
        assert store.set_pin(999, "pin-digest") is False

    def test_find_by_pin_returns_first_match(self, store):
        first = store.create_user("alice", "a")
        second = store.create_user("bob", "b")
        store.set_pin(second["id"], "same-pin")
        store.set_pin(first["id"], "same-pin")

        assert store.find_user_by_pin("same-pin")["id"] == first["id"]
        assert store.find_user_by_pin("same-pin", user_id=second["id"])["id"] == second["id"]

    def test_find_by_pin_no_match(self, store):
        user = store.create_user("alice", "a")
        store.set_pin(user["id"], "pin-digest")
        assert store.find_user_by_pin("other") is None
        assert store.find_user_by_pin("pin-digest", user_id=user["id"] + 1) is None

    def test_get_user(self, store):
        user = store.create_user("alice", "a")
        loaded = store.get_user(user["id"])
        assert loaded["username"] == "alice"
        assert loaded["has_pin"] is False
        assert loaded["created_at"]
        assert store.get_user(999) is None


class TestCredentials:

    @pytest.fixture
    def user_id(self, store):
        return store.create_user("alice", "digest")["id"]

    def test_add_and_get(self, store, user_id):
        credential_id = _add(store, user_id, notes="2FA on phone")
        record = store.get_credential(credential_id)

        assert record["user_id"] == user_id
        assert record["platform"] == "GitHub"
        assert record["encrypted_password"] == "v1:AAAA"
        assert record["notes"] == "2FA on phone"
        assert record["category"] == "Social"
        assert record["last_used"] is None
        assert record["created_at"]

    def test_add_for_unknown_user(self, store):
        with pytest.raises(UnknownUserError):
            _add(store, 12345)

    def test_list_newest_first(self, store, user_id):
        first = _add(store, user_id, platform="GitHub")
        second = _add(store, user_id, platform="Gmail")
        ids = [r["id"] for r in store.list_credentials(user_id)]
        assert ids == [second, first]

    def test_list_is_per_user(self, store, user_id):
        other = store.create_user("bob", "digest")["id"]
        _add(store, user_id)
        _add(store, other, platform="Netflix")

        assert [r["platform"] for r in store.list_credentials(other)] == ["Netflix"]
        assert store.list_credentials(999) == []

    def test_update_keeps_identity(self, store, user_id):
        credential_id = _add(store, user_id)
        before = store.get_credential(credential_id)

        assert store.update_credential(
            credential_id, "GitLab", "personal", "me", "v1:BBBB", "new notes", "Work"
        ) is True

        after = store.get_credential(credential_id)
        assert after["platform"] == "GitLab"
        assert after["encrypted_password"] == "v1:BBBB"
        assert after["category"] == "Work"
        assert after["created_at"] == before["created_at"]
        assert after["user_id"] == user_id

    def test_update_missing(self, store):
        assert store.update_credential(999, "x", None, None, "v1:AAAA") is False

    def test_delete(self, store, user_id):
        credential_id = _add(store, user_id)
        assert store.delete_credential(credential_id) is True
        assert store.get_credential(credential_id) is None
        assert store.delete_credential(credential_id) is False

    def test_touch_sets_last_used(self, store, user_id):
        credential_id = _add(store, user_id)
        assert store.touch_credential(credential_id) is True
        assert store.get_credential(credential_id)["last_used"] is not None
        assert store.touch_credential(999) is False

    def test_persists_across_instances(self, store, user_id):
        credential_id = _add(store, user_id)
        reopened = CredentialStore(db_path=store.db_path)
        assert reopened.get_credential(credential_id)["platform"] == "GitHub"


class TestAuditTrail:

    def test_writes_events_without_secrets(self, store):
        from pinvault.core import get_audit_logger

        user_id = store.create_user("alice", "digest-should-not-appear")["id"]
        _add(store, user_id, ciphertext="v1:CIPHERTEXT")

        content = get_audit_logger().log_file.read_text()
        assert "user.registered" in content
        assert "vault.credential.added" in content
        assert "digest-should-not-appear" not in content
        assert "v1:CIPHERTEXT" not in content


class TestSingleton:

    def test_default_store_uses_settings_path(self, tmp_path):
        store = get_credential_store()
        assert store.db_path == tmp_path / "vault.db"
        assert get_credential_store() is store

    def test_set_store(self, store):
        set_credential_store(store)
        assert get_credential_store() is store
