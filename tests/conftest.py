"""
Shared pytest fixtures for the PinVault test suite.

Autouse fixtures below isolate tests from the live application data:
  - Settings        -> temp database path, temp audit directory, test salt
  - Audit logger    -> fresh instance per test writing under tmp_path
  - Credential store -> singleton reset so routes open the temp database
"""

import pytest
from fastapi.testclient import TestClient

TEST_SALT = "test-deployment-salt"


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path):
    """Point the Settings singleton at per-test paths.

    Without this, any code path that calls ``get_settings()`` would read the
    developer's environment and write into ``data/vault.db``.
    """
    from pinvault.core.config import Settings, set_settings

    set_settings(Settings(
        app_salt=TEST_SALT,
        db_path=tmp_path / "vault.db",
        audit_log_dir=tmp_path / "audit_logs",
    ))
    yield
    set_settings(None)


@pytest.fixture(autouse=True)
def _isolate_audit_logs(_isolate_settings):
    """Give every test its own AuditLogger under tmp_path."""
    import pinvault.core.audit_log as audit_mod

    audit_mod._audit_logger = None
    yield
    if audit_mod._audit_logger is not None:
        audit_mod._audit_logger.close()
    audit_mod._audit_logger = None


@pytest.fixture(autouse=True)
def _isolate_credential_store(_isolate_settings):
    """Reset the CredentialStore singleton so it is rebuilt on the temp path."""
    from pinvault.vault.credential_store import set_credential_store

    set_credential_store(None)
    yield
    set_credential_store(None)


@pytest.fixture
def codec():
    from pinvault.vault.encryption import SecretCodec
    return SecretCodec(app_salt=TEST_SALT)


@pytest.fixture
def lenient_codec():
    from pinvault.vault.encryption import SecretCodec
    return SecretCodec(app_salt=TEST_SALT, strict=False)


@pytest.fixture
def store(tmp_path):
    from pinvault.vault.credential_store import CredentialStore
    return CredentialStore(db_path=tmp_path / "store.db")


@pytest.fixture
def client():
    """TestClient running the app lifespan against the temp database."""
    from pinvault.api.main import app

    with TestClient(app) as test_client:
        yield test_client
