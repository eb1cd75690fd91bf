"""Tests for the JSON audit log."""

import json

from pinvault.core.audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    log_security_event,
)


def _events(logger):
    lines = logger.log_file.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]


class TestAuditLogger:

    def test_writes_json_line(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "logs")
        try:
            event_id = audit.log_event(
                EventType.CREDENTIAL_DELETED,
                EventSeverity.INFO,
                "Credential deleted",
                details={"credential_id": 7},
            )
            events = _events(audit)
        finally:
            audit.close()

        assert len(events) == 1
        event = events[0]
        assert event["event"] == "vault_event"
        assert event["event_id"] == event_id
        assert event["event_type"] == "vault.credential.deleted"
        assert event["severity"] == "info"
        assert event["details"] == {"credential_id": 7}
        assert event["timestamp"]
        assert "hostname" in event["host"]

    def test_log_file_named_by_day(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "logs")
        try:
            assert audit.log_file.parent == tmp_path / "logs"
            assert audit.log_file.name.startswith("audit_")
            assert audit.log_file.suffix == ".log"
        finally:
            audit.close()

    def test_appends(self, tmp_path):
        audit = AuditLogger(log_dir=tmp_path / "logs")
        try:
            audit.log_event(EventType.USER_LOGIN, EventSeverity.INFO, "first")
            audit.log_event(EventType.USER_LOGIN_FAILED, EventSeverity.ALERT, "second")
            events = _events(audit)
        finally:
            audit.close()

        assert [e["message"] for e in events] == ["first", "second"]
        assert events[1]["severity"] == "alert"


class TestGlobalLogger:

    def test_singleton_uses_settings_dir(self, tmp_path):
        audit = get_audit_logger()
        assert audit is get_audit_logger()
        assert audit.log_dir == tmp_path / "audit_logs"

    def test_log_security_event(self):
        event_id = log_security_event(
            EventType.VAULT_ERROR,
            EventSeverity.CRITICAL,
            "Store unavailable",
            details={"action": "list"},
        )
        events = _events(get_audit_logger())
        assert events[-1]["event_id"] == event_id
        assert events[-1]["severity"] == "critical"

    def test_api_lifespan_logs_start_and_stop(self):
        from fastapi.testclient import TestClient

        from pinvault.api.main import app

        with TestClient(app):
            pass

        types = [e["event_type"] for e in _events(get_audit_logger())]
        assert types == ["system.start", "system.stop"]
