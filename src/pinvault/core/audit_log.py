# Core - Audit Logging
#
# Append-only JSON audit log for security-relevant vault events:
# registrations, logins, PIN unlocks and every credential write/access.
#
# Never pass secrets, PINs, digests or ciphertexts to log_event(); only
# identifiers (user id, credential id, platform) belong in `details`.

import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of vault events that can be logged."""

    # Accounts
    USER_REGISTERED = "user.registered"
    USER_LOGIN = "user.login"
    USER_LOGIN_FAILED = "user.login.failed"
    PIN_SET = "user.pin.set"
    PIN_LOGIN = "user.pin.login"
    PIN_LOGIN_FAILED = "user.pin.login.failed"

    # Credentials
    CREDENTIAL_ADDED = "vault.credential.added"
    CREDENTIAL_UPDATED = "vault.credential.updated"
    CREDENTIAL_DELETED = "vault.credential.deleted"
    CREDENTIAL_ACCESSED = "vault.credential.accessed"
    VAULT_ERROR = "vault.error"

    # System
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: normal activity
    - ALERT: failed authentication, something a user should notice
    - CRITICAL: the vault could not complete an operation
    """
    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Each event is one JSON line (structlog JSONRenderer) written to
    ``<log_dir>/audit_<YYYY-MM-DD>.log`` and carries an event id,
    UTC timestamp, severity and host context.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self.log_file = self._setup_file_handler()
        self.logger = structlog.get_logger("pinvault.audit")

    def _setup_file_handler(self) -> Path:
        """Attach a daily file handler to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))  # structlog formats

        audit_logger = logging.getLogger("pinvault.audit")
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        self._file_handler = file_handler
        return log_file

    def close(self) -> None:
        """Detach and close the file handler."""
        audit_logger = logging.getLogger("pinvault.audit")
        audit_logger.removeHandler(self._file_handler)
        self._file_handler.close()

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log a vault event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Identifiers related to the event (never secrets)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        self.logger.info(
            "vault_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            details=details or {},
            host=self._host_context(),
        )
        return event_id

    @staticmethod
    def _host_context() -> Dict[str, Any]:
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from .config import get_settings
        _audit_logger = AuditLogger(get_settings().audit_log_dir)
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging vault events.

    Usage:
        log_security_event(
            EventType.CREDENTIAL_DELETED,
            EventSeverity.INFO,
            "Credential deleted",
            details={"credential_id": 7}
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
