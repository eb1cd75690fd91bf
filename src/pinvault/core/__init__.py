# Core Module - Shared Utilities
#
# Shared functionality for the vault server and client:
# - Configuration
# - Audit logging
# - SQLite connection helper

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    log_security_event,
)
from .config import Settings, get_settings, set_settings

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    "set_settings",
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "log_security_event",
]
