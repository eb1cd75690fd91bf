# PinVault - Main Package
#
# Password vault: credentials are encrypted on the client with a
# PIN-derived secret and stored as opaque ciphertext behind a small API.

__version__ = "1.0.0"
__author__ = "PinVault Team"
__description__ = "Password vault with client-side credential encryption"

from .core import (
    EventType,
    EventSeverity,
    Settings,
    get_audit_logger,
    get_settings,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "Settings",
    "get_audit_logger",
    "get_settings",
]
