"""Shared request-model base and error helpers for the vault routers."""

import logging

from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict

from ..core import EventSeverity, EventType, get_audit_logger

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Request body accepting the client's camelCase aliases or field names."""

    model_config = ConfigDict(populate_by_name=True)


def store_failure(action: str, exc: Exception) -> HTTPException:
    """Audit an unexpected store error and build a generic 500 for the client."""
    get_audit_logger().log_event(
        event_type=EventType.VAULT_ERROR,
        severity=EventSeverity.CRITICAL,
        message=f"{action} failed: {type(exc).__name__}",
    )
    logger.error("%s failed: %s", action, exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action.lower()}",
    )
