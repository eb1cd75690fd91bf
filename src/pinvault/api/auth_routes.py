# Vault API - Account and PIN endpoints
#
# - Register / log in with a master-password digest
# - Set an unlock PIN, unlock with a PIN digest
#
# Clients send SHA-256 digests (SecretCodec.hash), never the password or
# PIN itself. Request bodies keep the camelCase field names the browser
# client sends.

import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field

from ..core import EventSeverity, EventType, get_audit_logger
from ..vault.credential_store import CredentialStore, get_credential_store
from ..vault.exceptions import UsernameTakenError
from .common import CamelModel, store_failure

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request Models
class CredentialsRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=200)
    master_password_hash: str = Field(..., alias="masterPasswordHash", min_length=1)


class PinLoginRequest(CamelModel):
    pin_hash: str = Field(..., alias="pinHash", min_length=1)
    user_id: Optional[int] = Field(None, alias="userId")


class SetupPinRequest(CamelModel):
    user_id: int = Field(..., alias="userId")
    pin_hash: str = Field(..., alias="pinHash", min_length=1)


# Endpoints

@router.post("/register")
def register(
    request: CredentialsRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """Create an account. 409 if the username is taken."""
    try:
        user = store.create_user(request.username, request.master_password_hash)
    except UsernameTakenError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except sqlite3.Error as exc:
        raise store_failure("Create user", exc)

    return {"success": True, "user": user}


@router.post("/login")
def login(
    request: CredentialsRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Log in with username + master-password digest.

    `hasPin` tells the client whether to show PIN setup or PIN unlock next.
    """
    try:
        user = store.authenticate(request.username, request.master_password_hash)
    except sqlite3.Error as exc:
        raise store_failure("Log in", exc)
    audit = get_audit_logger()

    if user is None:
        audit.log_event(
            event_type=EventType.USER_LOGIN_FAILED,
            severity=EventSeverity.ALERT,
            message=f"Login failed for {request.username}",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    audit.log_event(
        event_type=EventType.USER_LOGIN,
        severity=EventSeverity.INFO,
        message=f"User logged in: {user['username']}",
        details={"user_id": user["id"]},
    )
    return {
        "success": True,
        "user": {"id": user["id"], "username": user["username"]},
        "hasPin": user["has_pin"],
    }


@router.post("/login-pin")
def login_pin(
    request: PinLoginRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Unlock with a PIN digest.

    When `userId` is given (the user remembered on this device) only that
    account is matched; otherwise the first account with this PIN wins.
    """
    try:
        user = store.find_user_by_pin(request.pin_hash, user_id=request.user_id)
    except sqlite3.Error as exc:
        raise store_failure("Unlock vault", exc)
    audit = get_audit_logger()

    if user is None:
        audit.log_event(
            event_type=EventType.PIN_LOGIN_FAILED,
            severity=EventSeverity.ALERT,
            message="PIN unlock failed",
            details={"user_id": request.user_id},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid PIN")

    audit.log_event(
        event_type=EventType.PIN_LOGIN,
        severity=EventSeverity.INFO,
        message=f"PIN unlock: {user['username']}",
        details={"user_id": user["id"]},
    )
    return {"success": True, "user": user}


@router.post("/setup-pin")
def setup_pin(
    request: SetupPinRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """Store (or replace) the user's PIN digest."""
    try:
        updated = store.set_pin(request.user_id, request.pin_hash)
    except sqlite3.Error as exc:
        raise store_failure("Set PIN", exc)

    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {"success": True}
