# Vault API - Credential endpoints
#
# CRUD over a user's credential records. `encryptedPassword` is the
# client-side SecretCodec output; the server stores and returns it as an
# opaque string and never sees plaintext.

import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field

from ..vault.credential_store import CredentialStore, get_credential_store
from ..vault.exceptions import UnknownUserError
from .common import CamelModel, store_failure

router = APIRouter(prefix="/api/passwords", tags=["passwords"])


# Request Models
class CredentialFields(CamelModel):
    platform: str = Field(..., min_length=1, max_length=200)
    account_name: Optional[str] = Field(None, alias="accountName")
    username: Optional[str] = None
    encrypted_password: str = Field(..., alias="encryptedPassword", min_length=1)
    notes: Optional[str] = None
    category: Optional[str] = None


class AddCredentialRequest(CredentialFields):
    user_id: int = Field(..., alias="userId")


class UpdateCredentialRequest(CredentialFields):
    # Sent by the client on edit; ownership never changes.
    user_id: Optional[int] = Field(None, alias="userId")


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Password not found")


# Endpoints

@router.get("")
def list_passwords(
    user_id: int = Query(..., alias="userId"),
    store: CredentialStore = Depends(get_credential_store),
):
    """List a user's records (ciphertext included), newest first."""
    try:
        return store.list_credentials(user_id)
    except sqlite3.Error as exc:
        raise store_failure("List passwords", exc)


@router.post("")
def add_password(
    request: AddCredentialRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """Save a new record."""
    try:
        credential_id = store.add_credential(
            user_id=request.user_id,
            platform=request.platform,
            account_name=request.account_name,
            username=request.username,
            encrypted_password=request.encrypted_password,
            notes=request.notes,
            category=request.category,
        )
    except UnknownUserError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except sqlite3.Error as exc:
        raise store_failure("Save password", exc)

    return {"success": True, "id": credential_id}


@router.get("/{credential_id}")
def get_password(
    credential_id: int,
    store: CredentialStore = Depends(get_credential_store),
):
    """Fetch one record."""
    try:
        record = store.get_credential(credential_id)
    except sqlite3.Error as exc:
        raise store_failure("Load password", exc)
    if record is None:
        raise _not_found()
    return record


@router.put("/{credential_id}")
def update_password(
    credential_id: int,
    request: UpdateCredentialRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """Replace a record's editable fields."""
    try:
        updated = store.update_credential(
            credential_id,
            platform=request.platform,
            account_name=request.account_name,
            username=request.username,
            encrypted_password=request.encrypted_password,
            notes=request.notes,
            category=request.category,
        )
    except sqlite3.Error as exc:
        raise store_failure("Update password", exc)

    if not updated:
        raise _not_found()
    return {"success": True}


@router.delete("/{credential_id}")
def delete_password(
    credential_id: int,
    store: CredentialStore = Depends(get_credential_store),
):
    """Delete a record."""
    try:
        deleted = store.delete_credential(credential_id)
    except sqlite3.Error as exc:
        raise store_failure("Delete password", exc)

    if not deleted:
        raise _not_found()
    return {"success": True}


@router.post("/{credential_id}/used")
def mark_password_used(
    credential_id: int,
    store: CredentialStore = Depends(get_credential_store),
):
    """Stamp `last_used` after the client revealed or copied a password."""
    try:
        touched = store.touch_credential(credential_id)
    except sqlite3.Error as exc:
        raise store_failure("Mark password used", exc)

    if not touched:
        raise _not_found()
    return {"success": True}
