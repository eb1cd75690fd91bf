# Vault - Credential Store
#
# SQLite persistence for users and their encrypted credentials.
# The store only ever receives ciphertext produced by SecretCodec; it has
# no key material and cannot read what it holds.

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger
from ..core.db import apply_schema, connect as db_connect
from .exceptions import UnknownUserError, UsernameTakenError

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        master_password_hash TEXT NOT NULL,
        pin_hash TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS passwords (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        platform TEXT NOT NULL,
        account_name TEXT,
        username TEXT,
        encrypted_password TEXT NOT NULL,
        notes TEXT,
        category TEXT,
        last_used TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_passwords_user ON passwords(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_users_pin ON users(pin_hash)",
)

CREDENTIAL_COLUMNS = (
    "id", "user_id", "platform", "account_name", "username",
    "encrypted_password", "notes", "category", "last_used", "created_at",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CredentialStore:
    """SQLite store for vault users and encrypted credential records.

    Args:
        db_path: Path to the SQLite file. Defaults to Settings.db_path.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        if db_path is None:
            from ..core.config import get_settings
            db_path = get_settings().db_path
        self.db_path = Path(db_path)
        apply_schema(self.db_path, SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = db_connect(self.db_path, row_factory=True)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    # ── Users ───────────────────────────────────────────────────────

    def create_user(self, username: str, master_password_hash: str) -> Dict[str, Any]:
        """Create a user and return ``{id, username}``.

        Raises:
            UsernameTakenError: If *username* is already registered.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (username, master_password_hash, created_at) "
                    "VALUES (?, ?, ?)",
                    (username, master_password_hash, _now()),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError:
            raise UsernameTakenError("Username already exists") from None

        get_audit_logger().log_event(
            event_type=EventType.USER_REGISTERED,
            severity=EventSeverity.INFO,
            message=f"User registered: {username}",
            details={"user_id": user_id},
        )
        return {"id": user_id, "username": username}

    def authenticate(self, username: str, master_password_hash: str) -> Optional[Dict[str, Any]]:
        """Return ``{id, username, has_pin}`` when the digest matches, else None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, pin_hash FROM users "
                "WHERE username = ? AND master_password_hash = ?",
                (username, master_password_hash),
            ).fetchone()
        if row is None:
            return None
        return {"id": row["id"], "username": row["username"], "has_pin": bool(row["pin_hash"])}

    def find_user_by_pin(self, pin_hash: str, user_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Find the first user whose PIN digest matches.

        Args:
            pin_hash: Digest of the entered PIN.
            user_id: Restrict the match to this user (the device's last user).
        """
        query = "SELECT id, username FROM users WHERE pin_hash = ?"
        params: tuple = (pin_hash,)
        if user_id is not None:
            query += " AND id = ?"
            params += (user_id,)
        query += " ORDER BY id LIMIT 1"

        with self._connect() as conn:
            row = conn.execute(query, params).fetchone()
        return dict(row) if row else None

    def set_pin(self, user_id: int, pin_hash: str) -> bool:
        """Store a PIN digest. Returns False if the user does not exist."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET pin_hash = ? WHERE id = ?", (pin_hash, user_id)
            )
        if cursor.rowcount == 0:
            return False

        get_audit_logger().log_event(
            event_type=EventType.PIN_SET,
            severity=EventSeverity.INFO,
            message="Unlock PIN set",
            details={"user_id": user_id},
        )
        return True

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Return ``{id, username, has_pin, created_at}`` or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, pin_hash, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return {
            "id": row["id"],
            "username": row["username"],
            "has_pin": bool(row["pin_hash"]),
            "created_at": row["created_at"],
        }

    # ── Credentials ─────────────────────────────────────────────────

    def list_credentials(self, user_id: int) -> List[Dict[str, Any]]:
        """Return a user's credential records, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM passwords WHERE user_id = ? "
                "ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_dict(r) for r in rows]

    def get_credential(self, credential_id: int) -> Optional[Dict[str, Any]]:
        """Return a single credential record or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM passwords WHERE id = ?", (credential_id,)
            ).fetchone()
        return self._row_to_dict(row) if row else None

    def add_credential(
        self,
        user_id: int,
        platform: str,
        account_name: Optional[str],
        username: Optional[str],
        encrypted_password: str,
        notes: Optional[str] = None,
        category: Optional[str] = None,
    ) -> int:
        """Insert a credential record and return its id.

        Raises:
            UnknownUserError: If *user_id* does not exist.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """INSERT INTO passwords
                       (user_id, platform, account_name, username,
                        encrypted_password, notes, category, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (user_id, platform, account_name, username,
                     encrypted_password, notes, category, _now()),
                )
                credential_id = cursor.lastrowid
        except sqlite3.IntegrityError:
            raise UnknownUserError(f"Unknown user: {user_id}") from None

        get_audit_logger().log_event(
            event_type=EventType.CREDENTIAL_ADDED,
            severity=EventSeverity.INFO,
            message=f"Credential added: {platform}",
            details={"credential_id": credential_id, "user_id": user_id, "category": category},
        )
        return credential_id

    def update_credential(
        self,
        credential_id: int,
        platform: str,
        account_name: Optional[str],
        username: Optional[str],
        encrypted_password: str,
        notes: Optional[str] = None,
        category: Optional[str] = None,
    ) -> bool:
        """Replace the editable fields of a record.

        id, user_id and created_at are never changed. Returns False when
        the record does not exist.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE passwords
                   SET platform = ?, account_name = ?, username = ?,
                       encrypted_password = ?, notes = ?, category = ?
                   WHERE id = ?""",
                (platform, account_name, username, encrypted_password,
                 notes, category, credential_id),
            )
        if cursor.rowcount == 0:
            return False

        get_audit_logger().log_event(
            event_type=EventType.CREDENTIAL_UPDATED,
            severity=EventSeverity.INFO,
            message=f"Credential updated: {platform}",
            details={"credential_id": credential_id},
        )
        return True

    def delete_credential(self, credential_id: int) -> bool:
        """Delete a record. Returns True if a row was removed."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM passwords WHERE id = ?", (credential_id,)
            )
        if cursor.rowcount == 0:
            return False

        get_audit_logger().log_event(
            event_type=EventType.CREDENTIAL_DELETED,
            severity=EventSeverity.INFO,
            message="Credential deleted",
            details={"credential_id": credential_id},
        )
        return True

    def touch_credential(self, credential_id: int) -> bool:
        """Record that a credential was just revealed or copied."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE passwords SET last_used = ? WHERE id = ?",
                (_now(), credential_id),
            )
        if cursor.rowcount == 0:
            return False

        get_audit_logger().log_event(
            event_type=EventType.CREDENTIAL_ACCESSED,
            severity=EventSeverity.INFO,
            message="Credential accessed",
            details={"credential_id": credential_id},
        )
        return True

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
        return {column: row[column] for column in CREDENTIAL_COLUMNS}


# ── Singleton ────────────────────────────────────────────────────────

_store: Optional[CredentialStore] = None


def get_credential_store() -> CredentialStore:
    """Get or create the process-wide CredentialStore."""
    global _store
    if _store is None:
        _store = CredentialStore()
    return _store


def set_credential_store(store: Optional[CredentialStore]) -> None:
    """Replace the singleton (for testing)."""
    global _store
    _store = store
