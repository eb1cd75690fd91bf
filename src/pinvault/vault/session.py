# Vault - Session Controller
#
# Client-side counterpart of the API. Holds the unlocked UserSecret in
# memory, encrypts every credential before it is sent and decrypts it
# after it comes back, and tracks which screen the user is on:
#
#   SPLASH → LOGIN → PIN → DASHBOARD ⇄ SETTINGS, LOCKED after lock()
#   and back to LOGIN after forget_device()
#
# The secret never leaves this object: the server only receives digests
# (login, PIN) and ciphertext (credentials).

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .encryption import DEFAULT_PASSWORD_LENGTH, SecretCodec
from .exceptions import (
    AuthenticationError,
    DecryptionError,
    InvalidPinError,
    SessionLockedError,
    UsernameTakenError,
    VaultRequestError,
)

logger = logging.getLogger(__name__)

# ASCII digits only, matched with fullmatch()
PIN_PATTERN = re.compile(r"[0-9]{6}")

# Session secret after a PIN unlock is "<pin>" + this suffix
PIN_SECRET_SUFFIX = "_vault_key"

DEFAULT_CATEGORY = "Social"

# Platforms shown on the dashboard even before anything is saved for them
DEFAULT_PLATFORMS = (
    "Facebook", "Instagram", "Twitter", "TikTok", "YouTube",
    "Gmail", "LinkedIn", "Spotify", "Netflix", "Amazon",
    "Apple", "Microsoft", "GitHub", "Discord", "Slack",
    "Pinterest", "Reddit", "Snapchat", "WhatsApp", "Telegram",
    "PayPal", "Binance", "Coinbase", "Dropbox", "Zoom",
)


class View(str, Enum):
    """Screens of the vault client."""
    SPLASH = "splash"
    LOGIN = "login"
    PIN = "pin"
    DASHBOARD = "dashboard"
    SETTINGS = "settings"
    LOCKED = "locked"


@dataclass
class DecryptedCredential:
    """A credential record with its password decrypted for display.

    `locked` is True (and `password` None) when the stored ciphertext could
    not be unlocked with the current session secret.
    """
    id: int
    platform: str
    account_name: Optional[str]
    username: Optional[str]
    password: Optional[str]
    notes: Optional[str]
    category: Optional[str]
    created_at: Optional[str]
    last_used: Optional[str] = None
    locked: bool = False


class VaultSession:
    """
    Drives the vault API on behalf of one user.

    Args:
        client: httpx.Client whose base_url points at the vault API
        codec: SecretCodec configured with the deployment's app salt
    """

    def __init__(self, client: httpx.Client, codec: SecretCodec):
        self.client = client
        self.codec = codec

        self.view = View.SPLASH
        self.user: Optional[Dict[str, Any]] = None
        self.has_pin = False
        self._secret: Optional[str] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_unlocked(self) -> bool:
        return self._secret is not None and self.user is not None

    def start(self, remembered_user: Optional[Dict[str, Any]] = None) -> View:
        """
        Leave the splash screen.

        A user remembered on this device (``{"user": {...}, "hasPin": bool}``)
        goes straight to the PIN screen; everyone else to login.
        """
        if remembered_user and remembered_user.get("user"):
            self.user = remembered_user["user"]
            self.has_pin = bool(remembered_user.get("hasPin"))
            self.view = View.PIN
        else:
            self.view = View.LOGIN
        return self.view

    def remembered_user(self) -> Optional[Dict[str, Any]]:
        """What the client may persist locally to skip login next time."""
        if self.user is None or not self.has_pin:
            return None
        return {"user": self.user, "hasPin": True}

    def lock(self) -> None:
        """Forget the secret and user; the next step is a fresh login."""
        self._secret = None
        self.user = None
        self.has_pin = False
        self.view = View.LOCKED

    def forget_device(self) -> View:
        """Sign out and drop the remembered user; the next step is login."""
        self._secret = None
        self.user = None
        self.has_pin = False
        self.view = View.LOGIN
        return self.view

    def open_settings(self) -> View:
        self._require_unlocked()
        self.view = View.SETTINGS
        return self.view

    def close_settings(self) -> View:
        self._require_unlocked()
        self.view = View.DASHBOARD
        return self.view

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def register(self, username: str, password: str) -> Dict[str, Any]:
        """Create an account, then continue to PIN setup."""
        data = self._post(
            "/api/auth/register",
            {"username": username, "masterPasswordHash": self.codec.hash(password)},
        )
        self.user = data["user"]
        self.has_pin = False
        self.view = View.PIN
        return self.user

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """Log in with the master password, then continue to the PIN screen."""
        data = self._post(
            "/api/auth/login",
            {"username": username, "masterPasswordHash": self.codec.hash(password)},
        )
        self.user = data["user"]
        self.has_pin = bool(data.get("hasPin"))
        self.view = View.PIN
        return self.user

    def setup_pin(self, pin: str) -> None:
        """Set the unlock PIN for the logged-in user and open the vault."""
        self._validate_pin(pin)
        if self.user is None:
            raise SessionLockedError("Log in before setting a PIN")

        self._post(
            "/api/auth/setup-pin",
            {"userId": self.user["id"], "pinHash": self.codec.hash(pin)},
        )
        self.has_pin = True
        self._unlock(pin)

    def unlock_with_pin(self, pin: str) -> Dict[str, Any]:
        """Unlock the vault with the PIN."""
        self._validate_pin(pin)
        payload: Dict[str, Any] = {"pinHash": self.codec.hash(pin)}
        if self.user is not None:
            payload["userId"] = self.user["id"]

        data = self._post("/api/auth/login-pin", payload)
        self.user = data["user"]
        self.has_pin = True
        self._unlock(pin)
        return self.user

    def _unlock(self, pin: str) -> None:
        self._secret = pin + PIN_SECRET_SUFFIX
        self.view = View.DASHBOARD
        logger.debug("Vault unlocked for user %s", self.user["id"])

    @staticmethod
    def _validate_pin(pin: str) -> None:
        if not isinstance(pin, str) or not PIN_PATTERN.fullmatch(pin):
            raise InvalidPinError("PIN must be exactly 6 digits")

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def list_credentials(self) -> List[DecryptedCredential]:
        """Fetch and decrypt the user's credentials, newest first."""
        secret = self._require_unlocked()
        records = self._get("/api/passwords", params={"userId": self.user["id"]})
        return [self._decrypt_record(record, secret) for record in records]

    def save_credential(
        self,
        platform: str,
        password: str,
        account_name: Optional[str] = None,
        username: Optional[str] = None,
        notes: Optional[str] = None,
        category: str = DEFAULT_CATEGORY,
        credential_id: Optional[int] = None,
    ) -> int:
        """
        Encrypt *password* and save it.

        Creates a record, or replaces an existing one when *credential_id*
        is given. Returns the record id.
        """
        secret = self._require_unlocked()
        payload = {
            "userId": self.user["id"],
            "platform": platform,
            "accountName": account_name,
            "username": username,
            "encryptedPassword": self.codec.encrypt(password, secret),
            "notes": notes,
            "category": category,
        }

        if credential_id is None:
            return self._post("/api/passwords", payload)["id"]

        self._request("PUT", f"/api/passwords/{credential_id}", json=payload)
        return credential_id

    def reveal(self, credential_id: int) -> str:
        """
        Decrypt one credential's password and stamp it as used.

        Raises:
            DecryptionError: The entry cannot be unlocked with this session
        """
        secret = self._require_unlocked()
        record = self._get(f"/api/passwords/{credential_id}")
        password = self.codec.decrypt(record["encrypted_password"], secret)
        self._post(f"/api/passwords/{credential_id}/used", None)
        return password

    def delete_credential(self, credential_id: int) -> None:
        self._require_unlocked()
        self._request("DELETE", f"/api/passwords/{credential_id}")

    def upgrade_legacy_credentials(self) -> int:
        """
        Re-encrypt records still stored in the legacy envelope format.

        Entries that cannot be unlocked are left untouched. Returns the
        number of records rewritten.
        """
        secret = self._require_unlocked()
        records = self._get("/api/passwords", params={"userId": self.user["id"]})

        upgraded = 0
        for record in records:
            if not self.codec.is_legacy(record["encrypted_password"]):
                continue
            try:
                ciphertext = self.codec.reencrypt(record["encrypted_password"], secret)
            except DecryptionError:
                logger.warning("Skipping legacy credential %s: cannot unlock", record["id"])
                continue
            self._request("PUT", f"/api/passwords/{record['id']}", json={
                "platform": record["platform"],
                "accountName": record["account_name"],
                "username": record["username"],
                "encryptedPassword": ciphertext,
                "notes": record["notes"],
                "category": record["category"],
            })
            upgraded += 1
        return upgraded

    def generate_password(self, length: int = DEFAULT_PASSWORD_LENGTH) -> str:
        return self.codec.generate_password(length)

    def _decrypt_record(self, record: Dict[str, Any], secret: str) -> DecryptedCredential:
        try:
            password = self.codec.decrypt(record["encrypted_password"], secret)
            locked = False
        except DecryptionError:
            password, locked = None, True

        return DecryptedCredential(
            id=record["id"],
            platform=record["platform"],
            account_name=record.get("account_name"),
            username=record.get("username"),
            password=password,
            notes=record.get("notes"),
            category=record.get("category"),
            created_at=record.get("created_at"),
            last_used=record.get("last_used"),
            locked=locked,
        )

    def _require_unlocked(self) -> str:
        if not self.is_unlocked:
            raise SessionLockedError("Vault is locked. Unlock with your PIN first.")
        return self._secret

    # ------------------------------------------------------------------
    # Dashboard helpers
    # ------------------------------------------------------------------

    @staticmethod
    def group_by_platform(
        credentials: Iterable[DecryptedCredential],
    ) -> Dict[str, List[DecryptedCredential]]:
        """Group credentials by platform, default platforms first."""
        groups: Dict[str, List[DecryptedCredential]] = {p: [] for p in DEFAULT_PLATFORMS}
        for credential in credentials:
            groups.setdefault(credential.platform, []).append(credential)
        return groups

    @staticmethod
    def filter_platforms(groups: Dict[str, Any], query: str) -> List[str]:
        """Platform names containing *query* (case-insensitive)."""
        needle = (query or "").lower()
        return [platform for platform in groups if needle in (platform or "").lower()]

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", url, params=params)

    def _post(self, url: str, payload: Optional[Dict[str, Any]]) -> Any:
        return self._request("POST", url, json=payload)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        response = self.client.request(method, url, **kwargs)
        if response.status_code == 401:
            raise AuthenticationError(self._detail(response))
        if response.status_code == 409:
            raise UsernameTakenError(self._detail(response))
        if response.is_error:
            raise VaultRequestError(response.status_code, self._detail(response))
        return response.json()

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase
        if isinstance(body, dict) and "detail" in body:
            return str(body["detail"])
        return response.reason_phrase
