# Core - Application Settings
#
# Settings are read from the process environment. A .env file in the
# working directory is loaded first (python-dotenv), real environment
# variables win over it.
#
#   PINVAULT_APP_SALT        salt appended to every secret before key derivation
#   PINVAULT_DB_PATH         SQLite file for users and credentials
#   PINVAULT_STRICT_DECRYPT  "false" returns "" on failed decryption instead of raising
#   PINVAULT_HOST / PINVAULT_PORT   API server bind address
#   PINVAULT_AUDIT_LOG_DIR   directory for the JSON audit log

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Salt compiled into the first deployment. Kept as the default so stores
# written by that deployment stay readable.
DEFAULT_APP_SALT = "your-super-secret-key"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """Runtime configuration for the vault server and codec."""

    app_salt: str = DEFAULT_APP_SALT
    db_path: Path = field(default_factory=lambda: Path("data/vault.db"))
    strict_decrypt: bool = True
    host: str = "127.0.0.1"
    port: int = 3000
    audit_log_dir: Path = field(default_factory=lambda: Path("./audit_logs"))

    @property
    def uses_default_salt(self) -> bool:
        return self.app_salt == DEFAULT_APP_SALT

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build Settings from the environment (and an optional .env file).

        Args:
            dotenv_path: Explicit .env file. None searches the working directory.

        Raises:
            ValueError: If PINVAULT_PORT is not an integer or the salt is empty.
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)

        app_salt = os.environ.get("PINVAULT_APP_SALT", DEFAULT_APP_SALT)
        if not app_salt:
            raise ValueError("PINVAULT_APP_SALT must not be empty")

        raw_port = os.environ.get("PINVAULT_PORT", "3000")
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"PINVAULT_PORT must be an integer, got {raw_port!r}")

        settings = cls(
            app_salt=app_salt,
            db_path=Path(os.environ.get("PINVAULT_DB_PATH", "data/vault.db")),
            strict_decrypt=_env_bool("PINVAULT_STRICT_DECRYPT", True),
            host=os.environ.get("PINVAULT_HOST", "127.0.0.1"),
            port=port,
            audit_log_dir=Path(os.environ.get("PINVAULT_AUDIT_LOG_DIR", "./audit_logs")),
        )

        if settings.uses_default_salt:
            logger.warning(
                "PINVAULT_APP_SALT is not set; using the built-in default salt. "
                "Set a per-deployment value for new installations."
            )
        return settings


# ── Singleton ────────────────────────────────────────────────────────

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide Settings."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace the singleton (for testing)."""
    global _settings
    _settings = settings
