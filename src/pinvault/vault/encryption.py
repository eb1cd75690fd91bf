# Vault - Secret Codec
#
# User secret + app salt → DerivedKey (SHA-256, hex)
# Credential encryption (AES-256-GCM, random 96-bit nonce per call)
# Login/PIN digests (SHA-256, unsalted) and password generation
#
# The codec keeps no state besides its injected configuration and never
# stores, logs or returns the user secret.

import base64
import hashlib
import os
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import DecryptionError, MissingSecretError
from .legacy import decrypt_openssl, is_openssl_envelope

# Character set for generated passwords: lowercase, uppercase, digits, symbols
PASSWORD_CHARSET = (
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789"
    "!@#$%^&*()_+~`|}{[]:;?><,./-="
)

DEFAULT_PASSWORD_LENGTH = 16


class SecretCodec:
    """
    Encrypts and decrypts stored credentials with a user-held secret.

    Flow:
    1. Session supplies the UserSecret (passphrase or PIN-derived token)
    2. derive_key(): SHA-256(secret + app_salt) → 64 hex chars
    3. The 32 raw key bytes drive AES-256-GCM
    4. Output "v1:" + base64(nonce || ciphertext || tag)

    Decryption also accepts the legacy OpenSSL envelope written by the
    first deployment (see vault.legacy). A wrong secret or a damaged
    ciphertext raises DecryptionError when ``strict`` is True, and
    yields "" when it is False.
    """

    FORMAT_PREFIX = "v1:"
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
    TAG_LENGTH = 16

    def __init__(self, app_salt: str, strict: bool = True):
        """
        Args:
            app_salt: Per-deployment salt appended to every secret.
            strict: Raise DecryptionError on failed decryption instead of
                returning an empty string.
        """
        self.app_salt = app_salt
        self.strict = strict

    @classmethod
    def from_settings(cls, settings=None) -> "SecretCodec":
        """Build a codec from the application Settings."""
        if settings is None:
            from ..core.config import get_settings
            settings = get_settings()
        return cls(app_salt=settings.app_salt, strict=settings.strict_decrypt)

    # ------------------------------------------------------------------
    # Key derivation and digests
    # ------------------------------------------------------------------

    def derive_key(self, secret: str) -> str:
        """
        Derive the key material for *secret*.

        Deterministic for a given secret and app salt; total over all
        strings, including the empty string.

        Returns:
            SHA-256 hex digest of secret + app_salt
        """
        return hashlib.sha256((secret + self.app_salt).encode("utf-8")).hexdigest()

    @staticmethod
    def hash(text: str) -> str:
        """
        One-way digest used for login password and PIN comparison.

        Plain SHA-256 without salt or iterations, so the server can compare
        digests sent by existing clients.
        """
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str, secret: Optional[str]) -> str:
        """
        Encrypt a credential under *secret*.

        Args:
            plaintext: Credential to protect (may be empty)
            secret: The session's UserSecret

        Returns:
            Self-describing ciphertext string, safe to persist

        Raises:
            MissingSecretError: If no secret is available
        """
        self._require_secret(secret)
        key = bytes.fromhex(self.derive_key(secret))

        nonce = os.urandom(self.NONCE_LENGTH)
        ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)

        return self.FORMAT_PREFIX + base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str, secret: Optional[str]) -> str:
        """
        Decrypt a stored credential.

        Returns:
            The exact original plaintext, or "" in non-strict mode when the
            secret is wrong or the ciphertext is damaged

        Raises:
            MissingSecretError: If no secret is available
            DecryptionError: Wrong secret or malformed input (strict mode)
        """
        self._require_secret(secret)
        key = self.derive_key(secret)

        try:
            if isinstance(ciphertext, str) and ciphertext.startswith(self.FORMAT_PREFIX):
                return self._decrypt_v1(ciphertext[len(self.FORMAT_PREFIX):], key)
            if is_openssl_envelope(ciphertext):
                return decrypt_openssl(ciphertext, key)
            raise ValueError("Unrecognised ciphertext format")
        except (InvalidTag, ValueError):
            if self.strict:
                raise DecryptionError() from None
            return ""

    def _decrypt_v1(self, body: str, key_hex: str) -> str:
        raw = base64.b64decode(body.encode("ascii"), validate=True)
        if len(raw) < self.NONCE_LENGTH + self.TAG_LENGTH:
            raise ValueError("Ciphertext too short")
        nonce = raw[:self.NONCE_LENGTH]
        plaintext = AESGCM(bytes.fromhex(key_hex)).decrypt(nonce, raw[self.NONCE_LENGTH:], None)
        return plaintext.decode("utf-8")

    def is_legacy(self, ciphertext: str) -> bool:
        """True if *ciphertext* was written in the legacy OpenSSL format."""
        return is_openssl_envelope(ciphertext)

    def reencrypt(self, ciphertext: str, secret: Optional[str]) -> str:
        """
        Decrypt a ciphertext in any supported format and encrypt it again
        in the current format.

        Always strict: a ciphertext that cannot be read is never replaced.
        """
        self._require_secret(secret)
        strict_codec = self if self.strict else SecretCodec(self.app_salt, strict=True)
        return self.encrypt(strict_codec.decrypt(ciphertext, secret), secret)

    # ------------------------------------------------------------------
    # Password generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
        """
        Generate a random password.

        Each character is an independent uniform draw from PASSWORD_CHARSET
        using the `secrets` CSPRNG.
        """
        if length < 1:
            raise ValueError("Password length must be at least 1")
        return "".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))

    @staticmethod
    def _require_secret(secret: Optional[str]) -> None:
        if not secret:
            raise MissingSecretError("An unlocked session secret is required")
