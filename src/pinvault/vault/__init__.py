# Vault Module - Credential encryption, storage and session control
#
# SecretCodec encrypts credentials with a key derived from the user's
# secret; CredentialStore keeps only ciphertext; VaultSession holds the
# secret for the lifetime of an unlocked session.

from .encryption import SecretCodec, PASSWORD_CHARSET
from .credential_store import CredentialStore, get_credential_store, set_credential_store
from .session import VaultSession, View, DecryptedCredential
from .exceptions import (
    VaultError,
    DecryptionError,
    MissingSecretError,
    SessionLockedError,
)

__all__ = [
    "SecretCodec",
    "PASSWORD_CHARSET",
    "CredentialStore",
    "get_credential_store",
    "set_credential_store",
    "VaultSession",
    "View",
    "DecryptedCredential",
    "VaultError",
    "DecryptionError",
    "MissingSecretError",
    "SessionLockedError",
]
