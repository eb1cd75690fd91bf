"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class DecryptionError(VaultError):
    """Raised when a stored credential cannot be unlocked with the given secret"""

    def __init__(self, message: str = "Could not unlock this entry"):
        super().__init__(message)


class MissingSecretError(VaultError):
    """Raised when encryption or decryption is attempted without a secret"""
    pass


class UsernameTakenError(VaultError):
    """Raised when registering a username that already exists"""
    pass


class UnknownUserError(VaultError):
    """Raised when a record refers to a user that does not exist"""
    pass


class InvalidPinError(VaultError):
    """Raised when a PIN is not exactly six digits"""
    pass


class SessionLockedError(VaultError):
    """Raised when a vault operation needs an unlocked session"""
    pass


class AuthenticationError(VaultError):
    """Raised when the server rejects a login or PIN"""
    pass


class VaultRequestError(VaultError):
    """Raised when the vault API answers with an unexpected status"""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
