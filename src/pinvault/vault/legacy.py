"""Legacy passphrase ciphertext format (OpenSSL ``Salted__`` envelope).

The first PinVault deployment encrypted credentials in the browser with a
passphrase-based AES call that emits the classic OpenSSL envelope:

    base64( b"Salted__" || salt(8) || AES-256-CBC(PKCS7(plaintext)) )

with key and IV derived from the passphrase and salt by EVP_BytesToKey
(MD5, one iteration). The passphrase handed to that call was the hex
DerivedKey, so records written by it are readable by passing
``SecretCodec.derive_key(secret)`` here.

New records are never written in this format; ``encrypt_openssl`` exists
to produce fixtures and to round-trip exports.
"""

import base64
import os
from typing import Optional, Tuple

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

MAGIC = b"Salted__"
SALT_LENGTH = 8
KEY_LENGTH = 32  # AES-256
IV_LENGTH = 16
BLOCK_SIZE_BITS = 128

# base64(b"Salted__") always starts with these characters
_ENVELOPE_PREFIX = "U2FsdGVkX1"


def evp_bytes_to_key(
    passphrase: bytes,
    salt: bytes,
    key_len: int = KEY_LENGTH,
    iv_len: int = IV_LENGTH,
) -> Tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and a single iteration.

    Returns:
        (key, iv)
    """
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + passphrase + salt)
        block = digest.finalize()
        derived += block
    return derived[:key_len], derived[key_len:key_len + iv_len]


def is_openssl_envelope(ciphertext: str) -> bool:
    """True if *ciphertext* looks like a base64 ``Salted__`` envelope."""
    return isinstance(ciphertext, str) and ciphertext.startswith(_ENVELOPE_PREFIX)


def encrypt_openssl(plaintext: str, passphrase: str, salt: Optional[bytes] = None) -> str:
    """Encrypt *plaintext* into an OpenSSL-compatible envelope."""
    if salt is None:
        salt = os.urandom(SALT_LENGTH)
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be {SALT_LENGTH} bytes, got {len(salt)}")

    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    body = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(MAGIC + salt + body).decode("ascii")


def decrypt_openssl(ciphertext: str, passphrase: str) -> str:
    """Decrypt an OpenSSL envelope produced by :func:`encrypt_openssl`.

    Raises:
        ValueError: Malformed envelope, wrong passphrase (bad padding) or
            plaintext that is not valid UTF-8.
    """
    raw = base64.b64decode(ciphertext.encode("ascii"), validate=True)
    header = len(MAGIC) + SALT_LENGTH
    if len(raw) < header + IV_LENGTH or not raw.startswith(MAGIC):
        raise ValueError("Not an OpenSSL salted envelope")

    salt = raw[len(MAGIC):header]
    body = raw[header:]
    if len(body) % IV_LENGTH:
        raise ValueError("Envelope body is not a whole number of AES blocks")

    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(body) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
    plaintext = unpadder.update(padded) + unpadder.finalize()
    return plaintext.decode("utf-8")
