#!/usr/bin/env python3
"""
Passphrase-based authenticated encryption for slot payloads.

Blob layout: salt (16 bytes) || nonce (12 bytes) || ciphertext+tag.

The key is derived per blob with PBKDF2-HMAC-SHA256 from the passphrase and
a fresh random salt, then used once with AES-256-GCM. The GCM tag covers the
ciphertext, so a wrong passphrase and a flipped bit both fail the same way:
with EncryptionError, never with altered plaintext.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from pipeboard.errors import EncryptionError

SALT_SIZE: int = 16
NONCE_SIZE: int = 12
KEY_SIZE: int = 32  # AES-256
TAG_SIZE: int = 16
ITERATIONS: int = 100_000


def derive_key(passphrase: str, salt: bytes) -> bytes:
    """
    Derive a 256-bit key from a passphrase.

    Args:
        passphrase: User passphrase.
        salt: Random salt stored alongside the ciphertext.

    Returns:
        32-byte symmetric key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt(data: bytes, passphrase: str) -> bytes:
    """
    Encrypt data with AES-256-GCM under a passphrase-derived key.

    Args:
        data: Plaintext bytes.
        passphrase: Non-empty passphrase.

    Returns:
        salt || nonce || ciphertext (with GCM tag appended).

    Raises:
        EncryptionError: If the passphrase is empty.
    """
    if not passphrase:
        raise EncryptionError("passphrase cannot be empty")

    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(passphrase, salt)
    ciphertext = AESGCM(key).encrypt(nonce, data, None)
    return salt + nonce + ciphertext


def decrypt(blob: bytes, passphrase: str) -> bytes:
    """
    Decrypt a blob produced by encrypt().

    Args:
        blob: salt || nonce || ciphertext.
        passphrase: Passphrase used at encryption time.

    Returns:
        The original plaintext.

    Raises:
        EncryptionError: On empty passphrase, truncated blob, wrong
            passphrase, or tampered ciphertext.
    """
    if not passphrase:
        raise EncryptionError("passphrase cannot be empty")
    if len(blob) < SALT_SIZE + NONCE_SIZE + TAG_SIZE:
        raise EncryptionError("ciphertext too short")

    salt = blob[:SALT_SIZE]
    nonce = blob[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    ciphertext = blob[SALT_SIZE + NONCE_SIZE:]

    key = derive_key(passphrase, salt)
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise EncryptionError("decryption failed (wrong passphrase?)") from e
