"""Sealing of the stored bearer token.

A token at rest is a Fernet blob. The key is either random, kept in a key
file beside the store, or stretched from ``NOTEKEEPER_STORE_SECRET`` with
PBKDF2-HMAC-SHA256 over a per-write salt.
"""

from __future__ import annotations

import base64
import os

from cryptography.exceptions import InvalidSignature
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_BYTES = 32
KDF_ROUNDS = 600_000


def new_salt() -> bytes:
    return os.urandom(SALT_BYTES)


def random_key() -> bytes:
    """A fresh key for stores without a configured secret."""
    return Fernet.generate_key()


def key_for_secret(secret: str, salt: bytes) -> bytes:
    stretched = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ROUNDS,
    ).derive(secret.encode("utf-8"))
    return base64.urlsafe_b64encode(stretched)


def _fernet(key: bytes) -> Fernet:
    try:
        return Fernet(key)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Unusable store key: {exc}") from exc


def seal(payload: bytes, key: bytes) -> bytes:
    """Encrypt *payload*; raises :class:`ValueError` if *key* is not a Fernet key."""
    return _fernet(key).encrypt(payload)


def unseal(blob: bytes, key: bytes) -> bytes:
    """Decrypt *blob*; any failure surfaces as :class:`ValueError`."""
    try:
        return _fernet(key).decrypt(blob)
    except (InvalidToken, InvalidSignature) as exc:
        raise ValueError("Cannot unseal credential: wrong key or corrupted store.") from exc
