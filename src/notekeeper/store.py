"""Encrypted credential file I/O.

Binary file format
------------------
Offset  Length  Content
0       4       Magic bytes b"NKCR"
4       1       Format version (uint8)
5       2       Salt length in bytes (big-endian uint16)
7       N       Salt
7+N     …       Fernet ciphertext (JSON document {"token": ...})

Without a store secret the Fernet key lives in a sibling ``.key`` file and
the salt is unused.
"""

from __future__ import annotations

import json
import logging
import os
import struct
from pathlib import Path
from typing import Optional

from .crypto import key_for_secret, new_salt, random_key, seal, unseal

logger = logging.getLogger(__name__)

_MAGIC = b"NKCR"
_FORMAT_VERSION = 1
_TOKEN_KEY = "token"


class BadStoreError(Exception):
    """Raised when the credential file is unreadable or corrupt."""


class CredentialStore:
    """Persists a single bearer token across process restarts."""

    def __init__(self, path: Path, secret: Optional[str] = None) -> None:
        self.path = path
        self.secret = secret

    @property
    def key_path(self) -> Path:
        return self.path.with_suffix(".key")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[str]:
        """Return the stored token, or ``None`` when nothing is stored."""
        if not self.exists():
            return None
        salt, ciphertext = _parse(self.path.read_bytes())
        try:
            plaintext = unseal(ciphertext, self._key(salt, create=False))
        except ValueError as exc:
            raise BadStoreError(str(exc)) from exc
        try:
            doc = json.loads(plaintext)
        except ValueError as exc:
            raise BadStoreError("Credential store payload is not JSON.") from exc
        token = doc.get(_TOKEN_KEY) if isinstance(doc, dict) else None
        if not isinstance(token, str) or not token:
            raise BadStoreError("Credential store holds no token.")
        return token

    def save(self, token: str) -> None:
        """Encrypt and persist *token*, replacing any previous one.

        Raises :class:`BadStoreError` when the key file holds no usable key.
        """
        salt = new_salt()
        plaintext = json.dumps({_TOKEN_KEY: token}).encode("utf-8")
        try:
            ciphertext = seal(plaintext, self._key(salt, create=True))
        except ValueError as exc:
            raise BadStoreError(f"{exc} (key file {self.key_path})") from exc

        header = (
            _MAGIC
            + struct.pack(">B", _FORMAT_VERSION)
            + struct.pack(">H", len(salt))
            + salt
        )
        _atomic_write(self.path, header + ciphertext)
        logger.debug("credential stored at %s", self.path)

    def clear(self) -> None:
        """Remove the stored token. Safe to call when nothing is stored."""
        self.path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _key(self, salt: bytes, *, create: bool) -> bytes:
        if self.secret:
            return key_for_secret(self.secret, salt)
        if self.key_path.exists():
            return self.key_path.read_bytes().strip()
        if not create:
            raise BadStoreError(f"Key file {self.key_path} is missing.")
        key = random_key()
        _atomic_write(self.key_path, key)
        return key


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_bytes(data)
    os.chmod(tmp, 0o600)
    tmp.replace(path)


def _parse(data: bytes) -> tuple[bytes, bytes]:
    """Return *(salt, ciphertext)* from raw store bytes."""
    if len(data) < 7 or not data.startswith(_MAGIC):
        raise BadStoreError("Not a valid notekeeper credential file.")

    offset = len(_MAGIC)
    (fmt_ver,) = struct.unpack_from(">B", data, offset)
    offset += 1

    if fmt_ver != _FORMAT_VERSION:
        raise BadStoreError(f"Unsupported credential file version: {fmt_ver}.")

    (salt_len,) = struct.unpack_from(">H", data, offset)
    offset += 2

    salt = data[offset : offset + salt_len]
    offset += salt_len
    ciphertext = data[offset:]

    if not salt or not ciphertext:
        raise BadStoreError("Credential file is truncated or corrupt.")

    return salt, ciphertext
