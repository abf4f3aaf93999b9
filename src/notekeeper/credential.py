"""Bearer credential decoding for notekeeper.

The service issues JWTs. The client only inspects their structure to read
the ``exp`` claim so it can skip a round-trip for an obviously expired
token. The signature is never verified: the server remains the only
authority on whether a token is accepted.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    """An opaque bearer token plus its decoded expiry, if any."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: Optional[datetime] = None

    @classmethod
    def from_token(cls, token: str) -> "Credential":
        return cls(token=token, expires_at=decode_expiry(token))

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at > now


def decode_expiry(token: str) -> Optional[datetime]:
    """Return the ``exp`` instant of *token*, or ``None`` if it cannot be read."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def is_valid(token: Optional[str], now: Optional[datetime] = None) -> bool:
    """True if *token* is well-formed and not yet expired. Never raises."""
    if not token:
        return False
    return Credential.from_token(token).is_valid(now)


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)
