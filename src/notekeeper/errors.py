"""Exception hierarchy for notekeeper."""

from __future__ import annotations

from typing import Optional


class NotekeeperError(Exception):
    """Base class for every error the client raises."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(NotekeeperError):
    """Login was rejected or the identity could not be confirmed."""


class RegistrationError(NotekeeperError):
    """Account creation was rejected (e.g. duplicate username)."""


class NotFoundError(NotekeeperError):
    """The note is absent, not owned by the caller, or not public."""


class ValidationError(NotekeeperError):
    """Input was refused before or by the server."""


class TransportError(NotekeeperError):
    """Network failure, timeout, 5xx or any other unclassified response."""


class UnauthorizedError(TransportError):
    """The server rejected the credential (HTTP 401). The session is already closed."""
