"""Domain models for notekeeper."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from .errors import TransportError

M = TypeVar("M", bound=BaseModel)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class User(BaseModel):
    """Identity returned by ``/auth/me``."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str


class Session(BaseModel):
    """Snapshot of the session; derived, never persisted."""

    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.UNINITIALIZED
    user: Optional[User] = None
    loading: bool = False

    @property
    def authenticated(self) -> bool:
        return self.user is not None


class Note(BaseModel):
    """A note owned by ``owner_id``.

    Timestamps are kept exactly as the server sent them.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    is_public: bool = False
    owner_id: int

    @property
    def edited(self) -> bool:
        """True once the note has been changed after creation."""
        return self.updated_at != self.created_at


class PublicNote(Note):
    """A public note as seen by anyone, annotated with its author."""

    is_public: bool = True
    owner_username: str = ""


class ShareResult(BaseModel):
    """Outcome of a visibility toggle."""

    note_id: int
    is_public: bool
    share_url: Optional[str] = None
    link: Optional[str] = None


def parse(model: type[M], data: Any) -> M:
    """Validate a response body into *model*; malformed bodies are transport errors."""
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise TransportError(f"Malformed {model.__name__} in response: {exc}") from exc


def parse_list(model: type[M], data: Any) -> list[M]:
    if not isinstance(data, list):
        raise TransportError(f"Expected a list of {model.__name__}, got {type(data).__name__}")
    return [parse(model, item) for item in data]


def share_link(origin: str, note_id: int) -> str:
    """Return the public link for *note_id* under *origin*."""
    return f"{origin.rstrip('/')}/shared/{note_id}"


# ---------------------------------------------------------------------------
# Local list helper for callers that keep a cache
# ---------------------------------------------------------------------------


def prepend(notes: list[Note], note: Note) -> list[Note]:
    """Return a new list with *note* first (newest-first display order)."""
    return [note, *notes]
