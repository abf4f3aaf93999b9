"""Unauthenticated reads of published notes."""

from __future__ import annotations

from .errors import NotFoundError
from .models import PublicNote, parse, parse_list
from .transport import Transport


class PublicNoteResolver:
    """Reads anyone may perform; the bearer credential is never sent."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def list_public(self) -> list[PublicNote]:
        body = await self._transport.call("GET", "/public-notes", authenticated=False)
        return parse_list(PublicNote, body)

    async def fetch_shared(self, note_id: int) -> PublicNote:
        """Return a published note.

        Missing and private notes fail identically so that callers cannot
        tell whether a private note with this id exists.
        """
        try:
            body = await self._transport.call("GET", f"/shared/{note_id}", authenticated=False)
        except NotFoundError as exc:
            raise _not_shared(note_id) from exc
        note = parse(PublicNote, body)
        if not note.is_public:
            raise _not_shared(note_id)
        return note


def _not_shared(note_id: int) -> NotFoundError:
    return NotFoundError(f"Note {note_id} not found or not publicly shared.", status_code=404)
