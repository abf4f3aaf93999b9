"""Owner-scoped note operations.

The server scopes every call to the authenticated caller; the client
never sends an owner filter and never touches ``owner_id``.
"""

from __future__ import annotations

import logging

from .errors import ValidationError
from .models import Note, ShareResult, parse, parse_list, share_link
from .transport import Transport

logger = logging.getLogger(__name__)


class NoteRepository:
    """CRUD and visibility for the caller's own notes."""

    def __init__(self, transport: Transport, share_origin: str) -> None:
        self._transport = transport
        self.share_origin = share_origin

    async def list(self) -> list[Note]:
        """Return the caller's notes in the order the server sent them."""
        body = await self._transport.call("GET", "/notes")
        return parse_list(Note, body)

    async def create(self, title: str, content: str) -> Note:
        title, content = _clean(title, content)
        body = await self._transport.call(
            "POST", "/notes", json={"title": title, "content": content}
        )
        note = parse(Note, body)
        logger.info("created note %s", note.id)
        return note

    async def update(self, note_id: int, title: str, content: str) -> Note:
        """Replace title and content; raises NotFoundError for notes the caller does not own."""
        title, content = _clean(title, content)
        body = await self._transport.call(
            "PUT", f"/notes/{note_id}", json={"title": title, "content": content}
        )
        return parse(Note, body)

    async def delete(self, note_id: int) -> None:
        """Delete a note. Deleting an unknown id raises NotFoundError."""
        await self._transport.call("DELETE", f"/notes/{note_id}")
        logger.info("deleted note %s", note_id)

    async def set_visibility(self, note_id: int, is_public: bool) -> ShareResult:
        """Publish or unpublish a note.

        When published, the result carries the share link. Unpublishing
        makes the server refuse the link from then on; the result simply
        has no link to advertise.
        """
        body = await self._transport.call(
            "POST", f"/notes/{note_id}/share", json={"is_public": is_public}
        )
        share_url = body.get("share_url") if isinstance(body, dict) else None
        logger.info("note %s is now %s", note_id, "public" if is_public else "private")
        return ShareResult(
            note_id=note_id,
            is_public=is_public,
            share_url=share_url if is_public else None,
            link=self.share_link(note_id) if is_public else None,
        )

    def share_link(self, note_id: int) -> str:
        return share_link(self.share_origin, note_id)


def _clean(title: str, content: str) -> tuple[str, str]:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    if not content:
        raise ValidationError("Content is required.")
    return title, content
