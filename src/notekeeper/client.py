"""Wires the notekeeper components into one isolated client instance."""

from __future__ import annotations

from typing import Optional

import httpx

from .config import Settings
from .notes import NoteRepository
from .public import PublicNoteResolver
from .session import SessionManager
from .store import CredentialStore
from .transport import Transport


class Client:
    """One transport, one credential store and the services built on them.

    Instances share nothing, so several can coexist (e.g. one per test).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        store: Optional[CredentialStore] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = Transport.from_settings(self.settings, http_transport)
        self.store = store or CredentialStore(
            self.settings.credential_path(), self.settings.store_secret
        )
        self.session = SessionManager(self.transport, self.store)
        self.notes = NoteRepository(self.transport, self.settings.share_origin)
        self.public = PublicNoteResolver(self.transport)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
