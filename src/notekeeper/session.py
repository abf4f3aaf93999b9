"""Session lifecycle: who is logged in, and with which credential.

The :class:`SessionManager` is the only writer of the credential store and
of the transport's bearer credential. It registers itself once as a
rejection listener on the transport, so any 401 anywhere forces a logout
before the failing caller sees its error.

Races
-----
Operations interleave at every ``await``. A forced logout triggered by a
401 on another request may land while :meth:`SessionManager.login` is
between its two round-trips. ``login`` commits the authenticated state only
after ``/auth/me`` succeeds and only if its own token is still attached. A
logout that lands before the identity fetch makes that fetch go out
without a credential and fail. One that lands while the fetch is in flight
is caught by the attached-token check. Either way the login rolls back
and raises.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from . import credential
from .errors import AuthenticationError, NotekeeperError, RegistrationError
from .models import Session, SessionState, User, parse
from .store import BadStoreError, CredentialStore
from .transport import Transport

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]


class SessionManager:
    """Tracks the current identity and owns the stored credential."""

    def __init__(self, transport: Transport, store: CredentialStore) -> None:
        self._transport = transport
        self._store = store
        self._state = SessionState.UNINITIALIZED
        self._user: Optional[User] = None
        self._loading = False
        self._listeners: list[SessionListener] = []
        transport.add_rejection_listener(self._on_rejection)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return Session(state=self._state, user=self._user, loading=self._loading)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def authenticated(self) -> bool:
        return self._user is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call *listener* with the new session after every state change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def initialize(self) -> Session:
        """Restore the session from the stored credential.

        Always ends AUTHENTICATED or UNAUTHENTICATED; never raises for a
        bad, expired or rejected credential.
        """
        self._loading = True
        self._emit()
        try:
            token = self._read_stored()
            if not credential.is_valid(token):
                if token is not None:
                    logger.info("stored credential is malformed or expired")
                self._drop_credential()
                self._set(SessionState.UNAUTHENTICATED, None)
                return self.session

            self._transport.attach(token)
            try:
                user = await self._fetch_identity()
            except NotekeeperError as exc:
                logger.info("stored credential not accepted: %s", exc)
                self._drop_credential()
                self._set(SessionState.UNAUTHENTICATED, None)
            else:
                self._set(SessionState.AUTHENTICATED, user)
            return self.session
        finally:
            self._loading = False
            self._emit()

    async def login(self, username: str, password: str) -> User:
        """Exchange *username*/*password* for a credential and load the identity.

        Raises :class:`AuthenticationError`; on failure nothing is left stored
        or attached.
        """
        try:
            body = await self._transport.call(
                "POST",
                "/auth/login",
                json={"username": username, "password": password},
                authenticated=False,
            )
            token = body.get("access_token") if isinstance(body, dict) else None
            if not isinstance(token, str) or not token:
                raise AuthenticationError("Login response carried no access token.")
            self._store.save(token)
            self._transport.attach(token)
            user = await self._fetch_identity()
            if self._transport.credential != token:
                raise AuthenticationError("Session was revoked while logging in.")
        except (NotekeeperError, BadStoreError, OSError) as exc:
            self._drop_credential()
            self._set(SessionState.UNAUTHENTICATED, None)
            logger.info("login failed for %s: %s", username, exc)
            raise AuthenticationError(
                "Login failed. Please check your credentials.",
                status_code=getattr(exc, "status_code", None),
            ) from exc

        self._set(SessionState.AUTHENTICATED, user)
        logger.info("logged in as %s", user.username)
        return user

    async def register(self, username: str, email: str, password: str) -> User:
        """Create an account, then log into it.

        A failed account creation raises :class:`RegistrationError`. If the
        account is created but the follow-up login fails, the login's
        :class:`AuthenticationError` propagates: the account exists on the
        server while this client holds no session.
        """
        try:
            await self._transport.call(
                "POST",
                "/auth/register",
                json={"username": username, "email": email, "password": password},
                authenticated=False,
            )
        except NotekeeperError as exc:
            raise RegistrationError(
                f"Registration failed: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        logger.info("registered account %s", username)
        return await self.login(username, password)

    def logout(self) -> None:
        """Forget the credential and identity. Idempotent."""
        self._drop_credential()
        if self._state is not SessionState.UNAUTHENTICATED or self._user is not None:
            logger.info("logged out")
        self._set(SessionState.UNAUTHENTICATED, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_rejection(self) -> None:
        logger.warning("credential rejected by server, forcing logout")
        self.logout()

    async def _fetch_identity(self) -> User:
        body = await self._transport.call("GET", "/auth/me")
        return parse(User, body)

    def _read_stored(self) -> Optional[str]:
        try:
            return self._store.load()
        except (BadStoreError, OSError) as exc:
            logger.warning("discarding unreadable credential store: %s", exc)
            return None

    def _drop_credential(self) -> None:
        self._store.clear()
        self._transport.detach()

    def _set(self, state: SessionState, user: Optional[User]) -> None:
        changed = state is not self._state or user != self._user
        self._state = state
        self._user = user
        if changed:
            self._emit()

    def _emit(self) -> None:
        snapshot = self.session
        for listener in list(self._listeners):
            listener(snapshot)
