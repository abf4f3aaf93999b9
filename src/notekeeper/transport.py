"""Shared HTTP transport for the notes API.

One :class:`Transport` is shared by the session manager, the note
repository and the public resolver. It holds the bearer credential and
sends it on authenticated requests only. Every response passes through an
httpx event hook; a 401 notifies the registered rejection listeners
before the caller sees :class:`~notekeeper.errors.UnauthorizedError`.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from .config import Settings
from .errors import (
    NotFoundError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

RejectionListener = Callable[[], Union[None, Awaitable[None]]]


class Transport:
    """Async HTTP client bound to one API base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._credential: Optional[str] = None
        self._rejection_listeners: list[RejectionListener] = []
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            event_hooks={"response": [self._inspect_response]},
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Transport":
        return cls(settings.api_base_url, timeout=settings.timeout_seconds, transport=transport)

    # -- credential ----------------------------------------------------------

    @property
    def credential(self) -> Optional[str]:
        """The bearer token attached to authenticated requests, if any."""
        return self._credential

    @property
    def authorized(self) -> bool:
        return self._credential is not None

    def attach(self, token: str) -> None:
        self._credential = token

    def detach(self) -> None:
        self._credential = None

    def add_rejection_listener(self, listener: RejectionListener) -> None:
        """Call *listener* whenever any response comes back 401."""
        self._rejection_listeners.append(listener)

    # -- requests ------------------------------------------------------------

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty)."""
        resp = await self.send(method, path, json=json, authenticated=authenticated)
        raise_for_status(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {path} returned a non-JSON body",
                status_code=resp.status_code,
            ) from exc

    async def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers = {}
        if authenticated and self._credential:
            headers["Authorization"] = f"Bearer {self._credential}"
        logger.debug("%s %s", method, path)
        try:
            return await self._http.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- internal ------------------------------------------------------------

    async def _inspect_response(self, response: httpx.Response) -> None:
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return
        logger.info("credential rejected by %s", response.request.url.path)
        for listener in list(self._rejection_listeners):
            result = listener()
            if inspect.isawaitable(result):
                await result


def raise_for_status(resp: httpx.Response) -> None:
    """Map a non-2xx response onto the notekeeper error taxonomy."""
    if resp.is_success:
        return
    status = resp.status_code
    message = f"{resp.request.method} {resp.request.url.path}: {_detail(resp)}"
    if status == httpx.codes.UNAUTHORIZED:
        raise UnauthorizedError(message, status_code=status)
    # 403 is how the API answers for notes that belong to someone else.
    if status in (httpx.codes.NOT_FOUND, httpx.codes.FORBIDDEN):
        raise NotFoundError(message, status_code=status)
    if status in (httpx.codes.BAD_REQUEST, httpx.codes.UNPROCESSABLE_ENTITY):
        raise ValidationError(message, status_code=status)
    raise TransportError(message, status_code=status)


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or str(resp.status_code)
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return resp.reason_phrase or str(resp.status_code)
