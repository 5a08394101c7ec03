# dispatch/remote.py
"""
HTTP access to the remote analysis service.

Every operation is a JSON POST to ``<base_url><path>``. This module only
moves bytes and classifies replies; session bookkeeping happens in callers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from dispatch.errors import SessionInvalidError, TransportError

_logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Account endpoints (query endpoints live in dispatch.models.ENDPOINTS)
LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
UPGRADE_PATH = "/upgrade"
GENERATE_KEY_PATH = "/generate-key"

# Statuses that end the session
SESSION_REJECTED_STATUSES = frozenset({401, 403})

# Substring the server uses when it rejects a credential in the body
AUTH_FAILURE_MARKER = "Authentication failed"


@dataclass(frozen=True)
class RemoteReply:
    """Status code plus decoded JSON object body."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error(self) -> Optional[str]:
        error = self.body.get("error")
        if error is None:
            return None
        return str(error)


class RemoteService:
    """
    Thin async wrapper around ``httpx.AsyncClient``.

    One instance per running client. Pass ``transport`` to swap the network
    for ``httpx.MockTransport`` or ``httpx.ASGITransport``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def post(self, path: str, body: Dict[str, Any]) -> RemoteReply:
        """
        POST a JSON body and decode the JSON reply.

        Raises:
            TransportError: On network failure or a non-JSON 2xx reply
        """
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            _logger.warning(f"[REMOTE] {path} failed: {type(e).__name__}")
            raise TransportError(f"Could not reach the server ({type(e).__name__})") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            if response.is_success:
                raise TransportError(
                    f"Unreadable response from {path}",
                    status_code=response.status_code,
                )
            # Error statuses are classified from the status code alone
            data = {}

        _logger.debug(f"[REMOTE] {path} -> {response.status_code}")
        return RemoteReply(status_code=response.status_code, body=data)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RemoteService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def is_session_rejection(reply: RemoteReply) -> bool:
    """True if the reply says the credential is no longer valid."""
    if reply.status_code in SESSION_REJECTED_STATUSES:
        return True
    error = reply.error
    return error is not None and AUTH_FAILURE_MARKER in error


def classify_reply(reply: RemoteReply) -> Dict[str, Any]:
    """
    Classify an authenticated reply.

    Returns the body for success and for application errors (bodies that
    carry ``error``); the caller decides how to show those.

    Raises:
        SessionInvalidError: 401/403 or a server-reported auth failure
        TransportError: Non-2xx status without an error message
    """
    if is_session_rejection(reply):
        raise SessionInvalidError(
            reply.error or f"Request failed with status {reply.status_code}"
        )

    if not reply.ok and reply.error is None:
        raise TransportError(
            f"HTTP error! Status: {reply.status_code}",
            status_code=reply.status_code,
        )

    return reply.body
