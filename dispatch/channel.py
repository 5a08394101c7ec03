# dispatch/channel.py
"""
Single-flight request channel.

A channel has at most one request outstanding. Sending a new request
cancels the previous one immediately (no queueing); the superseded caller
gets QueryCancelled, even if its reply had already arrived. Staleness is
checked before any other classification, so a stale reply never touches
the session or the UI.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from auth.store import SessionStore
from dispatch.errors import QueryCancelled, SessionInvalidError, UnauthenticatedError
from dispatch.remote import RemoteReply, RemoteService, classify_reply

_logger = logging.getLogger(__name__)


def settle_reply(reply: RemoteReply, store: SessionStore) -> Dict[str, Any]:
    """
    Classify a reply, clearing the session if the credential was rejected.

    The session is cleared before SessionInvalidError propagates, so no UI
    update from the rejected request can run first.
    """
    try:
        return classify_reply(reply)
    except SessionInvalidError as e:
        _logger.warning(f"[SESSION] Credential rejected by server: {e}")
        store.clear()
        raise


def authenticated_body(store: SessionStore, parameters: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge request parameters with the session's identity and credential.

    Raises:
        UnauthenticatedError: If no session is present
    """
    session = store.current
    if session is None:
        raise UnauthenticatedError("Not logged in")

    body = dict(parameters)
    body["email"] = session.identity
    body["token"] = session.token
    return body


class SingleFlightChannel:
    """
    One in-flight slot over the shared remote service.

    Each send bumps a generation counter; a completion whose generation is
    no longer current is discarded as QueryCancelled.
    """

    def __init__(self, name: str, store: SessionStore, remote: RemoteService):
        self.name = name
        self._store = store
        self._remote = remote
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> bool:
        """
        Supersede whatever is outstanding.

        Returns True if a request was actually in flight.
        """
        self._generation += 1
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            _logger.debug(f"[{self.name.upper()}] Cancelled in-flight request")
            return True
        return False

    async def send(self, path: str, parameters: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Issue an authenticated request on this channel.

        Returns the reply body (possibly carrying ``error``).

        Raises:
            QueryCancelled: Superseded before it settled
            UnauthenticatedError: No session; nothing was sent
            SessionInvalidError: Credential rejected; session cleared
            TransportError: Network or protocol failure
        """
        self.cancel()
        generation = self._generation

        body = authenticated_body(self._store, parameters)

        task = asyncio.ensure_future(self._remote.post(path, body))
        self._task = task
        try:
            reply = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                raise QueryCancelled(f"{path} superseded") from None
            # The caller itself was cancelled
            raise
        except Exception:
            if generation != self._generation:
                raise QueryCancelled(f"{path} superseded") from None
            raise
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation:
            _logger.debug(f"[{self.name.upper()}] Discarding stale reply from {path}")
            raise QueryCancelled(f"{path} superseded")

        return settle_reply(reply, self._store)
