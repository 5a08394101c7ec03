# dispatch/dispatcher.py
"""
Primary-channel request dispatcher.

Serves list, filter, risk check, predict and plan queries, one at a time.
"""

from __future__ import annotations

import logging

from auth.store import SessionStore
from dispatch.channel import SingleFlightChannel
from dispatch.models import QueryRequest, decode_result
from dispatch.remote import RemoteService

_logger = logging.getLogger(__name__)


class RequestDispatcher:
    """
    Issues analysis queries on the primary single-flight channel.

    A new query always wins immediately: the previous one is cancelled and
    its caller receives QueryCancelled instead of a result.
    """

    def __init__(self, store: SessionStore, remote: RemoteService):
        self._channel = SingleFlightChannel("primary", store, remote)

    @property
    def in_flight(self) -> bool:
        return self._channel.in_flight

    def cancel(self) -> bool:
        """Cancel the in-flight query, if any."""
        return self._channel.cancel()

    async def issue(self, request: QueryRequest):
        """
        Run a primary query and decode its result.

        Replies carrying ``error`` come back as results with ``error`` set
        so they can be shown in context.

        Raises:
            ValueError: For detail requests (use DetailLookup)
            QueryCancelled, UnauthenticatedError, SessionInvalidError,
            TransportError: See dispatch.errors
        """
        if not request.is_primary:
            raise ValueError(f"{request.kind.value} is not a primary-channel query")

        _logger.info(f"[DISPATCH] {request.kind.value}: {request.origin_label}")
        body = await self._channel.send(request.endpoint, request.parameters)

        result = decode_result(request, body)
        if result.is_error:
            _logger.warning(f"[DISPATCH] {request.kind.value} answered with error: {result.error}")
        return result
