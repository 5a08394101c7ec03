# dispatch/detail.py
"""
Per-object detail lookup on its own single-flight channel.

Independent of the primary channel: neither cancels the other. A newer
detail lookup supersedes an older one.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.store import SessionStore
from dispatch.channel import SingleFlightChannel
from dispatch.models import DetailResult, QueryKind, QueryRequest, decode_result
from dispatch.remote import RemoteService

_logger = logging.getLogger(__name__)


class DetailLookup:
    """Fetches the catalogue record for one tracked object."""

    def __init__(self, store: SessionStore, remote: RemoteService):
        self._channel = SingleFlightChannel("detail", store, remote)

    @property
    def in_flight(self) -> bool:
        return self._channel.in_flight

    def cancel(self) -> bool:
        return self._channel.cancel()

    async def issue(self, norad_id: int, name: Optional[str] = None) -> DetailResult:
        """
        Look up one object by NORAD id.

        Session rejection clears the session exactly as on the primary
        channel.
        """
        return await self.lookup(QueryRequest.detail(norad_id, name))

    async def lookup(self, request: QueryRequest) -> DetailResult:
        """Run a prepared detail request, keeping its label."""
        if request.kind != QueryKind.DETAIL:
            raise ValueError(f"{request.kind.value} is not a detail query")
        _logger.info(f"[DETAIL] Looking up {request.parameters['norad_id']}")

        body = await self._channel.send(request.endpoint, request.parameters)
        return decode_result(request, body)
