# app/client.py
"""
Process-wide client context.

One session store, one remote service, one dispatcher and one detail
lookup per running client, built together and injected everywhere.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.config import ClientConfig, load_config, log_config_snapshot
from app.tiering import FeatureGate
from auth.service import AuthService
from auth.store import SessionStore
from dispatch.detail import DetailLookup
from dispatch.dispatcher import RequestDispatcher
from dispatch.remote import RemoteService
from persistence.db import Database

_logger = logging.getLogger(__name__)


@dataclass
class OrbitClient:
    """Everything one running client shares."""
    config: ClientConfig
    db: Database
    store: SessionStore
    remote: RemoteService
    gate: FeatureGate
    dispatcher: RequestDispatcher
    details: DetailLookup
    auth: AuthService

    def cancel_all(self) -> None:
        """Cancel both channels."""
        self.dispatcher.cancel()
        self.details.cancel()

    async def aclose(self) -> None:
        self.cancel_all()
        self.gate.close()
        await self.remote.aclose()
        self.db.close()

    async def __aenter__(self) -> OrbitClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def build_client(
    config: Optional[ClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OrbitClient:
    """
    Wire up a client.

    Args:
        config: Configuration (loaded from environment if omitted)
        transport: Optional httpx transport (mock or ASGI) for tests
    """
    if config is None:
        config = load_config()
        log_config_snapshot(config)

    db = Database(config.db_path)
    store = SessionStore(db)
    remote = RemoteService(
        base_url=config.server_url,
        timeout=config.request_timeout_seconds,
        transport=transport,
    )
    gate = FeatureGate(store)

    _logger.info(f"[STARTUP] Client ready for {config.server_url}")
    return OrbitClient(
        config=config,
        db=db,
        store=store,
        remote=remote,
        gate=gate,
        dispatcher=RequestDispatcher(store, remote),
        details=DetailLookup(store, remote),
        auth=AuthService(store, remote, gate),
    )
