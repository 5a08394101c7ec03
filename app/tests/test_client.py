# app/tests/test_client.py
"""
Client wiring and end-to-end flows against the stand-in service.

The stand-in runs in-process through ``httpx.ASGITransport``.
"""
import asyncio

import httpx
import pytest

from app.client import build_client
from app.dashboard import Dashboard
from app.main import create_app
from app.rendering import API_KEY, DATA, DETAIL, VIZ, TextSurface
from app.tiering import FREE_POLICY, PRO_POLICY, UPGRADE_PROMPT
from auth.models import Session, Tier
from auth.service import InvalidCredentialsError
from auth.store import SessionStore


@pytest.fixture
def service_client(make_client):
    """Client talking to a fresh stand-in service."""
    return make_client(httpx.ASGITransport(app=create_app()))


class TestBuildClient:
    def test_shares_one_store(self, test_config):
        client = build_client(test_config, transport=httpx.MockTransport(lambda r: httpx.Response(200)))

        assert client.remote.base_url == "http://orbitguard.test"
        assert client.gate.state == FREE_POLICY
        client.db.close()

    def test_context_manager_closes(self, test_config, free_session):
        async def run():
            async with build_client(test_config, transport=httpx.MockTransport(lambda r: httpx.Response(200))) as client:
                client.store.save(free_session)
            return client

        client = asyncio.run(run())

        assert not client.dispatcher.in_flight
        assert not client.details.in_flight


class TestEndToEnd:
    def test_free_then_pro_journey(self, service_client):
        client = service_client
        surface = TextSurface()

        async def journey():
            await client.auth.signup("ops@example.com", "hunter2")
            dashboard = Dashboard.start(client, surface)

            await dashboard.filter_altitude(540, 560)
            filtered = surface.subtitles[DATA]

            await dashboard.predict(24, 60, 10)
            refused = surface.text(DATA)

            await dashboard.upgrade()
            await dashboard.plan(550)
            await dashboard.open_details(25544, "ISS (ZARYA)")
            await dashboard.generate_api_key()
            return filtered, refused

        filtered, refused = asyncio.run(journey())

        assert filtered.startswith("Displaying 3 objects for: Filter: 540-560km.")
        assert refused == UPGRADE_PROMPT
        assert surface.gate == PRO_POLICY
        assert surface.regions[VIZ][-1] == "Safest band is 560-580 km, with only 6 objects."
        assert "Official Name: ISS (ZARYA)" in surface.regions[DETAIL]
        assert len(surface.regions[API_KEY][0]) == 64

    def test_session_survives_restart(self, service_client):
        client = service_client

        session = asyncio.run(client.auth.signup("ops@example.com", "hunter2"))
        asyncio.run(client.auth.upgrade_tier())

        reloaded = SessionStore(client.db).load()
        assert reloaded.token == session.token
        assert reloaded.tier == Tier.PRO

    def test_bad_login(self, service_client):
        client = service_client
        asyncio.run(client.auth.signup("ops@example.com", "hunter2"))
        client.auth.logout()

        with pytest.raises(InvalidCredentialsError):
            asyncio.run(client.auth.login("ops@example.com", "wrong"))
        assert client.store.current is None

    def test_stale_credential_expires_session(self, service_client):
        """A credential the server no longer accepts ends the session on the next query."""
        client = service_client
        surface = TextSurface()

        async def run():
            session = await client.auth.signup("ops@example.com", "hunter2")
            dashboard = Dashboard.start(client, surface)
            client.store.save(Session(token="stale", profile=session.profile))
            await dashboard.list_all()

        asyncio.run(run())

        assert surface.login_required
        assert surface.notices == ["Your session has expired. Please log in again."]
        assert client.store.current is None
