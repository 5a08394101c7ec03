"""Configure pytest for the dashboard client."""
import os
import sys
from pathlib import Path

import httpx
import pytest

# =============================================================================
# Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports
os.environ.setdefault("ORBITGUARD_ENVIRONMENT", "test")
os.environ.setdefault("ORBITGUARD_DB_PATH", ":memory:")
# Cheap password hashing for the stand-in service
os.environ.setdefault("MOCK_BCRYPT_ROUNDS", "4")

# Add project root so tests can import the top-level packages
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from app.client import build_client  # noqa: E402
from app.config import ClientConfig  # noqa: E402
from auth.models import Profile, Session, Tier  # noqa: E402
from auth.store import SessionStore  # noqa: E402
from persistence.db import MEMORY_DB, Database  # noqa: E402

TEST_SERVER_URL = "http://orbitguard.test"


def pytest_configure(config):
    """Ensure environment is set before test collection."""
    os.environ.setdefault("ORBITGUARD_ENVIRONMENT", "test")
    os.environ.setdefault("ORBITGUARD_DB_PATH", ":memory:")


@pytest.fixture
def db():
    """Fresh in-memory database."""
    database = Database(MEMORY_DB)
    database.init_db()
    yield database
    database.close()


@pytest.fixture
def store(db):
    return SessionStore(db)


@pytest.fixture
def free_session():
    return Session(token="tok-free-123", profile=Profile(email="ops@example.com", tier=Tier.FREE))


@pytest.fixture
def pro_session():
    return Session(token="tok-pro-456", profile=Profile(email="lead@example.com", tier=Tier.PRO))


@pytest.fixture
def test_config():
    return ClientConfig(
        environment="test",
        server_url=TEST_SERVER_URL,
        request_timeout_seconds=5.0,
        db_path=MEMORY_DB,
    )


@pytest.fixture
def make_client(test_config):
    """
    Factory for clients whose network is an httpx transport.

    Pass an ``httpx.MockTransport`` handler (sync or async) or any transport,
    plus an optional session to persist up front.
    """
    clients = []

    def factory(handler_or_transport, session=None):
        if isinstance(handler_or_transport, httpx.AsyncBaseTransport):
            transport = handler_or_transport
        else:
            transport = httpx.MockTransport(handler_or_transport)
        client = build_client(test_config, transport=transport)
        if session is not None:
            client.store.save(session)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.db.close()
