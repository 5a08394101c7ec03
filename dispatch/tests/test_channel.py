# dispatch/tests/test_channel.py
"""
Tests for the single-flight channel and reply classification.

The remote is scripted: every post parks on a future the test resolves,
so completions can be ordered explicitly.
"""

from __future__ import annotations

import asyncio

import pytest

from dispatch.channel import SingleFlightChannel, authenticated_body, settle_reply
from dispatch.errors import (
    QueryCancelled,
    SessionInvalidError,
    TransportError,
    UnauthenticatedError,
)
from dispatch.remote import RemoteReply, classify_reply, is_session_rejection


class ScriptedRemote:
    """Stand-in for RemoteService whose replies are released by the test."""

    def __init__(self):
        self.calls = []
        self.pending = []

    async def post(self, path, body):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((path, body))
        self.pending.append(future)
        return await future


async def _settle():
    """Let scheduled tasks run until they block."""
    for _ in range(5):
        await asyncio.sleep(0)


# =============================================================================
# Classification
# =============================================================================


class TestClassifyReply:
    """Tests for classify_reply."""

    def test_success_returns_body(self):
        assert classify_reply(RemoteReply(200, {"satellites": []})) == {"satellites": []}

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_statuses(self, status):
        with pytest.raises(SessionInvalidError):
            classify_reply(RemoteReply(status, {}))

    def test_auth_failure_message_with_ok_status(self):
        reply = RemoteReply(200, {"error": "Authentication failed."})

        assert is_session_rejection(reply)
        with pytest.raises(SessionInvalidError, match="Authentication failed"):
            classify_reply(reply)

    def test_application_error_is_returned(self):
        body = {"error": "This is a Pro feature. Please upgrade your plan."}
        assert classify_reply(RemoteReply(200, body)) == body

    def test_error_status_with_message_is_application_error(self):
        body = {"error": "Missing or invalid parameters."}
        assert classify_reply(RemoteReply(400, body)) == body

    def test_error_status_without_message(self):
        with pytest.raises(TransportError, match="HTTP error! Status: 500") as exc_info:
            classify_reply(RemoteReply(500, {}))
        assert exc_info.value.status_code == 500


class TestSettleReply:
    """Tests for settle_reply."""

    def test_rejection_clears_session(self, store, free_session):
        store.save(free_session)

        with pytest.raises(SessionInvalidError):
            settle_reply(RemoteReply(401, {"error": "Authentication failed."}), store)

        assert store.current is None

    def test_session_cleared_before_error_propagates(self, store, free_session):
        store.save(free_session)
        seen = []
        store.subscribe(seen.append)

        try:
            settle_reply(RemoteReply(403, {}), store)
        except SessionInvalidError:
            seen.append("raised")

        assert seen == [None, "raised"]

    def test_other_failures_keep_session(self, store, free_session):
        store.save(free_session)

        with pytest.raises(TransportError):
            settle_reply(RemoteReply(502, {}), store)

        assert store.current == free_session


class TestAuthenticatedBody:
    """Tests for authenticated_body."""

    def test_adds_identity_and_credential(self, store, free_session):
        store.save(free_session)

        body = authenticated_body(store, {"target_alt": 550.0})

        assert body == {"target_alt": 550.0, "email": "ops@example.com", "token": "tok-free-123"}

    def test_no_session(self, store):
        with pytest.raises(UnauthenticatedError):
            authenticated_body(store, {})


# =============================================================================
# Single flight
# =============================================================================


class TestSingleFlightChannel:
    """Tests for SingleFlightChannel."""

    def test_send_returns_body(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            task = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            assert channel.in_flight
            remote.pending[0].set_result(RemoteReply(200, {"satellites": []}))
            return await task

        assert asyncio.run(scenario()) == {"satellites": []}
        assert not channel.in_flight

    def test_no_session_sends_nothing(self, store):
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        with pytest.raises(UnauthenticatedError):
            asyncio.run(channel.send("/list", {}))
        assert remote.calls == []

    def test_newer_request_supersedes_older(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            first = asyncio.ensure_future(channel.send("/risk", {"target_alt": 550.0, "tolerance": 10.0}))
            await _settle()
            second = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()

            # The first call's network task was cancelled
            assert remote.pending[0].cancelled()
            remote.pending[1].set_result(RemoteReply(200, {"satellites": []}))

            results = await asyncio.gather(first, second, return_exceptions=True)
            return results

        first, second = asyncio.run(scenario())
        assert isinstance(first, QueryCancelled)
        assert second == {"satellites": []}

    def test_completed_but_unobserved_reply_is_discarded(self, store, free_session):
        """A reply that arrived just before supersession is still dropped."""
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            first = asyncio.ensure_future(channel.send("/risk", {}))
            await _settle()
            remote.pending[0].set_result(RemoteReply(200, {"risks": [], "risk_found": False}))
            # Supersede before the first caller resumes
            second = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            remote.pending[1].set_result(RemoteReply(200, {"satellites": []}))
            return await asyncio.gather(first, second, return_exceptions=True)

        first, second = asyncio.run(scenario())
        assert isinstance(first, QueryCancelled)
        assert second == {"satellites": []}

    def test_stale_rejection_does_not_clear_session(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            first = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            remote.pending[0].set_result(RemoteReply(401, {"error": "Authentication failed."}))
            second = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            remote.pending[1].set_result(RemoteReply(200, {"satellites": []}))
            return await asyncio.gather(first, second, return_exceptions=True)

        first, _ = asyncio.run(scenario())
        assert isinstance(first, QueryCancelled)
        assert store.current == free_session

    def test_cancel_with_nothing_in_flight(self, store):
        channel = SingleFlightChannel("primary", store, ScriptedRemote())
        assert channel.cancel() is False

    def test_explicit_cancel(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            task = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            assert channel.cancel() is True
            return await asyncio.gather(task, return_exceptions=True)

        (outcome,) = asyncio.run(scenario())
        assert isinstance(outcome, QueryCancelled)

    def test_transport_failure_propagates(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            task = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            remote.pending[0].set_exception(TransportError("Could not reach the server (ConnectError)"))
            return await asyncio.gather(task, return_exceptions=True)

        (outcome,) = asyncio.run(scenario())
        assert isinstance(outcome, TransportError)
        assert store.current == free_session

    def test_rejection_on_current_request_clears_session(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        channel = SingleFlightChannel("primary", store, remote)

        async def scenario():
            task = asyncio.ensure_future(channel.send("/list", {}))
            await _settle()
            remote.pending[0].set_result(RemoteReply(401, {}))
            return await asyncio.gather(task, return_exceptions=True)

        (outcome,) = asyncio.run(scenario())
        assert isinstance(outcome, SessionInvalidError)
        assert store.current is None

    def test_independent_channels_do_not_cancel_each_other(self, store, free_session):
        store.save(free_session)
        remote = ScriptedRemote()
        primary = SingleFlightChannel("primary", store, remote)
        detail = SingleFlightChannel("detail", store, remote)

        async def scenario():
            first = asyncio.ensure_future(primary.send("/list", {}))
            await _settle()
            second = asyncio.ensure_future(detail.send("/details", {"norad_id": 25544}))
            await _settle()
            remote.pending[0].set_result(RemoteReply(200, {"satellites": []}))
            remote.pending[1].set_result(RemoteReply(200, {"official_name": "ISS (ZARYA)"}))
            return await asyncio.gather(first, second)

        first, second = asyncio.run(scenario())
        assert first == {"satellites": []}
        assert second == {"official_name": "ISS (ZARYA)"}
