# auth/service.py
"""
Account flow against the remote service.

Handles:
- Login and signup (creates the session)
- Logout (destroys it)
- Tier upgrade (replaces the profile, keeps the credential)
- Downgrade (not supported by the backend; always refused)
- API key generation (Pro only)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import NoReturn

from auth.models import Profile, Session
from auth.store import SessionStore
from dispatch.channel import authenticated_body, settle_reply
from dispatch.errors import ApplicationError
from dispatch.remote import (
    GENERATE_KEY_PATH,
    LOGIN_PATH,
    SIGNUP_PATH,
    UPGRADE_PATH,
    RemoteReply,
    RemoteService,
)

_logger = logging.getLogger(__name__)

API_KEY_VALIDITY = timedelta(hours=24)
API_KEY_NOTICE = "Your new key is valid for 24 hours. Please copy it now."
DOWNGRADE_NOT_IMPLEMENTED = (
    "Functionality to downgrade to the free plan is not yet implemented in the backend."
)


class AuthError(ApplicationError):
    """Base error for account operations refused by the server."""
    pass


class InvalidCredentialsError(AuthError):
    """Login refused."""
    pass


class SignupRejectedError(AuthError):
    """Signup refused (e.g. email already registered)."""
    pass


class UpgradeError(AuthError):
    """Tier upgrade refused."""
    pass


class ApiKeyError(AuthError):
    """API key generation refused."""
    pass


class DowngradeNotSupportedError(NotImplementedError):
    """Downgrading to the free plan has no backend support."""

    def __init__(self, message: str = DOWNGRADE_NOT_IMPLEMENTED):
        super().__init__(message)


@dataclass(frozen=True)
class ApiKeyGrant:
    """
    A freshly generated API key.

    The 24-hour validity is asserted by the server; it is only displayed here.
    """
    api_key: str
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    valid_for: timedelta = API_KEY_VALIDITY

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.valid_for

    @property
    def notice(self) -> str:
        return API_KEY_NOTICE

    def __repr__(self) -> str:
        return f"ApiKeyGrant(expires_at={self.expires_at.isoformat()!r})"


class AuthService:
    """Login, signup, logout and plan changes for one client."""

    def __init__(self, store: SessionStore, remote: RemoteService, feature_gate):
        self._store = store
        self._remote = remote
        self._gate = feature_gate

    async def login(self, email: str, password: str) -> Session:
        """
        Log in and persist the session.

        Raises:
            InvalidCredentialsError: If the server refuses the credentials
            TransportError: If the server cannot be reached
        """
        reply = await self._remote.post(LOGIN_PATH, {"email": email, "password": password})
        session = self._session_from_reply(reply, InvalidCredentialsError)
        _logger.info(f"[AUTH] Logged in as {session.identity}")
        return session

    async def signup(self, email: str, password: str) -> Session:
        """
        Create an account and persist the session.

        Raises:
            SignupRejectedError: If the server refuses the signup
            TransportError: If the server cannot be reached
        """
        reply = await self._remote.post(SIGNUP_PATH, {"email": email, "password": password})
        session = self._session_from_reply(reply, SignupRejectedError)
        _logger.info(f"[AUTH] Signed up as {session.identity}")
        return session

    def logout(self) -> None:
        """Destroy the session."""
        self._store.clear()
        _logger.info("[AUTH] Logged out")

    async def upgrade_tier(self) -> Session:
        """
        Upgrade to Pro; only the profile is replaced.

        Raises:
            UnauthenticatedError: No session
            SessionInvalidError: Credential rejected (session cleared)
            UpgradeError: Server refused the upgrade
            TransportError: Network or protocol failure
        """
        body = authenticated_body(self._store, {})
        data = settle_reply(await self._remote.post(UPGRADE_PATH, body), self._store)

        if data.get("error") is not None:
            raise UpgradeError(str(data["error"]))
        user = data.get("user")
        if not isinstance(user, dict):
            raise UpgradeError("Upgrade failed.")

        try:
            profile = Profile.from_dict(user)
        except ValueError as e:
            raise UpgradeError(f"Upgrade failed: {e}") from e

        session = self._store.replace_profile(profile)
        _logger.info(f"[AUTH] Plan is now {profile.tier.value} for {profile.email}")
        return session

    def downgrade_tier(self) -> NoReturn:
        """
        Raises:
            DowngradeNotSupportedError: Always
        """
        _logger.info("[AUTH] Downgrade requested; not supported by the backend")
        raise DowngradeNotSupportedError()

    async def generate_api_key(self) -> ApiKeyGrant:
        """
        Generate an API key (Pro only).

        Raises:
            FeatureLockedError: Tier does not allow API key management
            UnauthenticatedError, SessionInvalidError, TransportError
            ApiKeyError: Server refused
        """
        body = authenticated_body(self._store, {})
        self._gate.require_api_key_access()

        data = settle_reply(await self._remote.post(GENERATE_KEY_PATH, body), self._store)

        if data.get("error") is not None:
            raise ApiKeyError(str(data["error"]))
        api_key = data.get("api_key")
        if not isinstance(api_key, str) or not api_key:
            raise ApiKeyError("Key generation failed.")

        _logger.info("[AUTH] API key generated")
        return ApiKeyGrant(api_key=api_key)

    def _session_from_reply(self, reply: RemoteReply, error_cls) -> Session:
        data = reply.body
        if reply.error is not None:
            raise error_cls(reply.error)
        if not reply.ok:
            raise error_cls(f"HTTP error! Status: {reply.status_code}")

        token = data.get("token")
        user = data.get("user")
        if not token or not isinstance(user, dict):
            raise error_cls("An unknown error occurred.")

        try:
            session = Session(token=str(token), profile=Profile.from_dict(user))
        except ValueError as e:
            raise error_cls(f"An unknown error occurred. ({e})") from e

        self._store.save(session)
        return session
