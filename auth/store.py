# auth/store.py
"""
Session store.

Holds the authenticated session in two named slots (credential and profile)
so it survives restarts. The two halves are written and removed together;
a half-present pair is never handed out.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional

from auth.models import Profile, Session
from persistence.db import Database

_logger = logging.getLogger(__name__)

TOKEN_SLOT = "orbitGuardToken"
USER_SLOT = "orbitGuardUser"

SessionListener = Callable[[Optional[Session]], None]


class NoSessionError(Exception):
    """Raised when a mutation needs a session and none is present."""
    pass


class SessionStore:
    """
    Persisted session with an in-memory copy.

    ``load()`` reads the slots (once, at startup); ``current`` returns the
    cached value afterwards. Listeners are called synchronously after a load
    and after every mutation with the new session (or None).
    """

    def __init__(self, db: Database):
        self._db = db
        self._session: Optional[Session] = None
        self._loaded = False
        self._listeners: List[SessionListener] = []

    @property
    def current(self) -> Optional[Session]:
        """The cached session, loading it on first access."""
        if not self._loaded:
            return self.load()
        return self._session

    def load(self) -> Optional[Session]:
        """Read the persisted session, or None if absent."""
        slots = self._db.read_slots([TOKEN_SLOT, USER_SLOT])
        self._loaded = True
        self._session = None

        if not slots:
            self._set(None)
            return None

        token = slots.get(TOKEN_SLOT)
        raw_user = slots.get(USER_SLOT)
        if token and raw_user:
            try:
                self._session = Session(token=token, profile=Profile.from_dict(json.loads(raw_user)))
            except (ValueError, TypeError, AttributeError) as e:
                _logger.warning(f"[SESSION] Discarding unreadable session: {e}")
        else:
            _logger.warning("[SESSION] Discarding half-present session")

        if self._session is None:
            self._db.delete_slots([TOKEN_SLOT, USER_SLOT])

        self._set(self._session)
        return self._session

    def save(self, session: Session) -> None:
        """Persist credential and profile together."""
        self._db.write_slots({
            TOKEN_SLOT: session.token,
            USER_SLOT: json.dumps(session.profile.to_dict()),
        })
        self._set(session)
        _logger.info(f"[SESSION] Saved session for {session.identity} ({session.tier.value})")

    def replace_profile(self, profile: Profile) -> Session:
        """
        Swap the profile half, keeping the credential.

        Raises:
            NoSessionError: If there is no session to update
        """
        session = self.current
        if session is None:
            raise NoSessionError("Cannot replace profile without a session")

        updated = session.with_profile(profile)
        self._db.write_slots({USER_SLOT: json.dumps(profile.to_dict())})
        self._set(updated)
        _logger.info(f"[SESSION] Profile replaced for {profile.email} ({profile.tier.value})")
        return updated

    def clear(self) -> None:
        """Remove both halves."""
        self._db.delete_slots([TOKEN_SLOT, USER_SLOT])
        had_session = self._session is not None
        self._set(None)
        if had_session:
            _logger.info("[SESSION] Session cleared")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Optional[Session]) -> None:
        self._session = session
        self._loaded = True
        for listener in list(self._listeners):
            listener(session)
