# dispatch/errors.py
"""
Outcome taxonomy for remote calls.

QueryCancelled is never shown to the user. The others are terminal for the
request that raised them and are reported once, to the area that owns it.
"""

from __future__ import annotations

from typing import Optional


class DispatchError(Exception):
    """Base error for remote calls."""
    pass


class QueryCancelled(DispatchError):
    """A newer request superseded this one; its completion is discarded."""
    pass


class UnauthenticatedError(DispatchError):
    """An authenticated call was attempted with no session present."""
    pass


class SessionInvalidError(DispatchError):
    """The server rejected the credential; the session has been cleared."""
    pass


class ApplicationError(DispatchError):
    """A well-formed reply carrying an ``error`` field."""
    pass


class TransportError(DispatchError):
    """Network failure, unexpected status, or an undecodable reply."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
