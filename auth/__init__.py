# auth/__init__.py
"""
Session module.

Provides:
- Session/Profile models and subscription tiers
- Persisted session store (credential + profile in two slots)

The remote auth flow lives in ``auth.service``.
"""

from auth.models import Profile, Session, Tier, parse_tier
from auth.store import NoSessionError, SessionStore

__all__ = [
    "Profile",
    "Session",
    "Tier",
    "parse_tier",
    "NoSessionError",
    "SessionStore",
]
