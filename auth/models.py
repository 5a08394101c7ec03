# auth/models.py
"""
Session and profile models for the dashboard client.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class Tier(str, Enum):
    """Subscription tiers."""
    FREE = "free"
    PRO = "pro"


def parse_tier(tier_str: Optional[str]) -> Tier:
    """
    Parse a plan string to Tier enum.

    Args:
        tier_str: Plan string (case-insensitive) or None

    Returns:
        Tier enum (defaults to FREE if None or invalid)
    """
    if tier_str is None:
        return Tier.FREE

    try:
        return Tier(str(tier_str).lower())
    except ValueError:
        return Tier.FREE


@dataclass(frozen=True)
class Profile:
    """
    User profile as reported by the remote service.

    Attributes:
        email: Identity used to authenticate every request
        tier: Subscription tier (free or pro)
    """
    email: str
    tier: Tier = Tier.FREE

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        """Build from the server's ``user`` object (``{"email", "plan"}``)."""
        email = data.get("email")
        if not isinstance(email, str) or not email:
            raise ValueError("user profile is missing an email")
        return cls(email=email, tier=parse_tier(data.get("plan")))

    @property
    def is_pro(self) -> bool:
        return self.tier == Tier.PRO

    def to_dict(self) -> dict:
        """Convert to the server's ``user`` shape."""
        return {
            "email": self.email,
            "plan": self.tier.value,
        }


@dataclass(frozen=True)
class Session:
    """
    Authenticated session: credential and profile, always together.

    Attributes:
        token: Opaque credential issued by login/signup
        profile: User profile
    """
    token: str
    profile: Profile

    def __post_init__(self):
        if not self.token:
            raise ValueError("session token cannot be empty")

    @property
    def identity(self) -> str:
        return self.profile.email

    @property
    def tier(self) -> Tier:
        return self.profile.tier

    def with_profile(self, profile: Profile) -> Session:
        """Copy with a new profile, keeping the credential."""
        return replace(self, profile=profile)

    def __repr__(self) -> str:
        # Keep the credential out of logs and tracebacks
        return f"Session(identity={self.identity!r}, tier={self.tier.value!r})"
