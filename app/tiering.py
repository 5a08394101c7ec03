# app/tiering.py
"""
Feature gate for the dashboard.

Derives which operations are permitted from the session's subscription
tier and keeps listeners (the dashboard's affordances) in step with it.

Feature Matrix:
- FREE: list, filter, risk check, detail lookup
- PRO: + collision prediction, + safe path planner, + API key management

The gate is a pure function of the tier; nothing here is persisted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from auth.models import Session, Tier
from auth.store import SessionStore
from dispatch.models import QueryKind

_logger = logging.getLogger(__name__)

UPGRADE_PROMPT = "Upgrade to Pro to use this feature."


# =============================================================================
# Gate State
# =============================================================================


@dataclass(frozen=True)
class FeatureGateState:
    """
    Operations permitted for a tier.

    Attributes:
        can_predict: Collision prediction queries
        can_plan: Safe path planner queries
        can_manage_api_key: API key generation
    """
    can_predict: bool
    can_plan: bool
    can_manage_api_key: bool

    def permits(self, kind: QueryKind) -> bool:
        """Whether a query of this kind may be issued."""
        flag = GATED_KINDS.get(kind)
        if flag is None:
            return True
        return getattr(self, flag)


# Query kinds that need a flag; everything else is always allowed
GATED_KINDS: Dict[QueryKind, str] = {
    QueryKind.PREDICT: "can_predict",
    QueryKind.PLAN: "can_plan",
}

FREE_POLICY = FeatureGateState(
    can_predict=False,
    can_plan=False,
    can_manage_api_key=False,
)

PRO_POLICY = FeatureGateState(
    can_predict=True,
    can_plan=True,
    can_manage_api_key=True,
)

POLICIES = {
    Tier.FREE: FREE_POLICY,
    Tier.PRO: PRO_POLICY,
}


def get_policy(tier: Tier) -> FeatureGateState:
    """Get the gate state for a tier."""
    return POLICIES[tier]


def gate(tier: Optional[Tier]) -> FeatureGateState:
    """Derive the gate state; no tier (no session) gets the free policy."""
    if tier is None:
        return FREE_POLICY
    return get_policy(tier)


# =============================================================================
# Refusal
# =============================================================================


class FeatureLockedError(Exception):
    """Raised when a gated operation is attempted on a tier that lacks it."""

    def __init__(self, feature: str, tier: Optional[Tier]):
        self.feature = feature
        self.tier = tier
        self.prompt = UPGRADE_PROMPT
        tier_name = tier.value if tier is not None else "none"
        super().__init__(
            f"'{feature}' is not available on the '{tier_name}' plan. {UPGRADE_PROMPT}"
        )


# =============================================================================
# Live Gate
# =============================================================================


GateListener = Callable[[FeatureGateState], None]


class FeatureGate:
    """
    Gate bound to a session store.

    Re-derived synchronously on every session change (login, upgrade,
    logout) and pushed to listeners.
    """

    def __init__(self, store: SessionStore):
        self._store = store
        self._listeners: List[GateListener] = []
        self._tier: Optional[Tier] = None
        self._state = FREE_POLICY
        self._unsubscribe = store.subscribe(self._on_session_change)
        self.refresh()

    @property
    def state(self) -> FeatureGateState:
        return self._state

    @property
    def tier(self) -> Optional[Tier]:
        return self._tier

    def refresh(self) -> FeatureGateState:
        """Re-derive from the store's current session."""
        self._on_session_change(self._store.current)
        return self._state

    def subscribe(self, listener: GateListener) -> Callable[[], None]:
        """
        Register a listener and push the current state to it.

        Returns a function that unregisters it.
        """
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def check(self, kind: QueryKind) -> None:
        """
        Refuse gated queries.

        Raises:
            FeatureLockedError: If the current tier does not permit ``kind``
        """
        if not self._state.permits(kind):
            _logger.info(f"[GATE] Refused {kind.value} for tier {self._tier_name()}")
            raise FeatureLockedError(kind.value, self._tier)

    def require_api_key_access(self) -> None:
        """
        Raises:
            FeatureLockedError: If API key management is not permitted
        """
        if not self._state.can_manage_api_key:
            _logger.info(f"[GATE] Refused API key management for tier {self._tier_name()}")
            raise FeatureLockedError("generateApiKey", self._tier)

    def close(self) -> None:
        """Stop following the session store."""
        self._unsubscribe()

    def _on_session_change(self, session: Optional[Session]) -> None:
        self._tier = session.tier if session is not None else None
        new_state = gate(self._tier)
        changed = new_state != self._state
        self._state = new_state
        if changed:
            _logger.info(f"[GATE] Tier {self._tier_name()}: {new_state}")
        for listener in list(self._listeners):
            listener(new_state)

    def _tier_name(self) -> str:
        return self._tier.value if self._tier is not None else "none"


# =============================================================================
# Upgrade Page (display only)
# =============================================================================


@dataclass(frozen=True)
class UpgradeView:
    """Button labels and enabled flags for the upgrade page."""
    free_label: str
    free_enabled: bool
    pro_label: str
    pro_enabled: bool


def upgrade_view(tier: Optional[Tier]) -> UpgradeView:
    """Labels for the upgrade page; carries no gating semantics."""
    if tier == Tier.PRO:
        return UpgradeView(
            free_label="Switch to Free",
            free_enabled=True,
            pro_label="Your Current Version",
            pro_enabled=False,
        )
    return UpgradeView(
        free_label="Your Current Version",
        free_enabled=False,
        pro_label="Get Pro",
        pro_enabled=True,
    )
