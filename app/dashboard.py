# app/dashboard.py
"""
Dashboard controller.

Turns user actions into queries: session and feature gate first, then the
dispatcher, then the router. Every outcome is reported once, to the region
that owns it; superseded queries leave no trace.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.client import OrbitClient
from app.rendering import API_KEY, DATA, DETAIL, VIZ, DashboardSurface
from app.tiering import FeatureLockedError, upgrade_view
from auth.models import Session
from auth.service import ApiKeyGrant, AuthError, DowngradeNotSupportedError
from dispatch.errors import (
    QueryCancelled,
    SessionInvalidError,
    TransportError,
    UnauthenticatedError,
)
from dispatch.models import QueryKind, QueryRequest
from dispatch.router import ResponseRouter

_logger = logging.getLogger(__name__)

SESSION_EXPIRED_NOTICE = "Your session has expired. Please log in again."
UPGRADE_SUCCESS_MESSAGE = "Upgrade successful! All Pro features are now unlocked."


class LoginRequiredError(Exception):
    """No session at startup; the dashboard cannot be used."""
    pass


def region_for(kind: QueryKind) -> str:
    """Region owning a primary query's results."""
    if kind == QueryKind.PLAN:
        return VIZ
    return DATA


class Dashboard:
    """
    Controller for one dashboard surface.

    Use ``Dashboard.start`` to construct; it enforces the login precondition.
    """

    def __init__(
        self,
        client: OrbitClient,
        surface: DashboardSurface,
        router: Optional[ResponseRouter] = None,
    ):
        self._client = client
        self._surface = surface
        self._router = router or ResponseRouter.for_surface(surface)
        self._expiry_notified = False

        self._unsubscribers = [
            client.store.subscribe(self._on_session_change),
            client.gate.subscribe(surface.apply_gate),
        ]

    @classmethod
    def start(cls, client: OrbitClient, surface: DashboardSurface) -> Dashboard:
        """
        Load the session and open the dashboard.

        Raises:
            LoginRequiredError: If there is no session
        """
        session = client.store.current
        if session is None:
            _logger.info("[DASHBOARD] No session; redirecting to login")
            surface.require_login()
            raise LoginRequiredError("Login required")

        dashboard = cls(client, surface)
        surface.show_upgrade_view(upgrade_view(session.tier))
        _logger.info(f"[DASHBOARD] Opened for {session.identity}")
        return dashboard

    # =========================================================================
    # Primary channel
    # =========================================================================

    async def list_all(self):
        return await self.run(QueryRequest.list_all())

    async def filter_altitude(self, min_alt: float, max_alt: float):
        return await self.run(QueryRequest.filter_altitude(min_alt, max_alt))

    async def check_risk(self, target_alt: float, tolerance: float):
        return await self.run(QueryRequest.risk_check(target_alt, tolerance))

    async def predict(self, duration: int, step: int, threshold: float):
        return await self.run(QueryRequest.predict(duration, step, threshold))

    async def plan(self, target_alt: float):
        return await self.run(QueryRequest.plan(target_alt))

    async def run(self, request: QueryRequest):
        """
        Run a primary query and render its outcome.

        Returns the rendered result, or None if it was refused, superseded
        or failed. Detail requests go to the detail channel.
        """
        if request.kind == QueryKind.DETAIL:
            return await self._show_details(request)

        if self._client.store.current is None:
            self._force_reauthentication(UnauthenticatedError("Not logged in"))
            return None

        region = region_for(request.kind)
        try:
            self._client.gate.check(request.kind)
        except FeatureLockedError as e:
            self._surface.show_refused(region, e.prompt)
            return None

        self._surface.show_loading(region)
        try:
            result = await self._client.dispatcher.issue(request)
        except QueryCancelled:
            return None
        except (SessionInvalidError, UnauthenticatedError) as e:
            self._force_reauthentication(e)
            return None
        except TransportError as e:
            self._surface.show_error(region, str(e))
            return None

        self._router.route(result)
        return result

    # =========================================================================
    # Detail channel
    # =========================================================================

    async def open_details(self, norad_id: int, name: Optional[str] = None):
        """Fetch and show one object's details; failures stay in the detail view."""
        return await self._show_details(QueryRequest.detail(norad_id, name))

    async def _show_details(self, request: QueryRequest):
        self._surface.show_detail_loading(request.origin_label)

        try:
            result = await self._client.details.lookup(request)
        except QueryCancelled:
            return None
        except (SessionInvalidError, UnauthenticatedError) as e:
            self._force_reauthentication(e)
            return None
        except TransportError as e:
            self._surface.show_error(DETAIL, f"Could not fetch details. {e}")
            return None

        self._router.route(result)
        return result

    # =========================================================================
    # Account
    # =========================================================================

    async def upgrade(self) -> Optional[Session]:
        """Upgrade to Pro and re-derive the gate."""
        self._surface.show_upgrade_view(upgrade_view(self._client.gate.tier), "Upgrading...")
        try:
            session = await self._client.auth.upgrade_tier()
        except (SessionInvalidError, UnauthenticatedError) as e:
            self._force_reauthentication(e)
            return None
        except (AuthError, TransportError) as e:
            self._surface.show_upgrade_view(upgrade_view(self._client.gate.tier), f"Error: {e}")
            return None

        self._surface.show_upgrade_view(upgrade_view(session.tier), UPGRADE_SUCCESS_MESSAGE)
        return session

    def downgrade(self) -> None:
        """
        Raises:
            DowngradeNotSupportedError: Always, after notifying the user
        """
        try:
            self._client.auth.downgrade_tier()
        except DowngradeNotSupportedError as e:
            self._surface.notify(str(e))
            raise

    async def generate_api_key(self) -> Optional[ApiKeyGrant]:
        """Generate an API key (Pro only) and show it with its validity notice."""
        try:
            grant = await self._client.auth.generate_api_key()
        except FeatureLockedError as e:
            self._surface.show_refused(API_KEY, e.prompt)
            return None
        except (SessionInvalidError, UnauthenticatedError) as e:
            self._force_reauthentication(e)
            return None
        except (AuthError, TransportError) as e:
            self._surface.show_error(API_KEY, f"Error generating key: {e}")
            return None

        self._surface.show_api_key(grant.api_key, grant.notice)
        return grant

    def logout(self) -> None:
        """Cancel outstanding requests, clear the session, go to login."""
        self._client.cancel_all()
        self._client.auth.logout()
        self._surface.require_login()

    def close(self) -> None:
        """Detach from the client's store and gate."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # =========================================================================
    # Internals
    # =========================================================================

    def _force_reauthentication(self, error: Exception) -> None:
        if isinstance(error, SessionInvalidError) and not self._expiry_notified:
            self._expiry_notified = True
            self._surface.notify(SESSION_EXPIRED_NOTICE)
        _logger.info(f"[DASHBOARD] Re-authentication required: {error}")
        self._client.cancel_all()
        self._surface.require_login()

    def _on_session_change(self, session: Optional[Session]) -> None:
        if session is not None:
            self._expiry_notified = False
            self._surface.show_upgrade_view(upgrade_view(session.tier))
