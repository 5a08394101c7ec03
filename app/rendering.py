# app/rendering.py
"""
Rendering interface between the dashboard core and its presentation.

DashboardSurface is everything the core calls into. TextSurface is a
plain-text implementation that keeps the lines shown in each region.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from app.tiering import FeatureGateState, UpgradeView

_logger = logging.getLogger(__name__)

# Regions of the dashboard
DATA = "data"
VIZ = "viz"
DETAIL = "detail"
UPGRADE = "upgrade"
API_KEY = "api_key"

REGIONS = (DATA, VIZ, DETAIL, UPGRADE, API_KEY)


class DashboardSurface(ABC):
    """Narrow interface the dashboard core renders through."""

    # --- primary result area -------------------------------------------------

    @abstractmethod
    def show_loading(self, region: str) -> None:
        ...

    @abstractmethod
    def render_objects(self, result) -> None:
        """List or filter results."""
        ...

    @abstractmethod
    def render_risks(self, result) -> None:
        ...

    @abstractmethod
    def render_events(self, result) -> None:
        ...

    @abstractmethod
    def render_density(self, result) -> None:
        ...

    @abstractmethod
    def show_error(self, region: str, message: str) -> None:
        """Inline failure in a result region."""
        ...

    @abstractmethod
    def show_refused(self, region: str, message: str) -> None:
        """A gated action was refused before anything was sent."""
        ...

    # --- detail view ---------------------------------------------------------

    @abstractmethod
    def show_detail_loading(self, title: str) -> None:
        ...

    @abstractmethod
    def render_detail(self, result) -> None:
        ...

    # --- session and account -------------------------------------------------

    @abstractmethod
    def apply_gate(self, state: FeatureGateState) -> None:
        """Enable or disable gated affordances."""
        ...

    @abstractmethod
    def show_upgrade_view(self, view: UpgradeView, message: str = "") -> None:
        ...

    @abstractmethod
    def show_api_key(self, api_key: str, notice: str) -> None:
        ...

    @abstractmethod
    def notify(self, message: str) -> None:
        """One-off notice to the user."""
        ...

    @abstractmethod
    def require_login(self) -> None:
        """Hand control to the authentication flow."""
        ...


def _km(value: float) -> str:
    return f"{value:g}"


class TextSurface(DashboardSurface):
    """
    Plain-text surface.

    Each region holds the lines it currently shows; rendering into a region
    replaces its content.
    """

    def __init__(self):
        self.regions: Dict[str, List[str]] = {region: [] for region in REGIONS}
        self.subtitles: Dict[str, str] = {}
        self.notices: List[str] = []
        self.gate: Optional[FeatureGateState] = None
        self.login_required = False

    def _set(self, region: str, lines: List[str], subtitle: Optional[str] = None) -> None:
        self.regions[region] = lines
        if subtitle is not None:
            self.subtitles[region] = subtitle
        _logger.debug(f"[RENDER] {region}: {len(lines)} line(s)")

    def text(self, region: str) -> str:
        return "\n".join(self.regions[region])

    # --- primary result area -------------------------------------------------

    def show_loading(self, region: str) -> None:
        if region == VIZ:
            self._set(VIZ, ["Analyzing Data..."], "Results will be charted here.")
        else:
            self._set(region, ["Fetching from Server..."],
                      "Results from Mission Control queries will be shown here.")

    def render_objects(self, result) -> None:
        if result.is_error:
            self.show_error(DATA, result.error)
            return
        subtitle = (
            f"Displaying {len(result.satellites)} objects for: {result.origin_label}. "
            "Click on a name for details."
        )
        if not result.satellites:
            self._set(DATA, ["No satellites found for this query."], subtitle)
            return
        lines = ["Name | Altitude (km) | NORAD ID"]
        lines.extend(
            f"{sat.name} | {sat.altitude:.2f} | {sat.norad_id}" for sat in result.satellites
        )
        self._set(DATA, lines, subtitle)

    def render_risks(self, result) -> None:
        if result.is_error:
            self.show_error(DATA, result.error)
            return
        subtitle = (
            f"Risk check results for {_km(result.target_alt)}km ± {_km(result.tolerance)}km. "
            "Click on a name for details."
        )
        if not result.risk_found or not result.risks:
            self._set(DATA, ["No immediate risks found in the specified range."], subtitle)
            return
        lines = [f"Found {len(result.risks)} potential risk(s):"]
        lines.extend(f"{risk.name} at {risk.altitude:.2f} km" for risk in result.risks)
        self._set(DATA, lines, subtitle)

    def render_events(self, result) -> None:
        if result.is_error:
            self.show_error(DATA, result.error)
            return
        subtitle = f"Found {len(result.events)} potential close approaches."
        if not result.events:
            self._set(DATA, ["No high-risk collision events predicted."], subtitle)
            return
        lines = []
        for event in result.events:
            lines.append(
                f"Close Approach Event: {event.object1_name} / {event.object2_name}, "
                f"min. distance {event.min_distance_km:.2f} km, "
                f"in {event.time_from_now_hr:.1f} hours"
            )
        self._set(DATA, lines, subtitle)

    def render_density(self, result) -> None:
        if result.is_error:
            self.show_error(VIZ, result.error)
            return
        lines = []
        for band in result.analysis:
            marker = " (target)" if band.is_target_bin else ""
            lines.append(
                f"{_km(band.alt_start_km)}-{_km(band.alt_end_km)} km: "
                f"{band.object_count}{marker}"
            )
        rec = result.recommendation
        if rec is not None:
            lines.append(
                f"Safest band is {_km(rec.safe_alt_start_km)}-{_km(rec.safe_alt_end_km)} km, "
                f"with only {rec.object_count} objects."
            )
        self._set(VIZ, lines, "Orbital Density Analysis")

    def show_error(self, region: str, message: str) -> None:
        self._set(region, [f"Error: {message}"])

    def show_refused(self, region: str, message: str) -> None:
        self._set(region, [message])

    # --- detail view ---------------------------------------------------------

    def show_detail_loading(self, title: str) -> None:
        self._set(DETAIL, ["Fetching mission data..."], title)

    def render_detail(self, result) -> None:
        if result.is_error:
            self._set(DETAIL, [f"Error: Could not fetch details. {result.error}"])
            return
        self._set(DETAIL, [f"{label}: {value}" for label, value in result.display_fields()])

    # --- session and account -------------------------------------------------

    def apply_gate(self, state: FeatureGateState) -> None:
        self.gate = state

    def show_upgrade_view(self, view: UpgradeView, message: str = "") -> None:
        lines = [
            f"Free: {view.free_label}" + ("" if view.free_enabled else " (disabled)"),
            f"Pro: {view.pro_label}" + ("" if view.pro_enabled else " (disabled)"),
        ]
        if message:
            lines.append(message)
        self._set(UPGRADE, lines)

    def show_api_key(self, api_key: str, notice: str) -> None:
        self._set(API_KEY, [api_key, notice])

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def require_login(self) -> None:
        self.login_required = True
