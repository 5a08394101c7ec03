# dispatch/router.py
"""
Response router: maps a result's kind to exactly one renderer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from dispatch.models import QueryKind

_logger = logging.getLogger(__name__)

Renderer = Callable[[Any], None]

# Surface method that renders each result kind
SURFACE_RENDERERS: Dict[QueryKind, str] = {
    QueryKind.LIST: "render_objects",
    QueryKind.FILTER: "render_objects",
    QueryKind.RISK_CHECK: "render_risks",
    QueryKind.PREDICT: "render_events",
    QueryKind.PLAN: "render_density",
    QueryKind.DETAIL: "render_detail",
}


class IncompleteRouteTableError(ValueError):
    """Raised when a route table does not cover every query kind."""
    pass


class ResponseRouter:
    """
    Exhaustive dispatch table keyed by QueryKind.

    Every kind must have a renderer at construction time, so routing a
    well-formed result always invokes exactly one renderer.
    """

    def __init__(self, renderers: Mapping[QueryKind, Renderer]):
        missing = [kind.value for kind in QueryKind if kind not in renderers]
        if missing:
            raise IncompleteRouteTableError(f"No renderer for: {', '.join(missing)}")
        self._renderers = dict(renderers)

    @classmethod
    def for_surface(cls, surface: Any) -> ResponseRouter:
        """Build a router that renders onto a dashboard surface."""
        return cls({kind: getattr(surface, method) for kind, method in SURFACE_RENDERERS.items()})

    def route(self, result: Any) -> None:
        """Invoke the renderer registered for ``result.kind``."""
        renderer = self._renderers[QueryKind(result.kind)]
        _logger.debug(f"[ROUTER] Rendering {result.kind.value}")
        renderer(result)
