# dispatch/tests/test_router.py
"""
Tests for the response router.
"""

from __future__ import annotations

import pytest

from dispatch.models import QueryKind, QueryRequest, decode_result
from dispatch.router import SURFACE_RENDERERS, IncompleteRouteTableError, ResponseRouter


def _recording_table():
    seen = []
    table = {kind: (lambda result, kind=kind: seen.append((kind, result))) for kind in QueryKind}
    return table, seen


class TestResponseRouter:
    """Tests for ResponseRouter."""

    def test_incomplete_table_rejected(self):
        table, _ = _recording_table()
        del table[QueryKind.PLAN]

        with pytest.raises(IncompleteRouteTableError, match="plan"):
            ResponseRouter(table)

    def test_routes_to_exactly_one_renderer(self):
        table, seen = _recording_table()
        router = ResponseRouter(table)
        result = decode_result(QueryRequest.risk_check(550, 10), {"risks": [], "risk_found": False})

        router.route(result)

        assert seen == [(QueryKind.RISK_CHECK, result)]

    def test_error_results_use_the_same_renderer(self):
        table, seen = _recording_table()
        router = ResponseRouter(table)
        result = decode_result(QueryRequest.predict(24, 60, 10), {"error": "Pro feature"})

        router.route(result)

        assert seen == [(QueryKind.PREDICT, result)]

    def test_surface_table_covers_every_kind(self):
        assert set(SURFACE_RENDERERS) == set(QueryKind)

    def test_for_surface(self):
        rendered = []

        class Surface:
            def render_objects(self, result):
                rendered.append(("objects", result.kind))

            def render_risks(self, result):
                rendered.append(("risks", result.kind))

            def render_events(self, result):
                rendered.append(("events", result.kind))

            def render_density(self, result):
                rendered.append(("density", result.kind))

            def render_detail(self, result):
                rendered.append(("detail", result.kind))

        router = ResponseRouter.for_surface(Surface())
        router.route(decode_result(QueryRequest.list_all(), {"satellites": []}))
        router.route(decode_result(QueryRequest.filter_altitude(400, 600), {"satellites": []}))
        router.route(decode_result(QueryRequest.plan(550), {"analysis": []}))

        assert rendered == [
            ("objects", QueryKind.LIST),
            ("objects", QueryKind.FILTER),
            ("density", QueryKind.PLAN),
        ]
