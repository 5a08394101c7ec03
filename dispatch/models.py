# dispatch/models.py
"""
Query requests and decoded query results.

Results form a closed union keyed by ``kind``; replies are decoded at the
boundary so the router can dispatch exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dispatch.errors import TransportError


class QueryKind(str, Enum):
    """Analysis queries understood by the remote service."""
    LIST = "list"
    FILTER = "filter"
    RISK_CHECK = "riskCheck"
    PREDICT = "predict"
    PLAN = "plan"
    DETAIL = "detail"


PRIMARY_KINDS = frozenset({
    QueryKind.LIST,
    QueryKind.FILTER,
    QueryKind.RISK_CHECK,
    QueryKind.PREDICT,
    QueryKind.PLAN,
})

ENDPOINTS: Dict[QueryKind, str] = {
    QueryKind.LIST: "/list",
    QueryKind.FILTER: "/filter",
    QueryKind.RISK_CHECK: "/risk",
    QueryKind.PREDICT: "/predict",
    QueryKind.PLAN: "/plan",
    QueryKind.DETAIL: "/details",
}


def _format_km(value: float) -> str:
    """Render 550.0 as '550' and 550.5 as '550.5'."""
    return f"{value:g}"


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class QueryRequest:
    """
    One user-initiated query.

    Attributes:
        kind: Which query to run
        parameters: Kind-specific request body fields
        origin_label: Display label for the result area
    """
    kind: QueryKind
    parameters: Mapping[str, Any] = field(default_factory=dict)
    origin_label: str = ""

    @property
    def endpoint(self) -> str:
        return ENDPOINTS[self.kind]

    @property
    def is_primary(self) -> bool:
        return self.kind in PRIMARY_KINDS

    @classmethod
    def list_all(cls) -> QueryRequest:
        return cls(QueryKind.LIST, {}, "List All Satellites")

    @classmethod
    def filter_altitude(cls, min_alt: float, max_alt: float) -> QueryRequest:
        min_alt, max_alt = float(min_alt), float(max_alt)
        return cls(
            QueryKind.FILTER,
            {"min_alt": min_alt, "max_alt": max_alt},
            f"Filter: {_format_km(min_alt)}-{_format_km(max_alt)}km",
        )

    @classmethod
    def risk_check(cls, target_alt: float, tolerance: float) -> QueryRequest:
        return cls(
            QueryKind.RISK_CHECK,
            {"target_alt": float(target_alt), "tolerance": float(tolerance)},
            "Collision Risk Check",
        )

    @classmethod
    def predict(cls, duration: int, step: int, threshold: float) -> QueryRequest:
        return cls(
            QueryKind.PREDICT,
            {"duration": int(duration), "step": int(step), "threshold": float(threshold)},
            "Collision Prediction",
        )

    @classmethod
    def plan(cls, target_alt: float) -> QueryRequest:
        return cls(QueryKind.PLAN, {"target_alt": float(target_alt)}, "Safe Path Planner")

    @classmethod
    def detail(cls, norad_id: int, name: Optional[str] = None) -> QueryRequest:
        norad_id = int(norad_id)
        return cls(QueryKind.DETAIL, {"norad_id": norad_id}, f"Details for {name or norad_id}")


# =============================================================================
# Payload pieces
# =============================================================================


class TrackedObject(BaseModel):
    """A tracked object as listed by the service."""
    model_config = ConfigDict(frozen=True)

    name: str
    altitude: float
    norad_id: int


class CloseApproach(BaseModel):
    """A predicted close approach between two objects."""
    model_config = ConfigDict(frozen=True)

    object1_name: str
    object2_name: str
    min_distance_km: float
    time_from_now_hr: float


class DensityBin(BaseModel):
    """Object count for one altitude band."""
    model_config = ConfigDict(frozen=True)

    alt_start_km: float
    alt_end_km: float
    object_count: int
    is_target_bin: bool = False


class Recommendation(BaseModel):
    """Least crowded band near the target altitude."""
    model_config = ConfigDict(frozen=True)

    safe_alt_start_km: float
    safe_alt_end_km: float
    object_count: int


# =============================================================================
# Results
# =============================================================================


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin_label: str = ""
    # Set when the service answered with {"error": ...}
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ListResult(_Result):
    kind: Literal[QueryKind.LIST] = QueryKind.LIST
    satellites: List[TrackedObject] = Field(default_factory=list)


class FilterResult(_Result):
    kind: Literal[QueryKind.FILTER] = QueryKind.FILTER
    satellites: List[TrackedObject] = Field(default_factory=list)


class RiskCheckResult(_Result):
    kind: Literal[QueryKind.RISK_CHECK] = QueryKind.RISK_CHECK
    risk_found: bool = False
    risks: List[TrackedObject] = Field(default_factory=list)
    # Carried from the request for label text
    target_alt: float
    tolerance: float


class PredictionResult(_Result):
    kind: Literal[QueryKind.PREDICT] = QueryKind.PREDICT
    events: List[CloseApproach] = Field(default_factory=list)


class PlanResult(_Result):
    kind: Literal[QueryKind.PLAN] = QueryKind.PLAN
    analysis: List[DensityBin] = Field(default_factory=list)
    recommendation: Optional[Recommendation] = None
    target_alt: float


class DetailResult(_Result):
    kind: Literal[QueryKind.DETAIL] = QueryKind.DETAIL
    norad_id: int
    official_name: Optional[str] = None
    launch_date: Optional[str] = None
    country: Optional[str] = None
    purpose: Optional[str] = None
    status: Optional[str] = None

    def display_fields(self) -> List[tuple]:
        """Label/value pairs in display order."""
        return [
            ("NORAD ID", self.norad_id),
            ("Official Name", self.official_name),
            ("Launch Date", self.launch_date),
            ("Country", self.country),
            ("Mission", self.purpose),
            ("Status", self.status),
        ]


QueryResult = Annotated[
    Union[ListResult, FilterResult, RiskCheckResult, PredictionResult, PlanResult, DetailResult],
    Field(discriminator="kind"),
]

_RESULT_ADAPTER: TypeAdapter = TypeAdapter(QueryResult)

# Request parameters copied onto the result rather than recomputed
_CARRIED_PARAMETERS = {
    QueryKind.RISK_CHECK: ("target_alt", "tolerance"),
    QueryKind.PLAN: ("target_alt",),
    QueryKind.DETAIL: ("norad_id",),
}


def decode_result(request: QueryRequest, body: Mapping[str, Any]):
    """
    Decode a reply body into the result variant for ``request.kind``.

    Raises:
        TransportError: If the body does not fit the variant
    """
    data = dict(body)
    error = data.get("error")
    if error is not None and not isinstance(error, str):
        data["error"] = str(error)

    for name in _CARRIED_PARAMETERS.get(request.kind, ()):
        data[name] = request.parameters.get(name)
    data["kind"] = request.kind
    data["origin_label"] = request.origin_label

    try:
        return _RESULT_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise TransportError(
            f"Malformed {request.kind.value} response: {e.error_count()} invalid field(s)"
        ) from e
