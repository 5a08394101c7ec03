# dispatch/__init__.py
"""
Request orchestration.

Provides:
- Query requests and the decoded result union
- Single-flight channels (primary queries and detail lookups)
- Outcome taxonomy and reply classification
- Response router
"""

from dispatch.errors import (
    ApplicationError,
    DispatchError,
    QueryCancelled,
    SessionInvalidError,
    TransportError,
    UnauthenticatedError,
)
from dispatch.models import (
    PRIMARY_KINDS,
    DetailResult,
    FilterResult,
    ListResult,
    PlanResult,
    PredictionResult,
    QueryKind,
    QueryRequest,
    RiskCheckResult,
    decode_result,
)
from dispatch.remote import RemoteReply, RemoteService, classify_reply
from dispatch.channel import SingleFlightChannel
from dispatch.dispatcher import RequestDispatcher
from dispatch.detail import DetailLookup
from dispatch.router import ResponseRouter

__all__ = [
    "ApplicationError",
    "DispatchError",
    "QueryCancelled",
    "SessionInvalidError",
    "TransportError",
    "UnauthenticatedError",
    "PRIMARY_KINDS",
    "DetailResult",
    "FilterResult",
    "ListResult",
    "PlanResult",
    "PredictionResult",
    "QueryKind",
    "QueryRequest",
    "RiskCheckResult",
    "decode_result",
    "RemoteReply",
    "RemoteService",
    "classify_reply",
    "SingleFlightChannel",
    "RequestDispatcher",
    "DetailLookup",
    "ResponseRouter",
]
