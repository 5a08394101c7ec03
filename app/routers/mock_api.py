"""
Stand-in for the remote analysis service.

Implements the POST-per-operation JSON contract the dashboard client
speaks, backed by canned fixtures and in-memory accounts. For local
development and end-to-end tests.
"""
import logging
import os
import secrets
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import bcrypt
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.mock_data import (
    AUTH_FAILED,
    DETAILS_NOT_FOUND,
    INVALID_JSON,
    INVALID_LOGIN,
    INVALID_PARAMS,
    MOCK_CLOSE_APPROACHES,
    MOCK_DENSITY,
    MOCK_SATCAT,
    MOCK_SATELLITES,
    PRO_FEATURE,
    PRO_REQUIRED,
    USER_EXISTS,
)

_logger = logging.getLogger(__name__)

router = APIRouter(tags=["mock"])

# Work factor (cost); tests lower it through the environment
DEFAULT_BCRYPT_ROUNDS = 12


def _bcrypt_rounds() -> int:
    return int(os.environ.get("MOCK_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))


@dataclass
class MockAccount:
    email: str
    password_hash: str
    plan: str = "free"
    token: str = ""
    api_key: str = "none"

    def user_json(self) -> dict:
        return {"email": self.email, "plan": self.plan}


class MockBackend:
    """In-memory accounts for the stand-in service."""

    def __init__(self):
        self.accounts: Dict[str, MockAccount] = {}

    def create_account(self, email: str, password: str, plan: str = "free") -> MockAccount:
        password_hash = bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=_bcrypt_rounds())
        ).decode("utf-8")
        account = MockAccount(email=email, password_hash=password_hash, plan=plan)
        self.accounts[email] = account
        return account

    def verify(self, email: str, password: str) -> Optional[MockAccount]:
        account = self.accounts.get(email)
        if account is None:
            return None
        if not bcrypt.checkpw(password.encode("utf-8"), account.password_hash.encode("utf-8")):
            return None
        return account

    def issue_token(self, account: MockAccount) -> str:
        account.token = secrets.token_hex(16)
        return account.token

    def authenticate(self, body: dict) -> Optional[MockAccount]:
        email = body.get("email")
        token = body.get("token")
        if not isinstance(email, str) or not isinstance(token, str):
            return None
        account = self.accounts.get(email)
        if account is None or not account.token or account.token != token:
            return None
        return account


def _backend(request: Request) -> MockBackend:
    return request.app.state.backend


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _number(body: dict, name: str) -> Optional[float]:
    value = body.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


async def _read_body(request: Request) -> Tuple[Optional[dict], Optional[JSONResponse]]:
    try:
        body = await request.json()
    except ValueError:
        return None, _error(400, INVALID_JSON)
    if not isinstance(body, dict):
        return None, _error(400, INVALID_JSON)
    return body, None


async def _authenticated(request: Request) -> Tuple[Optional[dict], Optional[MockAccount], Optional[JSONResponse]]:
    body, failure = await _read_body(request)
    if failure is not None:
        return None, None, failure
    account = _backend(request).authenticate(body)
    if account is None:
        return None, None, _error(401, AUTH_FAILED)
    return body, account, None


# =============================================================================
# Accounts
# =============================================================================


@router.post("/signup")
async def signup(request: Request):
    body, failure = await _read_body(request)
    if failure is not None:
        return failure
    email, password = body.get("email"), body.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        return _error(400, INVALID_PARAMS)

    backend = _backend(request)
    if email in backend.accounts:
        return {"error": USER_EXISTS}

    account = backend.create_account(email, password)
    token = backend.issue_token(account)
    _logger.info(f"[MOCK] Signed up {email}")
    return {"token": token, "user": account.user_json()}


@router.post("/login")
async def login(request: Request):
    body, failure = await _read_body(request)
    if failure is not None:
        return failure
    email, password = body.get("email"), body.get("password")
    if not isinstance(email, str) or not isinstance(password, str):
        return _error(400, INVALID_PARAMS)

    backend = _backend(request)
    account = backend.verify(email, password)
    if account is None:
        return {"error": INVALID_LOGIN}

    token = backend.issue_token(account)
    return {"token": token, "user": account.user_json()}


@router.post("/upgrade")
async def upgrade(request: Request):
    _, account, failure = await _authenticated(request)
    if failure is not None:
        return failure
    account.plan = "pro"
    return {"user": account.user_json()}


@router.post("/generate-key")
async def generate_key(request: Request):
    _, account, failure = await _authenticated(request)
    if failure is not None:
        return failure
    if account.plan != "pro":
        return _error(403, PRO_REQUIRED)
    account.api_key = secrets.token_hex(32)
    return {"api_key": account.api_key}


# =============================================================================
# Queries
# =============================================================================


@router.post("/list")
async def list_satellites(request: Request):
    _, _, failure = await _authenticated(request)
    if failure is not None:
        return failure
    return {"satellites": MOCK_SATELLITES}


@router.post("/filter")
async def filter_satellites(request: Request):
    body, _, failure = await _authenticated(request)
    if failure is not None:
        return failure
    min_alt, max_alt = _number(body, "min_alt"), _number(body, "max_alt")
    if min_alt is None or max_alt is None:
        return _error(400, INVALID_PARAMS)
    return {"satellites": [s for s in MOCK_SATELLITES if min_alt <= s["altitude"] <= max_alt]}


@router.post("/risk")
async def risk_check(request: Request):
    body, _, failure = await _authenticated(request)
    if failure is not None:
        return failure
    target, tolerance = _number(body, "target_alt"), _number(body, "tolerance")
    if target is None or tolerance is None:
        return _error(400, INVALID_PARAMS)
    risks = [s for s in MOCK_SATELLITES if abs(s["altitude"] - target) <= tolerance]
    return {"risks": risks, "risk_found": bool(risks)}


@router.post("/predict")
async def predict(request: Request):
    body, account, failure = await _authenticated(request)
    if failure is not None:
        return failure
    if account.plan != "pro":
        return {"error": PRO_FEATURE}
    threshold = _number(body, "threshold")
    if threshold is None or _number(body, "duration") is None or _number(body, "step") is None:
        return _error(400, INVALID_PARAMS)
    return {"events": [e for e in MOCK_CLOSE_APPROACHES if e["min_distance_km"] <= threshold]}


@router.post("/plan")
async def plan(request: Request):
    body, account, failure = await _authenticated(request)
    if failure is not None:
        return failure
    if account.plan != "pro":
        return {"error": PRO_FEATURE}
    if _number(body, "target_alt") is None:
        return _error(400, INVALID_PARAMS)
    return MOCK_DENSITY


@router.post("/details")
async def details(request: Request):
    body, _, failure = await _authenticated(request)
    if failure is not None:
        return failure
    norad_id = _number(body, "norad_id")
    if norad_id is None:
        return _error(400, INVALID_PARAMS)
    record = MOCK_SATCAT.get(int(norad_id))
    if record is None:
        return {"error": DETAILS_NOT_FOUND}
    return record
