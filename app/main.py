"""Stand-in analysis service - FastAPI application entrypoint.

Serves the remote contract with canned data for local development:

    uvicorn app.main:app --port 8080
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import SERVICE_VERSION
from app.mock_data import NOT_FOUND
from app.routers import mock_api

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": NOT_FOUND})


def create_app() -> FastAPI:
    """Build a stand-in service with its own empty account registry."""
    service = FastAPI(
        title="OrbitGuard stand-in service",
        description="Canned responses for the dashboard client",
        version=SERVICE_VERSION,
    )

    service.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    service.add_exception_handler(404, _not_found)

    service.state.backend = mock_api.MockBackend()
    service.include_router(mock_api.router)
    return service


app = create_app()
