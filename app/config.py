# app/config.py
"""
Client configuration with startup validation.

Reads OPTIONAL environment variables, validates them, and provides a
secret-safe startup snapshot for logging.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from dispatch.remote import DEFAULT_SERVER_URL, DEFAULT_TIMEOUT_SECONDS
from persistence.db import DB_PATH_ENV, default_db_path

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "orbitguard-client"
SERVICE_VERSION = "0.1.0"

SERVER_URL_ENV = "ORBITGUARD_SERVER_URL"
TIMEOUT_ENV = "ORBITGUARD_REQUEST_TIMEOUT_SECONDS"
ENVIRONMENT_ENV = "ORBITGUARD_ENVIRONMENT"

MIN_TIMEOUT_SECONDS = 1.0

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class ClientConfig:
    """Client configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"

    # Remote service
    server_url: str = DEFAULT_SERVER_URL
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Session persistence
    db_path: str = field(default_factory=default_db_path)

    # Warnings collected during config load
    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_float_env(
    name: str, default: float, min_value: Optional[float] = None
) -> tuple[float, Optional[str]]:
    """
    Parse a float environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = float(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid number; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def _is_valid_server_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def load_config(fail_fast: bool = True) -> ClientConfig:
    """
    Load and validate client configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on an invalid server URL.
                   If False, fall back to the default and record a warning.

    Returns:
        ClientConfig instance with validated configuration.

    Raises:
        ConfigurationError: If the server URL is invalid and fail_fast is True.
    """
    warnings = []

    environment = os.environ.get(ENVIRONMENT_ENV, "development")

    server_url = os.environ.get(SERVER_URL_ENV, DEFAULT_SERVER_URL).strip()
    if not _is_valid_server_url(server_url):
        message = f"{SERVER_URL_ENV}='{server_url}' is not an http(s) URL"
        if fail_fast:
            raise ConfigurationError(message)
        warnings.append(f"{message}; using default {DEFAULT_SERVER_URL}")
        server_url = DEFAULT_SERVER_URL

    timeout, timeout_warning = _parse_float_env(
        TIMEOUT_ENV,
        DEFAULT_TIMEOUT_SECONDS,
        min_value=MIN_TIMEOUT_SECONDS,
    )
    if timeout_warning:
        warnings.append(timeout_warning)

    db_path = os.environ.get(DB_PATH_ENV) or default_db_path()

    # Log warnings
    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return ClientConfig(
        environment=environment,
        server_url=server_url.rstrip("/"),
        request_timeout_seconds=timeout,
        db_path=db_path,
        warnings=warnings,
    )


def log_config_snapshot(config: ClientConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs credentials.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"server_url={config.server_url} "
        f"request_timeout_seconds={config.request_timeout_seconds} "
        f"db_path={config.db_path}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # Pattern: sensitive word followed by = and a value that's not a boolean
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false)"
        if re.search(pattern, snapshot_lower):
            return False

    return True
