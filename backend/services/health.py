"""
Health check service for StarBite.

Checks database connectivity, token signing configuration and the image
upload directory. Returns per-component status and uptime.
"""

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import text

from auth.errors import ConfigurationError
from auth.keys import SigningKeys
from config import settings
from database import AsyncSessionLocal

logger = logging.getLogger(__name__)

_start_time = time.monotonic()

# A failure in any of these makes the service unhealthy rather than degraded
CRITICAL_CHECKS = frozenset({"database", "signing_keys"})


class ComponentHealth(BaseModel):
    name: str
    status: str  # "ok" | "error"
    message: Optional[str] = None
    response_time_ms: Optional[float] = None


class HealthResponse(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    app: str
    version: str
    uptime_seconds: float
    checks: list[ComponentHealth]
    timestamp: str


async def check_database() -> ComponentHealth:
    """Check database connectivity by running SELECT 1."""
    start = time.perf_counter()
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        status, message = "ok", None
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        status, message = "error", str(e)
    elapsed = (time.perf_counter() - start) * 1000
    return ComponentHealth(
        name="database",
        status=status,
        message=message,
        response_time_ms=round(elapsed, 1),
    )


def check_signing_keys() -> ComponentHealth:
    """Check that both token secrets are configured and distinct."""
    try:
        SigningKeys.from_settings(settings)
    except ConfigurationError as e:
        return ComponentHealth(name="signing_keys", status="error", message=str(e))
    return ComponentHealth(name="signing_keys", status="ok")


def check_upload_dir() -> ComponentHealth:
    """Check that the upload directory is writable, or can be created."""
    upload_path = Path(settings.UPLOAD_DIR)
    if upload_path.exists() and not upload_path.is_dir():
        return ComponentHealth(
            name="upload_directory",
            status="error",
            message=f"Path is not a directory: {upload_path}",
        )
    target = upload_path if upload_path.exists() else upload_path.parent
    if target.exists() and not os.access(target, os.W_OK):
        return ComponentHealth(
            name="upload_directory",
            status="error",
            message=f"Directory is not writable: {target}",
        )
    return ComponentHealth(name="upload_directory", status="ok")


async def run_health_checks() -> HealthResponse:
    """Run all health checks and return aggregated status."""
    checks = [
        await check_database(),
        check_signing_keys(),
        check_upload_dir(),
    ]

    failed = {c.name for c in checks if c.status == "error"}
    if failed & CRITICAL_CHECKS:
        overall = "unhealthy"
    elif failed:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        uptime_seconds=round(time.monotonic() - _start_time, 1),
        checks=checks,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
