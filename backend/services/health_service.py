import platform
import time
from datetime import datetime, timezone

from config import settings
from schemas import DetailedHealthResponse, HealthResponse

SERVICE_NAME = "FlavorVerse Backend"

_started_at = time.monotonic()


def uptime_seconds() -> float:
    return round(time.monotonic() - _started_at, 3)


def get_health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=datetime.now(timezone.utc),
        uptime=uptime_seconds(),
        environment=settings.environment,
        version=settings.api_version,
    )


def get_detailed_health() -> DetailedHealthResponse:
    # The store is not probed here; "configured" only means a URL is set.
    return DetailedHealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        uptime=uptime_seconds(),
        environment={
            "python_version": platform.python_version(),
            "platform": platform.system().lower(),
            "arch": platform.machine(),
        },
        services={
            "database": "configured" if settings.supabase_url else "missing",
            "api": "operational",
        },
    )
