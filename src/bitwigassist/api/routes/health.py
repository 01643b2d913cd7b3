"""Health check API routes."""
from __future__ import annotations

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from bitwigassist import __version__
from bitwigassist.models.schemas import HealthResponse, ServiceHealth
from bitwigassist.services.controller import ConnectionState

router = APIRouter()
logger = structlog.get_logger()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Bitwig Studio not running makes the service degraded, not unhealthy:
    questions can still be answered.
    """
    from bitwigassist.main import app_state

    services: list[ServiceHealth] = []
    overall_status = "healthy"

    if app_state.assistant is None:
        services.append(
            ServiceHealth(name="assistant", status="unhealthy", message="Not initialized")
        )
        overall_status = "unhealthy"
    else:
        topics = len(app_state.assistant.knowledge.knowledge_base)
        services.append(
            ServiceHealth(name="knowledge", status="healthy", message=f"{topics} topics loaded")
        )

    services.append(_check_bitwig())
    if overall_status == "healthy" and services[-1].status != "healthy":
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        uptime_seconds=app_state.uptime_seconds,
        services=services,
    )


@router.get("/health/live")
async def liveness() -> dict:
    """Kubernetes liveness probe.

    Returns 200 if the service is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """Kubernetes readiness probe.

    Ready once the assistant is built, whether or not Bitwig Studio is up.
    """
    from bitwigassist.main import app_state

    if app_state.assistant is None:
        return JSONResponse(status_code=503, content={"status": "not_ready"})
    if not app_state.assistant.is_connected():
        return {"status": "ready", "warning": "Bitwig Studio not connected"}
    return {"status": "ready"}


# =============================================================================
# Helper Functions
# =============================================================================


def _check_bitwig() -> ServiceHealth:
    """Bitwig Studio connection from cached controller state."""
    from bitwigassist.main import app_state

    controller = app_state.controller
    if controller is None:
        return ServiceHealth(name="bitwig", status="unhealthy", message="Controller not initialized")

    capability = controller.capability()
    if not capability.supported:
        return ServiceHealth(name="bitwig", status="unhealthy", message=capability.reason)

    state = controller.connection_state
    if state is ConnectionState.CONNECTED:
        return ServiceHealth(name="bitwig", status="healthy")
    return ServiceHealth(name="bitwig", status="degraded", message=f"Bitwig Studio {state.value}")
