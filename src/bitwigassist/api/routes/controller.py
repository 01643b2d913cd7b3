"""Controller API routes.

Connection status and reconnects, the raw process check that remote
instances poll, and composite operations.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from bitwigassist.config import get_settings
from bitwigassist.models.schemas import (
    ActionResultResponse,
    ActionSchema,
    CompositeInfo,
    CompositeListResponse,
    ControllerStatusResponse,
    ProcessCheckResponse,
)
from bitwigassist.services.controller import (
    COMPOSITES,
    ActionController,
    ProcessProbe,
)

router = APIRouter(prefix="/controller")
logger = structlog.get_logger()


def _get_controller() -> ActionController:
    from bitwigassist.main import app_state

    if app_state.controller is None:
        raise HTTPException(status_code=503, detail="Controller not initialized")
    return app_state.controller


def _status(controller: ActionController) -> ControllerStatusResponse:
    from bitwigassist.main import app_state

    info = controller.get_system_info()
    return ControllerStatusResponse(
        connection_state=controller.connection_state,
        is_connected=controller.is_connected,
        platform=info["platform"],
        supported=info["supported"],
        reason=info["reason"],
        backend=app_state.backend_name,
    )


@router.get("/status", response_model=ControllerStatusResponse)
async def status() -> ControllerStatusResponse:
    """Current connection state, without probing."""
    return _status(_get_controller())


@router.post("/reconnect", response_model=ControllerStatusResponse)
async def reconnect() -> ControllerStatusResponse:
    """Probe Bitwig Studio again and report the new state."""
    controller = _get_controller()
    connected = await controller.reconnect()
    logger.info("Reconnect requested", connected=connected)
    return _status(controller)


@router.get("/process", response_model=ProcessCheckResponse)
async def process_check() -> ProcessCheckResponse:
    """Check the local process table for Bitwig Studio.

    Always looks at this host, whatever probe the controller itself uses.
    """
    settings = get_settings().controller
    probe = ProcessProbe(
        process_name=settings.process_name,
        supported_platform=settings.supported_platform,
    )
    capability = probe.capability()
    if not capability.supported:
        return ProcessCheckResponse(
            is_running=False,
            platform=capability.platform,
            error=capability.reason,
        )

    is_running = await probe.is_target_running()
    logger.debug("Process check", process=probe.process_name, running=is_running)
    return ProcessCheckResponse(
        is_running=is_running,
        platform=capability.platform,
        process_name=probe.process_name,
    )


@router.get("/composites", response_model=CompositeListResponse)
async def list_composites() -> CompositeListResponse:
    composites = [
        CompositeInfo(
            name=op.name,
            description=op.description,
            actions=[ActionSchema.model_validate(a.to_dict()) for a in op.actions],
        )
        for op in COMPOSITES.values()
    ]
    return CompositeListResponse(composites=composites, total=len(composites))


@router.post("/composites/{name}", response_model=ActionResultResponse)
async def run_composite(name: str) -> ActionResultResponse:
    """Run a composite operation such as ``record_audio``."""
    if name not in COMPOSITES:
        raise HTTPException(status_code=404, detail=f"Unknown operation: {name}")
    controller = _get_controller()
    await controller.wait_for_initialization()
    result = await controller.run_composite(name)
    logger.info("Composite operation run", name=name, success=result.success)
    return ActionResultResponse(success=result.success, message=result.message, data=result.data)
