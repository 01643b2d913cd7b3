"""BitwigAssist - Conversational assistant for Bitwig Studio.

FastAPI application entry point.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bitwigassist import __version__
from bitwigassist.agents.assistant import BitwigAssistant, MessageNotFoundError
from bitwigassist.agents.knowledge import KnowledgeAgent
from bitwigassist.config import Settings, get_settings
from bitwigassist.core.knowledge_base import build_default_knowledge_base
from bitwigassist.models.schemas import ErrorDetail, ErrorResponse
from bitwigassist.services.controller import ActionController, create_controller
from bitwigassist.services.conversation import Conversation
from bitwigassist.services.profiles import ProfileStore
from bitwigassist.services.session import InvalidTransitionError, NotExecutableError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# =============================================================================
# Logging Setup
# =============================================================================


def setup_logging() -> None:
    """Configure structured logging."""
    settings = get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if settings.env == "development"
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Library modules log through the standard logging module
    logging.basicConfig(
        level=logging.getLevelName(settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# =============================================================================
# Application State
# =============================================================================


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        self.start_time = time.time()
        self.assistant: BitwigAssistant | None = None
        self.controller: ActionController | None = None
        self.profiles: ProfileStore | None = None
        self.backend_name = "simulated"
        self._poll_task: asyncio.Task | None = None

    @property
    def uptime_seconds(self) -> float:
        """Get application uptime in seconds."""
        return time.time() - self.start_time


app_state = AppState()


def build_assistant(settings: Settings) -> BitwigAssistant:
    """Wire the knowledge agent, controller and transcript together."""
    controller = create_controller(settings.controller)
    knowledge = KnowledgeAgent(build_default_knowledge_base())
    return BitwigAssistant(
        knowledge,
        controller,
        Conversation(max_messages=settings.max_messages),
    )


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown of services.
    """
    logger = structlog.get_logger()
    settings = get_settings()

    # --- Startup ---
    logger.info("Starting BitwigAssist", version=__version__, env=settings.env)

    from bitwigassist.services.metrics import init_metrics

    init_metrics(version=__version__, env=settings.env)

    app_state.start_time = time.time()
    app_state.assistant = build_assistant(settings)
    app_state.controller = app_state.assistant.controller
    app_state.backend_name = settings.controller.backend
    app_state.profiles = ProfileStore(
        settings.profile_path,
        max_recent_actions=settings.profile.max_recent_actions,
    )
    await app_state.assistant.init()

    app_state._poll_task = asyncio.create_task(
        _connection_poll_loop(settings.controller.poll_interval_sec)
    )

    logger.info(
        "BitwigAssist started",
        host=settings.host,
        port=settings.port,
        backend=settings.controller.backend,
        probe=settings.controller.probe,
    )

    yield

    # --- Shutdown ---
    logger.info("Shutting down BitwigAssist")

    if app_state._poll_task:
        app_state._poll_task.cancel()
        try:
            await app_state._poll_task
        except asyncio.CancelledError:
            pass
        app_state._poll_task = None

    if app_state.assistant:
        await app_state.assistant.shutdown()

    logger.info("BitwigAssist stopped")


async def _connection_poll_loop(interval_sec: float) -> None:
    """Background task that keeps the Bitwig Studio connection state fresh."""
    logger = structlog.get_logger()

    while True:
        await asyncio.sleep(interval_sec)
        controller = app_state.controller
        if controller is None:
            continue
        try:
            await controller.probe_connection()
        except Exception as e:
            logger.warning("Connection check error", error=str(e))


# =============================================================================
# FastAPI Application
# =============================================================================


def _error_response(status_code: int, code: str, message: str, **details) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=code, message=message, details=details or None)
        ).model_dump(mode="json"),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title="BitwigAssist",
        description="Conversational assistant that guides and drives Bitwig Studio",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.env == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.2f}"
        return response

    @app.exception_handler(MessageNotFoundError)
    async def message_not_found_handler(request: Request, exc: MessageNotFoundError):
        return _error_response(
            404, "MESSAGE_NOT_FOUND", "Message not found", message_id=exc.args[0]
        )

    @app.exception_handler(NotExecutableError)
    async def not_executable_handler(request: Request, exc: NotExecutableError):
        return _error_response(409, "NOT_EXECUTABLE", str(exc))

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return _error_response(409, "INVALID_TRANSITION", str(exc))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger = structlog.get_logger()
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="INTERNAL_ERROR",
                    message="An unexpected error occurred",
                    details={"error": str(exc)} if settings.debug else None,
                )
            ).model_dump(mode="json"),
        )

    _register_routes(app)

    return app


def _register_routes(app: FastAPI) -> None:
    """Register API routes."""
    from bitwigassist.api.routes import assistant, controller, health, metrics, profile

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": "BitwigAssist",
            "version": __version__,
            "description": "Conversational assistant that guides and drives Bitwig Studio",
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "api": "/api/v1",
                "metrics": "/metrics",
                "query": "/api/v1/query",
                "controller_status": "/api/v1/controller/status",
            },
        }

    app.include_router(health.router, tags=["Health"])
    app.include_router(assistant.router, prefix="/api/v1", tags=["Assistant"])
    app.include_router(controller.router, prefix="/api/v1", tags=["Controller"])
    app.include_router(profile.router, prefix="/api/v1", tags=["Profile"])
    app.include_router(metrics.router, tags=["Metrics"])


# Create app instance
app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================


def main() -> None:
    """Run the application via CLI."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bitwigassist.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
