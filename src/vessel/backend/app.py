"""FastAPI application factory and configuration"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .logging import setup_logging
from .config import load_logging_config, load_terminal_config
from .exception import VesselException
from .schema.response import ErrorResponse
from .layout import WorkspaceRegistry
from .terminal import TerminalManager
from .websocket import ChannelBroker
from .api import terminal_router, websocket_router, workspace_router

logger = logging.getLogger(__name__)


def create_app(instance_path: Path, config: dict) -> FastAPI:
    """Create and configure FastAPI application instance

    This is the application factory function that initializes logging,
    creates the FastAPI app, configures middleware, registers exception
    handlers, and includes routers.

    Runtime objects (TerminalManager, ChannelBroker, WorkspaceRegistry) are
    created in the lifespan, once the event loop is running, and stored in
    app.state.

    Args:
        instance_path: Path to the Vessel instance directory
        config: Configuration dictionary loaded from config.toml

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigError: A config.toml section does not validate
    """
    # Validate config before touching anything else
    logging_config = load_logging_config(config)
    terminal_config = load_terminal_config(config)

    # Initialize logging first
    setup_logging(instance_path, console_level=logging_config.level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle management"""
        # Startup: sessions, channels and workspaces
        terminal_manager = TerminalManager(terminal_config)

        channel_broker = ChannelBroker()
        channel_broker.set_main_loop(asyncio.get_running_loop())

        workspace_registry = WorkspaceRegistry(
            terminal_manager,
            sink=channel_broker.broadcast_sink,
            default_columns=terminal_config.default_columns,
            default_rows=terminal_config.default_rows,
            default_working_directory=terminal_config.default_working_directory,
        )

        app.state.terminal_manager = terminal_manager
        app.state.channel_broker = channel_broker
        app.state.workspace_registry = workspace_registry
        logger.info("Vessel runtime initialized")

        yield

        # Shutdown: stop every shell, then close the channels
        logger.info("Shutting down Vessel runtime...")
        terminal_manager.destroy_all()
        await channel_broker.disconnect_all()
        logger.info("Vessel runtime stopped")

    # Create FastAPI application
    app = FastAPI(
        title="Vessel API",
        description="Terminal sessions arranged in split-pane workspaces",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.instance_path = instance_path

    # ==================== CORS Configuration ====================

    cors_config = config.get('cors', {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.get('allow_origins', []),
        allow_credentials=cors_config.get('allow_credentials', True),
        allow_methods=cors_config.get('allow_methods', ["*"]),
        allow_headers=cors_config.get('allow_headers', ["*"]),
    )

    # ==================== Exception Handlers ====================

    @app.exception_handler(VesselException)
    async def vessel_exception_handler(request: Request, exc: VesselException) -> JSONResponse:
        """Handle all Vessel business exceptions

        NotFoundError, SpawnError, SessionConflictError, ... all inherit from
        VesselException and are returned in the unified ErrorResponse format.

        Returns:
            JSONResponse with ErrorResponse format (HTTP 200, success=false)
        """
        return JSONResponse(
            status_code=200,  # Business errors return 200 with success=false
            content=ErrorResponse(
                message=exc.message,
                error={"code": exc.code}
            ).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle Pydantic validation errors

        This catches errors from FastAPI's automatic request validation
        (missing fields, unknown split direction, type mismatches).

        Returns:
            JSONResponse with ErrorResponse format (HTTP 200, success=false)
        """
        return JSONResponse(
            status_code=200,  # Validation errors also return 200 with success=false
            content=ErrorResponse(
                message="Invalid input format",
                error={
                    "code": "VALIDATION_ERROR",
                    "details": jsonable_encoder(exc.errors())
                }
            ).model_dump()
        )

    # ==================== Router Registration ====================

    app.include_router(workspace_router, prefix="/api")
    app.include_router(terminal_router, prefix="/api")
    app.include_router(websocket_router)

    return app
