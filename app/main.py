"""
Call MCP Server - FastAPI Application
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
import structlog

from app.config import Settings, settings
from app.context import ServiceContext, build_context
from app.tools import router as tools_router
from app.webhooks import twilio

logger = structlog.get_logger()


def configure_logging(settings: Settings, stream=sys.stdout) -> None:
    """Configure structured logging"""
    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=settings.log_level.upper(),
        force=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    owned = app.state.context is None
    if owned:
        for warning in settings.validate_startup():
            logger.warning("Configuration warning", warning=warning)
        app.state.context = build_context(settings)

    logger.info("Starting Call MCP Server", service=settings.service_name, tools=app.state.context.dispatcher.names)
    yield
    logger.info("Shutting down Call MCP Server")

    if owned:
        await app.state.context.close()
        app.state.context = None


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    """
    Build the application.

    With no context, settings are validated and services are built when the
    app starts; tests pass a context wired with fakes.
    """
    app = FastAPI(
        title="Call MCP Server",
        description="Phone call, transcription and summarization tools for AI agents",
        version=tools_router.SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.context = context

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        """Basic health check"""
        context = app.state.context
        return {
            "status": "healthy",
            "service": context.settings.service_name if context else settings.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.websocket("/mcp")
    async def mcp_socket(websocket: WebSocket):
        """Tool calls and call audio streams over one socket"""
        await websocket.app.state.context.registry.handle_connection(websocket)

    # Include tool routers
    app.include_router(tools_router.router, prefix="/tools", tags=["Tools"])
    app.include_router(tools_router.mcp_router, prefix="/mcp", tags=["MCP"])

    # Include webhook routers
    app.include_router(twilio.router, prefix="/webhook", tags=["Webhooks"])

    return app


configure_logging(settings)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
