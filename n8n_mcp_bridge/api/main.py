"""
FastAPI Application
==================

Main FastAPI application exposing the MCP tools over Server-Sent Events.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from n8n_mcp_bridge.config.settings import get_settings, Settings
from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.api.routes.health import router as health_router
from n8n_mcp_bridge.api.routes.sse import router as sse_router
from n8n_mcp_bridge.api.sse import create_mcp_bridge
from n8n_mcp_bridge.mcp_server import N8nToolCapability, N8nToolCatalog
from n8n_mcp_bridge.mcp_server.tools import describe_catalog
from n8n_mcp_bridge.models.schemas import ErrorResponse, ServerInfo

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting FastAPI application", environment=settings.environment)

    bridge = create_mcp_bridge(N8nToolCapability(), N8nToolCatalog(), settings)
    bridge.start()
    app.state.mcp_bridge = bridge

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")
        try:
            await bridge.shutdown()
        except Exception as e:
            logger.error("Error closing SSE bridge", error=str(e))
        app.state.mcp_bridge = None


# Request ID middleware
async def add_request_id(request: Request, call_next):  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# Exception handlers
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    request_id = getattr(request.state, "request_id", None)
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
    )

    # Routes that promise a fixed body raise with a dict detail.
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)

    error_response = ErrorResponse(
        error=str(exc.detail),
        error_code=str(exc.status_code),
        request_id=request_id,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
        headers=exc.headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    settings: Settings = request.app.state.settings
    error_response = ErrorResponse(
        error="Internal server error",
        error_code="INTERNAL_ERROR",
        details={"exception": str(exc)} if settings.debug else None,
        request_id=getattr(request.state, "request_id", None),
    )

    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=error_response.request_id,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500, content=error_response.model_dump(mode="json", exclude_none=True)
    )


async def root(request: Request) -> ServerInfo:
    """Service description."""
    settings: Settings = request.app.state.settings
    bridge = getattr(request.app.state, "mcp_bridge", None)
    catalog = bridge.dispatcher.catalog if bridge is not None else N8nToolCatalog()
    description = describe_catalog(catalog)
    return ServerInfo(
        name=settings.mcp_server_name,
        version=settings.app_version,
        protocol_version=settings.mcp_protocol_version,
        endpoints={
            "sse": "/mcp/sse",
            "message": "/mcp/message",
            "stats": "/mcp/stats",
            "health": "/health",
        },
        tools={
            "documentation": description["documentation"],
            "management": description["management"],
        },
        management_enabled=description["management_enabled"],
        active_sessions=bridge.session_count() if bridge is not None else 0,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by integration tests and the CLI entry point.

    Args:
        settings: Settings override; defaults to the global settings

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    application = FastAPI(
        title=settings.app_name,
        description="MCP server for n8n node documentation and workflow management over SSE",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    application.state.settings = settings
    application.state.mcp_bridge = None

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Client-Id", "X-Request-ID"],
    )
    application.middleware("http")(add_request_id)

    application.add_exception_handler(HTTPException, custom_http_exception_handler)  # type: ignore
    application.add_exception_handler(Exception, general_exception_handler)

    application.add_api_route("/", root, methods=["GET"], response_model=ServerInfo, tags=["Info"])
    application.include_router(health_router)
    application.include_router(sse_router)

    return application


app = create_app()


def run_development_server() -> None:
    """Run the server with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "n8n_mcp_bridge.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_development_server()
