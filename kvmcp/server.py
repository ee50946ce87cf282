#!/usr/bin/env python3
"""
MCP Server Entrypoint

HTTP API that exposes the key-value tools:
  - GET  /.well-known/mcp   tool manifest
  - POST /mcp/call          tool dispatch
  - GET  /health            composite health (polled by the desktop shell)
  - GET  /databases         per-backend connection detail

Usage:
  python -m kvmcp
  uvicorn kvmcp.server:create_app --factory --port 10000
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from . import __version__
from .base import CLIENT_ERROR_TYPES, failure_envelope
from .config import Settings
from .dispatcher import Dispatcher
from .health import HealthAggregator
from .logging_setup import configure_logging
from .registry import ToolRegistry
from .storage.postgres_store import PostgresStore
from .storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

MCP_VERSION = "1.0"


class ToolCallRequest(BaseModel):
    """Request body for tool execution."""

    tool: Optional[str] = None
    parameters: Any = None


def _status_code(envelope: Dict[str, Any]) -> int:
    if envelope["success"]:
        return 200
    if envelope.get("error_type") in CLIENT_ERROR_TYPES:
        return 400
    return 500


def create_app(
    settings: Optional[Settings] = None,
    sqlite_store: Optional[SQLiteStore] = None,
    pg_store: Optional[PostgresStore] = None,
) -> FastAPI:
    """
    Build the application. Stores may be injected (tests pass fakes);
    otherwise they are constructed from settings. The lifespan owns them:
    it opens them on startup and closes them on shutdown.
    """
    settings = settings or Settings.from_env()
    if sqlite_store is None:
        sqlite_store = SQLiteStore(settings.db_path)
    if pg_store is None:
        pg_store = PostgresStore.from_settings(settings)

    health = HealthAggregator(sqlite_store, pg_store, probe=settings.health_probe)
    registry = ToolRegistry.build(sqlite_store, pg_store, health)
    dispatcher = Dispatcher(registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # A broken embedded store is fatal: let the exception stop startup.
        sqlite_store.initialize()
        await pg_store.connect()
        logger.info(f"MCP Server starting with {len(registry.describe())} tools")
        for descriptor in registry.describe():
            logger.info(f"  - {descriptor['name']}")

        yield

        await pg_store.close()
        sqlite_store.close()
        logger.info("MCP Server shutting down")

    app = FastAPI(
        title=settings.server_name,
        description=settings.server_description,
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.state.settings = settings
    app.state.sqlite_store = sqlite_store
    app.state.pg_store = pg_store
    app.state.health = health
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info(
            f"{request.method} {request.url.path} "
            f"ip={client} ua={request.headers.get('user-agent', '-')}"
        )
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid request body",
                "tool": None,
                "error_type": "validation",
            },
        )

    # ============== API Endpoints ==============

    @app.get("/")
    async def root():
        return {
            "service": settings.server_name,
            "version": __version__,
            "tools_count": len(registry.describe()),
            "endpoints": {
                "discovery": "/.well-known/mcp",
                "call": "/mcp/call",
                "health": "/health",
                "databases": "/databases",
            },
        }

    @app.get("/health")
    async def health_check():
        return await health.health()

    @app.get("/.well-known/mcp")
    async def discovery():
        return {
            "mcp_version": MCP_VERSION,
            "name": settings.server_name,
            "description": settings.server_description,
            "tools": registry.describe(),
        }

    @app.get("/databases")
    async def databases():
        try:
            return await health.databases()
        except Exception as e:
            logger.exception("Database status failed")
            return JSONResponse(status_code=500, content={"error": str(e)})

    @app.post("/mcp/call")
    async def call_tool(request: ToolCallRequest):
        envelope = await dispatcher.invoke(request.tool, request.parameters)
        try:
            content = jsonable_encoder(envelope)
            return JSONResponse(status_code=_status_code(envelope), content=content)
        except (TypeError, ValueError) as e:
            logger.exception(f"Result of {request.tool} could not be encoded")
            envelope = failure_envelope(request.tool, e)
            return JSONResponse(status_code=500, content=envelope)

    @app.options("/{path:path}")
    async def preflight(path: str):
        return Response(status_code=200)

    return app


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_dir)
    app = create_app(settings)
    logger.info(f"MCP Server listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
