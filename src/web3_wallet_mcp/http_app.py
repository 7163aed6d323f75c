"""HTTP transport: JSON-RPC envelopes over ``POST /mcp``."""

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .errors import ErrorHandler, ErrorKind, MCPError
from .router import RequestRouter

logger = logging.getLogger(__name__)

SERVICE_NAME = "Web3 Wallet MCP Server"
SERVICE_VERSION = "1.0.0"


def create_app(router: RequestRouter) -> FastAPI:
    app = FastAPI(
        title=SERVICE_NAME,
        description="Ethereum wallet tools over JSON-RPC",
        version=SERVICE_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.post("/mcp")
    async def handle_mcp_request(request: Request) -> dict[str, Any]:
        logger.debug("Received MCP request over HTTP")
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError as exc:
            error = MCPError(ErrorKind.JSON_RPC, f"Parse error: {exc}")
            return ErrorHandler.handle_error(error).model_dump(mode="json")
        response = await router.handle_raw(payload)
        return response.model_dump(mode="json")

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Liveness check; does not touch the Ethereum node."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {"mcp": "/mcp", "health": "/health"},
        }

    return app
