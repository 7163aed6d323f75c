"""Main MCP server implementation."""

import json
import logging
from typing import Any

import uvicorn
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import WalletConfig
from .errors import format_error_response
from .ethereum_client import EthereumClient
from .http_app import create_app
from .models import ToolCall
from .router import RequestRouter
from .tool_handler import ToolHandler
from .tools import tool_definitions

logger = logging.getLogger(__name__)


class Web3WalletMCPServer:
    """MCP server exposing the Ethereum wallet tools."""

    def __init__(self, config: WalletConfig):
        """
        Initialize the wallet MCP server.

        Args:
            config: Validated configuration for the server
        """
        self.config = config
        self.wallet_address = config.wallet_address

        self.client = EthereumClient.from_config(config)
        self.tool_handler = ToolHandler(self.client, tool_timeout=config.tool_timeout)
        self.router = RequestRouter(self.tool_handler)

        self.mcp = Server("web3-wallet-mcp-server")
        self._register_tools()

    def _register_tools(self):
        """Register all MCP tools."""

        @self.mcp.list_tools()
        async def list_tools() -> list[Tool]:
            """List all available tools."""
            return [Tool(**definition) for definition in tool_definitions()]

        @self.mcp.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            try:
                result = await self.tool_handler.handle_tool_call(
                    ToolCall(name=name, arguments=arguments or {})
                )
            except Exception as exc:
                error_result = format_error_response(exc)
                return [
                    TextContent(type="text", text=json.dumps(error_result, indent=2))
                ]

            return [
                TextContent(type="text", text=json.dumps(result.content, indent=2))
            ]

    async def run(self):
        """Start the MCP server on stdio."""
        logger.info(
            "Starting MCP server on stdio",
            extra={"extra_fields": {"wallet_address": self.wallet_address}},
        )
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.mcp.run(
                    read_stream,
                    write_stream,
                    self.mcp.create_initialization_options(),
                )
        finally:
            await self.client.aclose()

    async def run_http(self):
        """Serve JSON-RPC envelopes over HTTP."""
        app = create_app(self.router)
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=self.config.host,
                port=self.config.port,
                log_config=None,
            )
        )
        logger.info(
            "Starting MCP server over HTTP",
            extra={
                "extra_fields": {
                    "host": self.config.host,
                    "port": self.config.port,
                    "wallet_address": self.wallet_address,
                }
            },
        )
        try:
            await server.serve()
        finally:
            await self.client.aclose()
