"""JSON-RPC method routing for ``tools/list`` and ``tools/call``."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import ErrorHandler, ErrorKind, INTERNAL_ERROR_CODE, MCPError
from .logging_config import RequestContext, log_request_complete, log_request_start
from .models import (
    JSONRPC_VERSION,
    MCPErrorResponse,
    MCPRequest,
    MCPResponse,
    ToolCall,
)
from .tool_handler import ToolHandler
from .tools import tool_definitions

logger = logging.getLogger(__name__)


class RequestRouter:
    """Turns request envelopes into response envelopes.

    ``handle_request`` never raises; every failure comes back as an error
    response.
    """

    def __init__(self, tool_handler: ToolHandler):
        self.tool_handler = tool_handler
        self._methods = {
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
        }

    async def handle_raw(self, payload: Any) -> MCPResponse:
        """Parse an undecoded envelope, then route it."""
        try:
            request = MCPRequest.model_validate(payload)
        except PydanticValidationError as exc:
            response_id = payload.get("id") if isinstance(payload, dict) else None
            error = MCPError(
                ErrorKind.INVALID_JSON_RPC_REQUEST,
                "; ".join(
                    f"{'.'.join(str(loc) for loc in item['loc']) or 'request'}: {item['msg']}"
                    for item in exc.errors()
                ),
            )
            return ErrorHandler.handle_error(error, response_id=response_id)
        return await self.handle_request(request)

    async def handle_request(self, request: MCPRequest) -> MCPResponse:
        ctx = RequestContext(method=request.method)
        log_request_start(ctx)

        try:
            if request.jsonrpc != JSONRPC_VERSION:
                raise MCPError(
                    ErrorKind.INVALID_JSON_RPC_REQUEST,
                    f"Unsupported jsonrpc version: {request.jsonrpc!r}",
                )
            handler = self._methods.get(request.method)
            if handler is None:
                raise MCPError(ErrorKind.METHOD_NOT_FOUND, request.method)
            response = await handler(request, ctx)
        except Exception as exc:
            response = ErrorHandler.handle_error(
                exc, request_id=ctx.request_id, response_id=request.id
            )

        log_request_complete(ctx, response.error is None)
        return response

    async def _handle_tools_list(
        self, request: MCPRequest, ctx: RequestContext
    ) -> MCPResponse:
        logger.debug(
            "Handling tools/list request",
            extra={"extra_fields": {"request_id": ctx.request_id}},
        )
        return MCPResponse(id=request.id, result={"tools": tool_definitions()})

    async def _handle_tools_call(
        self, request: MCPRequest, ctx: RequestContext
    ) -> MCPResponse:
        try:
            tool_call = ToolCall.model_validate(request.params or {})
        except PydanticValidationError as exc:
            raise MCPError(
                ErrorKind.JSON_RPC, f"Invalid tool call parameters: {exc.errors()[0]['msg']}"
            ) from exc
        ctx.with_metadata("tool_name", tool_call.name)

        result = await self.tool_handler.handle_tool_call(
            tool_call, request_id=ctx.request_id
        )
        if result.is_error:
            return MCPResponse(
                id=request.id,
                error=MCPErrorResponse(
                    code=INTERNAL_ERROR_CODE,
                    message="Tool execution failed",
                    data=result.content,
                ),
            )
        return MCPResponse(id=request.id, result={"content": result.content})
