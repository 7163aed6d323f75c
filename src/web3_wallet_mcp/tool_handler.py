"""Tool dispatch: validate arguments, run the tool, time it."""

import asyncio
import logging
from functools import partial
from typing import Optional

from .errors import ErrorKind, MCPError, classify_exception, log_level_for
from .ethereum_client import EthereumClient
from .logging_config import RequestContext, log_tool_call, log_tool_result
from .models import ToolCall, ToolResult
from .tools import get_balance, get_token_price, swap_tokens
from .validation import validate_tool_parameters

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 60.0


class ToolHandler:
    """Maps tool names to their implementations.

    Arguments are validated before any network call; every call then runs
    under a single ``tool_timeout`` deadline.
    """

    def __init__(self, client: EthereumClient, tool_timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.client = client
        self.tool_timeout = tool_timeout
        self._init_tool_handlers()

    def _init_tool_handlers(self) -> None:
        self._tool_handlers = {
            "get_balance": partial(get_balance, self.client),
            "get_token_price": partial(get_token_price, self.client),
            "swap_tokens": partial(swap_tokens, self.client),
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._tool_handlers)

    async def handle_tool_call(
        self, tool_call: ToolCall, request_id: Optional[str] = None
    ) -> ToolResult:
        """Run one tool call.

        Raises:
            MCPError: validation, execution or timeout failure, already
                classified.
        """
        ctx = RequestContext(method="tools/call")
        if request_id:
            ctx.request_id = request_id
        name = tool_call.name
        log_tool_call(ctx, name, tool_call.arguments)

        try:
            handler = self._tool_handlers.get(name)
            if handler is None:
                raise MCPError(ErrorKind.VALIDATION_ERROR, f"Unknown tool: {name}")
            params = validate_tool_parameters(name, tool_call.arguments)
            try:
                result = await asyncio.wait_for(handler(params), timeout=self.tool_timeout)
            except asyncio.TimeoutError as exc:
                raise MCPError(
                    ErrorKind.TIMEOUT, f"{name} did not finish within {self.tool_timeout}s"
                ) from exc
        except Exception as exc:
            error = classify_exception(exc)
            log_tool_result(
                ctx,
                name,
                success=False,
                error=str(error),
                level=log_level_for(error.severity()),
            )
            if error is exc:
                raise
            raise error from exc

        log_tool_result(ctx, name, success=True)
        return result
