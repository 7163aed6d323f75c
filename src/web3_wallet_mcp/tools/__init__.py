"""MCP tools for Ethereum wallet queries."""

from .schemas import tool_definitions
from .swap_tools import swap_tokens
from .wallet_tools import get_balance, get_token_price

__all__ = [
    "tool_definitions",
    "get_balance",
    "get_token_price",
    "swap_tokens",
]
