"""Static tool manifest returned by ``tools/list``."""

import copy
from typing import Any

_ADDRESS_HINT = "Must be a 0x-prefixed, 40 hex character Ethereum address."

_TOOL_DEFINITIONS: tuple[dict[str, Any], ...] = (
    {
        "name": "get_balance",
        "description": (
            "Get ETH and ERC20 token balances for a wallet address. Without a "
            "token_address the balances of USDC, USDT and WETH are included; "
            "tokens that cannot be read are left out."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "address": {
                    "type": "string",
                    "description": f"Wallet address to query. {_ADDRESS_HINT}",
                },
                "token_address": {
                    "type": "string",
                    "description": (
                        f"Optional token contract address. {_ADDRESS_HINT}"
                    ),
                },
            },
            "required": ["address"],
        },
    },
    {
        "name": "get_token_price",
        "description": (
            "Get the current USD price of a token, looked up by contract address."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "token_address": {
                    "type": "string",
                    "description": f"Token contract address. {_ADDRESS_HINT}",
                },
            },
            "required": ["token_address"],
        },
    },
    {
        "name": "swap_tokens",
        "description": (
            "Simulate a token swap on Uniswap. Quotes the trade across the "
            "0.3%, 0.05% and 1% fee tiers, applies the slippage tolerance to "
            "the output and estimates gas. Nothing is signed or broadcast."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "from_token": {
                    "type": "string",
                    "description": f"Source token contract address. {_ADDRESS_HINT}",
                },
                "to_token": {
                    "type": "string",
                    "description": (
                        f"Destination token contract address. {_ADDRESS_HINT}"
                    ),
                },
                "amount": {
                    "type": "string",
                    "description": (
                        "Amount to swap as a decimal string (e.g. '100.5'). Must be "
                        "positive and at most 1000000000."
                    ),
                },
                "slippage_tolerance": {
                    "type": "string",
                    "description": (
                        "Slippage tolerance percentage between 0 and 50 "
                        "(default: 0.5)."
                    ),
                },
            },
            "required": ["from_token", "to_token", "amount"],
        },
    },
)


def tool_definitions() -> list[dict[str, Any]]:
    """Return a fresh copy of the manifest for one response."""
    return copy.deepcopy(list(_TOOL_DEFINITIONS))
