"""Swap simulation tool. Nothing is signed or broadcast."""

import logging

from ..ethereum_client import EthereumClient
from ..models import ToolResult
from ..validation import SwapTokensParams

logger = logging.getLogger(__name__)


async def swap_tokens(client: EthereumClient, params: SwapTokensParams) -> ToolResult:
    simulation = await client.simulate_swap(
        params.from_token,
        params.to_token,
        params.amount,
        params.slippage_tolerance,
    )
    logger.info(
        "Token swap simulation completed successfully",
        extra={
            "extra_fields": {
                "from_token": params.from_token,
                "to_token": params.to_token,
                "amount_in": str(simulation.amount_in),
                "amount_out": str(simulation.amount_out),
                "gas_estimate": simulation.gas_estimate,
            }
        },
    )
    return ToolResult(content=simulation.to_dict())
