"""Read-only wallet tools: balances and prices."""

import logging

from ..ethereum_client import EthereumClient
from ..models import ToolResult
from ..validation import GetBalanceParams, GetTokenPriceParams

logger = logging.getLogger(__name__)


async def get_balance(client: EthereumClient, params: GetBalanceParams) -> ToolResult:
    logger.info(
        "Fetching balance information",
        extra={
            "extra_fields": {
                "address": params.address,
                "token_address": params.token_address or "all",
            }
        },
    )
    balance_info = await client.get_balance(params.address, params.token_address)
    return ToolResult(content=balance_info.to_dict())


async def get_token_price(
    client: EthereumClient, params: GetTokenPriceParams
) -> ToolResult:
    price_info = await client.get_token_price(params.token_address)
    return ToolResult(content=price_info.to_dict())
