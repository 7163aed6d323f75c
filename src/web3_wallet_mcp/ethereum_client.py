"""Ethereum reads, price lookup and swap simulation."""

import logging
import time
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Any, Optional

import httpx
from eth_utils import encode_hex, is_hex_address

from . import abi
from .config import WalletConfig
from .errors import ErrorKind, MCPError
from .models import BalanceInfo, PriceInfo, SwapSimulation, TokenBalance, TokenMetadata
from .rpc_transport import RpcTransport
from .tokens import (
    COMMON_TOKENS,
    PLACEHOLDER_SENDER,
    UNISWAP_V2_ROUTER,
    UNISWAP_V3_QUOTER,
    known_token_info,
)
from .validation import validate_config

logger = logging.getLogger(__name__)

ETH_DECIMALS = 18
# Ordered by typical liquidity; the first tier with a non-zero quote wins.
FEE_TIERS: tuple[int, ...] = (3000, 500, 10000)
FALLBACK_GAS_ESTIMATE = 200_000
SWAP_DEADLINE_SECONDS = 3600
PRICE_API_TIMEOUT = 10.0
MAX_UINT256 = (1 << 256) - 1

# Enough digits for any uint256 scaled by any decimals value we accept.
_SCALE_PRECISION = 100


def scale_down(raw: int, decimals: int) -> Decimal:
    """``raw / 10**decimals`` as an exact Decimal."""
    with localcontext() as ctx:
        ctx.prec = _SCALE_PRECISION
        return Decimal(raw) / (Decimal(10) ** decimals)


def scale_up(amount: Decimal, decimals: int) -> int:
    """Human amount to smallest units, truncating excess precision."""
    with localcontext() as ctx:
        ctx.prec = _SCALE_PRECISION
        return int(amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN))


def apply_slippage(amount: Decimal, slippage: Decimal) -> Decimal:
    """Guaranteed minimum output for a slippage tolerance given in percent."""
    with localcontext() as ctx:
        ctx.prec = _SCALE_PRECISION
        return amount * (Decimal(100) - slippage) / Decimal(100)


def _fields(**values: Any) -> dict[str, Any]:
    return {"extra_fields": values}


class EthereumClient:
    """Read-only Ethereum operations behind the wallet tools.

    Holds only configuration and the node transport, so one instance can
    serve concurrent tool calls.
    """

    def __init__(
        self,
        rpc: RpcTransport,
        price_api_url: Optional[str] = None,
        price_network: str = "eth-mainnet",
        quoter_address: str = UNISWAP_V3_QUOTER,
        router_address: str = UNISWAP_V2_ROUTER,
    ) -> None:
        self.rpc = rpc
        self.price_api_url = price_api_url
        self.price_network = price_network
        self.quoter_address = quoter_address
        self.router_address = router_address

    @classmethod
    def from_config(cls, config: WalletConfig) -> "EthereumClient":
        validate_config(config.rpc_url, config.private_key)
        client = cls(
            RpcTransport(config.rpc_url, timeout=config.rpc_timeout),
            price_api_url=config.price_api_url,
            price_network=config.price_network,
        )
        logger.info("Ethereum client initialized successfully")
        return client

    async def aclose(self) -> None:
        await self.rpc.aclose()

    # Balances

    async def get_balance(
        self, address: str, token_address: Optional[str] = None
    ) -> BalanceInfo:
        if not is_hex_address(address):
            raise MCPError(ErrorKind.INVALID_ADDRESS, address)

        wei = await self.rpc.get_balance(address)
        eth_balance = scale_down(wei, ETH_DECIMALS)
        logger.info(
            "ETH balance retrieved",
            extra=_fields(address=address, eth_balance_wei=wei, eth_balance=str(eth_balance)),
        )

        token_balances: dict[str, TokenBalance] = {}
        if token_address:
            token_balances[token_address] = await self.get_token_balance(
                address, token_address
            )
        else:
            # One token at a time; a failing token is skipped.
            for contract in COMMON_TOKENS:
                try:
                    token_balances[contract] = await self.get_token_balance(
                        address, contract
                    )
                except MCPError as exc:
                    logger.warning(
                        "Skipping token balance",
                        extra=_fields(token_address=contract, error=str(exc)),
                    )

        logger.info(
            "Balance information retrieved successfully",
            extra=_fields(address=address, token_count=len(token_balances)),
        )
        return BalanceInfo(
            address=address, eth_balance=eth_balance, token_balances=token_balances
        )

    async def get_token_balance(self, wallet: str, token_address: str) -> TokenBalance:
        if not is_hex_address(token_address):
            raise MCPError(ErrorKind.INVALID_TOKEN_CONTRACT, token_address)

        try:
            metadata = await self.get_token_metadata(token_address)
        except MCPError as exc:
            logger.warning(
                "Failed to get token info dynamically, using known tokens",
                extra=_fields(token_address=token_address, error=str(exc)),
            )
            metadata = known_token_info(token_address)

        data = await self.rpc.call(
            token_address, abi.encode_call(abi.BALANCE_OF, [wallet])
        )
        if not data:
            raise MCPError(ErrorKind.CONTRACT_NOT_FOUND, token_address)
        raw = abi.decode_uint(data)

        return TokenBalance(
            contract_address=token_address,
            symbol=metadata.symbol,
            name=metadata.name,
            decimals=metadata.decimals,
            balance=Decimal(raw),
            balance_formatted=str(scale_down(raw, metadata.decimals)),
        )

    async def get_token_metadata(self, token_address: str) -> TokenMetadata:
        """Live ``name()``, ``symbol()`` and ``decimals()`` reads."""
        name = abi.decode_string(await self._call_view(token_address, abi.NAME))
        symbol = abi.decode_string(await self._call_view(token_address, abi.SYMBOL))
        decimals = abi.decode_uint(await self._call_view(token_address, abi.DECIMALS))
        if decimals > 255:
            raise MCPError(
                ErrorKind.INVALID_CONTRACT_ABI,
                f"decimals() returned {decimals} for {token_address}",
            )
        return TokenMetadata(name=name, symbol=symbol, decimals=decimals)

    async def _call_view(self, to: str, signature: str) -> bytes:
        data = await self.rpc.call(to, abi.encode_call(signature))
        if not data:
            raise MCPError(ErrorKind.CONTRACT_NOT_FOUND, f"{to} has no {signature}")
        return data

    # Prices

    async def get_token_price(self, token_address: str) -> PriceInfo:
        logger.info(
            "Fetching token price", extra=_fields(token_address=token_address)
        )
        symbol = known_token_info(token_address).symbol
        price_usd = await self._fetch_usd_price(token_address)
        logger.info(
            "Token price fetched",
            extra=_fields(
                token_address=token_address, symbol=symbol, price_usd=str(price_usd)
            ),
        )
        return PriceInfo(token_address=token_address, symbol=symbol, price_usd=price_usd)

    async def _fetch_usd_price(self, token_address: str) -> Decimal:
        if not self.price_api_url:
            raise MCPError(ErrorKind.CONFIGURATION_ERROR, "Price API URL is not configured")

        body = {"addresses": [{"network": self.price_network, "address": token_address}]}
        try:
            response = await self.rpc.http_client.post(
                self.price_api_url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=PRICE_API_TIMEOUT,
            )
        except httpx.TimeoutException as exc:
            raise MCPError(ErrorKind.TIMEOUT, "Price API request timed out") from exc
        except httpx.HTTPError as exc:
            raise MCPError(
                ErrorKind.NETWORK_ERROR, f"Failed to call price API: {exc}"
            ) from exc

        if response.status_code == 429:
            raise MCPError(ErrorKind.API_RATE_LIMIT_EXCEEDED, "Price API rate limit hit")
        if not response.is_success:
            raise MCPError(
                ErrorKind.PRICE_FETCH_FAILED,
                f"Price API returned status: {response.status_code}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise MCPError(
                ErrorKind.PRICE_FETCH_FAILED, f"Failed to parse price API response: {exc}"
            ) from exc

        value = self._first_price_value(payload)
        if value is None:
            raise MCPError(
                ErrorKind.PRICE_FETCH_FAILED, "No price data found in price API response"
            )
        try:
            price = Decimal(value)
        except InvalidOperation as exc:
            raise MCPError(
                ErrorKind.INVALID_PRICE_DATA, f"Failed to parse price value {value!r}"
            ) from exc
        if not price.is_finite():
            raise MCPError(ErrorKind.INVALID_PRICE_DATA, f"Non-finite price {value!r}")
        return price

    @staticmethod
    def _first_price_value(payload: Any) -> Optional[str]:
        """``data[0].prices[0].value`` if every step exists."""
        if not isinstance(payload, dict):
            return None
        data = payload.get("data")
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None
        prices = data[0].get("prices")
        if not isinstance(prices, list) or not prices or not isinstance(prices[0], dict):
            return None
        value = prices[0].get("value")
        return value if isinstance(value, str) else None

    # Swaps

    async def simulate_swap(
        self,
        from_token: str,
        to_token: str,
        amount: Decimal,
        slippage: Decimal,
    ) -> SwapSimulation:
        logger.info(
            "Starting Uniswap V3 swap simulation",
            extra=_fields(
                from_token=from_token,
                to_token=to_token,
                amount=str(amount),
                slippage=str(slippage),
            ),
        )
        for token in (from_token, to_token):
            if not is_hex_address(token):
                raise MCPError(ErrorKind.INVALID_TOKEN_CONTRACT, token)

        gas_price = scale_down(await self.rpc.gas_price(), ETH_DECIMALS)

        from_decimals = known_token_info(from_token).decimals
        to_decimals = known_token_info(to_token).decimals

        amount_in_raw = scale_up(amount, from_decimals)
        if amount_in_raw > MAX_UINT256:
            raise MCPError(ErrorKind.INVALID_AMOUNT, f"Amount too large: {amount}")

        amount_out_raw = await self.best_quote(from_token, to_token, amount_in_raw)
        amount_out = scale_down(amount_out_raw, to_decimals)
        final_amount_out = apply_slippage(amount_out, slippage)

        gas_estimate = await self.estimate_swap_gas(from_token, to_token, amount_in_raw)
        total_cost = Decimal(gas_estimate) * gas_price

        simulation = SwapSimulation(
            from_token=from_token,
            to_token=to_token,
            amount_in=amount,
            amount_out=final_amount_out,
            gas_estimate=gas_estimate,
            gas_price=gas_price,
            total_cost=total_cost,
            route=[from_token, to_token],
            slippage_tolerance=slippage,
        )
        logger.info(
            "Swap simulation completed successfully",
            extra=_fields(
                amount_in=str(amount),
                amount_out=str(final_amount_out),
                gas_estimate=gas_estimate,
            ),
        )
        return simulation

    async def best_quote(self, token_in: str, token_out: str, amount_in_raw: int) -> int:
        """Raw output of the first fee tier that quotes a non-zero amount."""
        for fee in FEE_TIERS:
            try:
                quoted = await self.quote_exact_input_single(
                    token_in, token_out, fee, amount_in_raw
                )
            except MCPError as exc:
                logger.debug("V3 quoter failed", extra=_fields(fee=fee, error=str(exc)))
                continue
            if quoted > 0:
                logger.info(
                    "V3 quoter success", extra=_fields(fee=fee, amount_out_raw=quoted)
                )
                return quoted
            logger.debug("V3 quoter returned zero", extra=_fields(fee=fee))
        raise MCPError(
            ErrorKind.SWAP_SIMULATION_FAILED, "Uniswap V3 quoter failed on all fee tiers"
        )

    async def quote_exact_input_single(
        self, token_in: str, token_out: str, fee: int, amount_in_raw: int
    ) -> int:
        # sqrtPriceLimitX96 = 0: no price limit
        data = abi.encode_call(
            abi.QUOTE_EXACT_INPUT_SINGLE, [token_in, token_out, fee, amount_in_raw, 0]
        )
        result = await self.rpc.call(self.quoter_address, data)
        if len(result) < abi.WORD_SIZE:
            raise MCPError(ErrorKind.SWAP_SIMULATION_FAILED, "Invalid V3 quoter response")
        return abi.decode_uint(result)

    async def estimate_swap_gas(
        self, from_token: str, to_token: str, amount_in_raw: int
    ) -> int:
        """Node gas estimate for a never-sent router swap, or the fallback."""
        deadline = int(time.time()) + SWAP_DEADLINE_SECONDS
        data = abi.encode_call(
            abi.SWAP_EXACT_TOKENS_FOR_TOKENS,
            [amount_in_raw, 0, [from_token, to_token], PLACEHOLDER_SENDER, deadline],
        )
        transaction = {
            "from": PLACEHOLDER_SENDER,
            "to": self.router_address.lower(),
            "data": encode_hex(data),
        }
        try:
            gas = await self.rpc.estimate_gas(transaction)
        except MCPError as exc:
            logger.warning(
                "Gas estimation failed, using fallback estimate",
                extra=_fields(error=str(exc), fallback=FALLBACK_GAS_ESTIMATE),
            )
            return FALLBACK_GAS_ESTIMATE
        logger.info("Gas estimation completed", extra=_fields(gas_estimate=gas))
        return gas
