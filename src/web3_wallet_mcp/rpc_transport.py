"""JSON-RPC over HTTP transport for the Ethereum node."""

import logging
from typing import Any, Optional

import httpx
from eth_utils import decode_hex, encode_hex

from .errors import ErrorKind, MCPError

logger = logging.getLogger(__name__)


def parse_quantity(value: Any, method: str) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MCPError(ErrorKind.ETHEREUM_RPC, f"{method} returned a non-hex quantity: {value!r}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise MCPError(
            ErrorKind.ETHEREUM_RPC, f"{method} returned a non-hex quantity: {value!r}"
        ) from exc


class RpcTransport:
    """Thin async client for the node's JSON-RPC endpoint.

    Holds only the endpoint and a pooled HTTP client; safe to share between
    concurrent tool calls.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC call and return its ``result`` member."""
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}
        logger.debug("RPC request", extra={"extra_fields": {"rpc_method": method}})
        try:
            response = await self.http_client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise MCPError(ErrorKind.RPC_TIMEOUT, f"{method} timed out") from exc
        except httpx.HTTPError as exc:
            raise MCPError(
                ErrorKind.NETWORK_ERROR, f"Failed to call {method}: {exc}"
            ) from exc

        if response.status_code == 429:
            raise MCPError(ErrorKind.RATE_LIMIT_EXCEEDED, f"{method} was rate limited")
        if response.status_code >= 400:
            raise MCPError(
                ErrorKind.NETWORK_ERROR,
                f"{method} returned HTTP status {response.status_code}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise MCPError(
                ErrorKind.NETWORK_ERROR, f"Failed to parse {method} response: {exc}"
            ) from exc
        if not isinstance(body, dict):
            raise MCPError(ErrorKind.ETHEREUM_RPC, f"Malformed {method} response")

        error = body.get("error")
        if error is not None:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise MCPError(ErrorKind.ETHEREUM_RPC, f"{method} failed: {message}")
        if "result" not in body:
            raise MCPError(ErrorKind.ETHEREUM_RPC, f"No result in {method} response")
        return body["result"]

    async def get_balance(self, address: str, block: str = "latest") -> int:
        result = await self.request("eth_getBalance", [address, block])
        return parse_quantity(result, "eth_getBalance")

    async def gas_price(self) -> int:
        result = await self.request("eth_gasPrice", [])
        return parse_quantity(result, "eth_gasPrice")

    async def call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        result = await self.request(
            "eth_call", [{"to": to.lower(), "data": encode_hex(data)}, block]
        )
        if not isinstance(result, str):
            raise MCPError(ErrorKind.ETHEREUM_RPC, f"eth_call returned {result!r}")
        try:
            return decode_hex(result)
        except ValueError as exc:
            raise MCPError(
                ErrorKind.ETHEREUM_RPC, f"Failed to decode eth_call result: {exc}"
            ) from exc

    async def estimate_gas(self, transaction: dict[str, str]) -> int:
        result = await self.request("eth_estimateGas", [transaction])
        return parse_quantity(result, "eth_estimateGas")

    async def chain_id(self) -> int:
        result = await self.request("eth_chainId", [])
        return parse_quantity(result, "eth_chainId")

    async def validate_connection(self) -> bool:
        try:
            return await self.chain_id() > 0
        except MCPError as exc:
            raise ConnectionError(
                f"Failed to connect to Ethereum node: {exc}"
            ) from exc

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
