"""Configuration helpers for the web3 wallet MCP server."""

import os
from dataclasses import dataclass
from typing import Optional

from eth_account import Account

from .errors import MCPError
from .validation import validate_config, validate_private_key

ALCHEMY_RPC_URL = "https://eth-mainnet.g.alchemy.com/v2/{api_key}"
ALCHEMY_PRICE_URL = "https://api.g.alchemy.com/prices/v1/{api_key}/tokens/by-address"

# secp256k1 group order; keys outside [1, n) cannot be loaded
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _require_env(key: str, message: str) -> str:
    value = os.getenv(key)
    if not value:
        raise ValueError(message)
    return value


def _number_from_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(slots=True)
class WalletConfig:
    private_key: str
    rpc_url: str
    price_api_url: Optional[str] = None
    price_network: str = "eth-mainnet"
    wallet_address: Optional[str] = None
    rpc_timeout: float = 30.0
    tool_timeout: float = 60.0
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "WalletConfig":
        private_key = _require_env(
            "PRIVATE_KEY",
            "PRIVATE_KEY environment variable is required. It is format-checked "
            "only and never used to sign transactions.",
        ).strip()
        api_key = os.getenv("ALCHEMY_API_KEY")

        rpc_url = os.getenv("ETHEREUM_RPC_URL")
        if not rpc_url:
            if not api_key:
                raise ValueError(
                    "ETHEREUM_RPC_URL or ALCHEMY_API_KEY environment variable is required."
                )
            rpc_url = ALCHEMY_RPC_URL.format(api_key=api_key)

        price_api_url = os.getenv("PRICE_API_URL")
        if not price_api_url and api_key:
            price_api_url = ALCHEMY_PRICE_URL.format(api_key=api_key)

        return cls(
            private_key=private_key,
            rpc_url=rpc_url,
            price_api_url=price_api_url,
            price_network=os.getenv("PRICE_NETWORK") or "eth-mainnet",
            wallet_address=cls._derive_wallet_address(private_key),
            rpc_timeout=_number_from_env("RPC_TIMEOUT", 30.0),
            tool_timeout=_number_from_env("TOOL_TIMEOUT", 60.0),
            host=os.getenv("MCP_HOST") or "0.0.0.0",
            port=int(_number_from_env("MCP_PORT", 3000)),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            log_format=(os.getenv("LOG_FORMAT") or "text").lower(),
        )

    @staticmethod
    def _derive_wallet_address(private_key: str) -> Optional[str]:
        """Address for display; ``None`` when the key is not a usable secp256k1 key."""
        try:
            validate_private_key(private_key)
        except MCPError:
            return None
        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        if not 0 < int(key, 16) < SECP256K1_N:
            return None
        return Account.from_key(key).address

    def validate(self) -> None:
        try:
            validate_config(self.rpc_url, self.private_key)
        except MCPError as exc:
            raise ValueError(str(exc)) from exc
        if self.price_api_url is not None and not self.price_api_url.startswith(
            ("http://", "https://")
        ):
            raise ValueError(f"Invalid PRICE_API_URL format: {self.price_api_url}")
        if self.log_format not in {"text", "json"}:
            raise ValueError(
                f"LOG_FORMAT must be 'text' or 'json', got {self.log_format!r}"
            )


def load_config() -> WalletConfig:
    config = WalletConfig.from_env()
    config.validate()
    return config
