"""Data models for the MCP server."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 metadata, either live or from the well-known table."""

    name: str
    symbol: str
    decimals: int


@dataclass
class TokenBalance:
    """ERC-20 holding of a wallet."""

    contract_address: str
    symbol: str
    name: str
    decimals: int
    balance: Decimal  # raw, smallest unit
    balance_formatted: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_address": self.contract_address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "balance": str(self.balance),
            "balance_formatted": self.balance_formatted,
        }


@dataclass
class BalanceInfo:
    """Native and token balances of a wallet."""

    address: str
    eth_balance: Decimal
    token_balances: dict[str, TokenBalance] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "eth_balance": str(self.eth_balance),
            "token_balances": {
                contract: balance.to_dict()
                for contract, balance in self.token_balances.items()
            },
        }


@dataclass
class PriceInfo:
    token_address: str
    symbol: str
    price_usd: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_address": self.token_address,
            "symbol": self.symbol,
            "price_usd": str(self.price_usd),
        }


@dataclass
class SwapSimulation:
    """Quoted trade. ``amount_out`` is the minimum after slippage."""

    from_token: str
    to_token: str
    amount_in: Decimal
    amount_out: Decimal
    gas_estimate: int
    gas_price: Decimal  # native units per gas
    total_cost: Decimal
    route: list[str]
    slippage_tolerance: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_token": self.from_token,
            "to_token": self.to_token,
            "amount_in": str(self.amount_in),
            "amount_out": str(self.amount_out),
            "gas_estimate": self.gas_estimate,
            "gas_price": str(self.gas_price),
            "total_cost": str(self.total_cost),
            "route": list(self.route),
            "slippage_tolerance": str(self.slippage_tolerance),
        }


class ToolCall(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    content: Any = None
    is_error: bool = False


class MCPRequest(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    method: str
    params: Optional[dict[str, Any]] = None


class MCPErrorResponse(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class MCPResponse(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Optional[dict[str, Any]] = None
    error: Optional[MCPErrorResponse] = None

    @model_validator(mode="after")
    def validate_result_xor_error(self):
        if (self.result is None) == (self.error is None):
            raise ValueError("Exactly one of result or error must be set")
        return self
