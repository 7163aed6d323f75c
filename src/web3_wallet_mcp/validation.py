"""Input validation helpers."""

import re
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ErrorKind, MCPError

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
PRIVATE_KEY_RE = re.compile(r"^(0x)?[a-fA-F0-9]{64}$")
DECIMAL_RE = re.compile(r"^-?[0-9]+(\.[0-9]+)?$")

MAX_AMOUNT = Decimal(1_000_000_000)
MAX_SLIPPAGE = Decimal(50)
DEFAULT_SLIPPAGE = Decimal("0.5")


def validate_address(address: str) -> str:
    if not address:
        raise MCPError(ErrorKind.INVALID_ADDRESS, "Address cannot be empty")
    if not ADDRESS_RE.fullmatch(address):
        raise MCPError(
            ErrorKind.INVALID_ADDRESS, f"Invalid Ethereum address format: {address}"
        )
    return address


def validate_private_key(private_key: str) -> str:
    # Format only; the key never signs anything.
    if not private_key:
        raise MCPError(ErrorKind.INVALID_PRIVATE_KEY, "Private key cannot be empty")
    if not PRIVATE_KEY_RE.fullmatch(private_key):
        raise MCPError(ErrorKind.INVALID_PRIVATE_KEY, "Invalid private key format")
    return private_key


def _parse_decimal(value: str, kind: ErrorKind, label: str) -> Decimal:
    if not value:
        raise MCPError(kind, f"{label} cannot be empty")
    # Plain decimal notation only.
    if not DECIMAL_RE.fullmatch(value):
        raise MCPError(kind, f"Invalid {label.lower()} format '{value}'")
    return Decimal(value)


def validate_amount(amount: str) -> Decimal:
    value = _parse_decimal(amount, ErrorKind.INVALID_AMOUNT, "Amount")
    if value <= 0:
        raise MCPError(ErrorKind.INVALID_AMOUNT, f"Amount must be positive: {amount}")
    if value > MAX_AMOUNT:
        raise MCPError(ErrorKind.INVALID_AMOUNT, f"Amount too large: {amount}")
    return value


def validate_slippage(slippage: str) -> Decimal:
    value = _parse_decimal(slippage, ErrorKind.INVALID_SLIPPAGE, "Slippage")
    if value < 0:
        raise MCPError(
            ErrorKind.INVALID_SLIPPAGE, f"Slippage cannot be negative: {slippage}"
        )
    if value > MAX_SLIPPAGE:
        raise MCPError(
            ErrorKind.INVALID_SLIPPAGE, f"Slippage too high (max 50%): {slippage}"
        )
    return value


def validate_rpc_url(url: str) -> str:
    if not url:
        raise MCPError(ErrorKind.CONFIGURATION_ERROR, "RPC URL cannot be empty")
    if not url.startswith(("http://", "https://")):
        raise MCPError(ErrorKind.CONFIGURATION_ERROR, f"Invalid RPC URL format: {url}")
    return url


def validate_config(rpc_url: str, private_key: str) -> None:
    validate_rpc_url(rpc_url)
    validate_private_key(private_key)


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise MCPError(
            ErrorKind.INVALID_PARAMETER_TYPE, f"{field} must be a decimal string"
        )
    return value


class GetBalanceParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    token_address: Optional[str] = None

    @field_validator("address", "token_address")
    @classmethod
    def validate_addresses(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return validate_address(value)


class GetTokenPriceParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    token_address: str

    @field_validator("token_address")
    @classmethod
    def validate_token_address(cls, value: str) -> str:
        return validate_address(value)


class SwapTokensParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_token: str
    to_token: str
    amount: Decimal
    slippage_tolerance: Decimal = DEFAULT_SLIPPAGE

    @field_validator("from_token", "to_token")
    @classmethod
    def validate_tokens(cls, value: str) -> str:
        return validate_address(value)

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> Decimal:
        return validate_amount(_require_str(value, "amount"))

    @field_validator("slippage_tolerance", mode="before")
    @classmethod
    def check_slippage(cls, value: Any) -> Decimal:
        if value is None:
            return DEFAULT_SLIPPAGE
        return validate_slippage(_require_str(value, "slippage_tolerance"))


TOOL_PARAMS: dict[str, type[BaseModel]] = {
    "get_balance": GetBalanceParams,
    "get_token_price": GetTokenPriceParams,
    "swap_tokens": SwapTokensParams,
}


def validate_tool_parameters(tool_name: str, arguments: dict[str, Any]) -> BaseModel:
    """Check a tool's arguments and return them as a typed params model.

    Value errors surface with their own kind (``InvalidAddress``,
    ``InvalidAmount``...); structural problems become ``MissingParameter`` or
    ``InvalidParameterType``.
    """
    model = TOOL_PARAMS.get(tool_name)
    if model is None:
        raise MCPError(ErrorKind.VALIDATION_ERROR, f"Unknown tool: {tool_name}")
    try:
        return model.model_validate(arguments or {})
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(loc) for loc in first.get("loc", ())) or tool_name
        if first.get("type") == "missing":
            raise MCPError(ErrorKind.MISSING_PARAMETER, field) from exc
        raise MCPError(
            ErrorKind.INVALID_PARAMETER_TYPE, f"{field}: {first.get('msg')}"
        ) from exc
