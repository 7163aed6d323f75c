"""Error taxonomy, recovery metadata and error-response handling."""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from .models import MCPErrorResponse, MCPResponse

logger = logging.getLogger(__name__)


class ErrorSeverity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to callers."""

    # JSON-RPC
    JSON_RPC = "JsonRpc"
    INVALID_JSON_RPC_REQUEST = "InvalidJsonRpcRequest"
    METHOD_NOT_FOUND = "MethodNotFound"
    MISSING_PARAMETER = "MissingParameter"
    INVALID_PARAMETER_TYPE = "InvalidParameterType"
    # Ethereum network
    ETHEREUM_RPC = "EthereumRpc"
    NETWORK_ERROR = "NetworkError"
    RPC_TIMEOUT = "RpcTimeout"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    # Addresses and contracts
    INVALID_ADDRESS = "InvalidAddress"
    INVALID_TOKEN_CONTRACT = "InvalidTokenContract"
    CONTRACT_NOT_FOUND = "ContractNotFound"
    INVALID_CONTRACT_ABI = "InvalidContractAbi"
    # Balances and transactions
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    TRANSACTION_FAILED = "TransactionFailed"
    SWAP_SIMULATION_FAILED = "SwapSimulationFailed"
    GAS_ESTIMATION_FAILED = "GasEstimationFailed"
    SLIPPAGE_TOO_HIGH = "SlippageTooHigh"
    # Prices
    PRICE_FETCH_FAILED = "PriceFetchFailed"
    API_RATE_LIMIT_EXCEEDED = "ApiRateLimitExceeded"
    INVALID_PRICE_DATA = "InvalidPriceData"
    TOKEN_NOT_FOUND = "TokenNotFound"
    # Wallet
    WALLET_ERROR = "WalletError"
    INVALID_PRIVATE_KEY = "InvalidPrivateKey"
    SIGNING_FAILED = "SigningFailed"
    WALLET_NOT_INITIALIZED = "WalletNotInitialized"
    # Validation and configuration
    CONFIGURATION_ERROR = "ConfigurationError"
    VALIDATION_ERROR = "ValidationError"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_SLIPPAGE = "InvalidSlippage"
    # System
    SERIALIZATION = "Serialization"
    HTTP = "Http"
    PROVIDER = "Provider"
    IO = "Io"
    TIMEOUT = "Timeout"
    OTHER = "Other"


PARSE_ERROR_CODE = -32600
METHOD_NOT_FOUND_CODE = -32601
INVALID_PARAMS_CODE = -32602
INTERNAL_ERROR_CODE = -32603


@dataclass(frozen=True)
class KindSpec:
    label: str
    code: int
    severity: ErrorSeverity


_L, _M, _H = ErrorSeverity.LOW, ErrorSeverity.MEDIUM, ErrorSeverity.HIGH

KIND_SPECS: MappingProxyType = MappingProxyType(
    {
        ErrorKind.JSON_RPC: KindSpec("JSON-RPC error", PARSE_ERROR_CODE, _H),
        ErrorKind.INVALID_JSON_RPC_REQUEST: KindSpec(
            "Invalid JSON-RPC request", PARSE_ERROR_CODE, _H
        ),
        ErrorKind.METHOD_NOT_FOUND: KindSpec(
            "Method not found", METHOD_NOT_FOUND_CODE, _L
        ),
        ErrorKind.MISSING_PARAMETER: KindSpec(
            "Missing required parameter", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.INVALID_PARAMETER_TYPE: KindSpec(
            "Invalid parameter type", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.ETHEREUM_RPC: KindSpec("Ethereum RPC error", INTERNAL_ERROR_CODE, _H),
        ErrorKind.NETWORK_ERROR: KindSpec(
            "Network connection failed", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.RPC_TIMEOUT: KindSpec("RPC timeout", INTERNAL_ERROR_CODE, _H),
        ErrorKind.RATE_LIMIT_EXCEEDED: KindSpec(
            "Rate limit exceeded", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.INVALID_ADDRESS: KindSpec("Invalid address", INVALID_PARAMS_CODE, _M),
        ErrorKind.INVALID_TOKEN_CONTRACT: KindSpec(
            "Invalid token contract", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.CONTRACT_NOT_FOUND: KindSpec(
            "Contract not found", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.INVALID_CONTRACT_ABI: KindSpec(
            "Invalid contract ABI", INVALID_PARAMS_CODE, _H
        ),
        ErrorKind.INSUFFICIENT_BALANCE: KindSpec(
            "Insufficient balance", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.TRANSACTION_FAILED: KindSpec(
            "Transaction failed", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.SWAP_SIMULATION_FAILED: KindSpec(
            "Swap simulation failed", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.GAS_ESTIMATION_FAILED: KindSpec(
            "Gas estimation failed", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.SLIPPAGE_TOO_HIGH: KindSpec(
            "Slippage too high", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.PRICE_FETCH_FAILED: KindSpec(
            "Price fetch failed", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.API_RATE_LIMIT_EXCEEDED: KindSpec(
            "API rate limit exceeded", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.INVALID_PRICE_DATA: KindSpec(
            "Invalid price data", INTERNAL_ERROR_CODE, _M
        ),
        ErrorKind.TOKEN_NOT_FOUND: KindSpec("Token not found", INVALID_PARAMS_CODE, _M),
        ErrorKind.WALLET_ERROR: KindSpec("Wallet error", INTERNAL_ERROR_CODE, _H),
        ErrorKind.INVALID_PRIVATE_KEY: KindSpec(
            "Invalid private key", INVALID_PARAMS_CODE, _H
        ),
        ErrorKind.SIGNING_FAILED: KindSpec("Signing failed", INTERNAL_ERROR_CODE, _H),
        ErrorKind.WALLET_NOT_INITIALIZED: KindSpec(
            "Wallet not initialized", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.CONFIGURATION_ERROR: KindSpec(
            "Configuration error", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.VALIDATION_ERROR: KindSpec(
            "Validation failed", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.INVALID_AMOUNT: KindSpec("Invalid amount", INVALID_PARAMS_CODE, _M),
        ErrorKind.INVALID_SLIPPAGE: KindSpec(
            "Invalid slippage", INVALID_PARAMS_CODE, _M
        ),
        ErrorKind.SERIALIZATION: KindSpec(
            "Serialization error", INTERNAL_ERROR_CODE, _H
        ),
        ErrorKind.HTTP: KindSpec("HTTP error", INTERNAL_ERROR_CODE, _M),
        ErrorKind.PROVIDER: KindSpec("Provider error", INTERNAL_ERROR_CODE, _H),
        ErrorKind.IO: KindSpec("IO error", INTERNAL_ERROR_CODE, _M),
        ErrorKind.TIMEOUT: KindSpec("Timeout error", INTERNAL_ERROR_CODE, _M),
        ErrorKind.OTHER: KindSpec("Other error", INTERNAL_ERROR_CODE, _H),
    }
)

# error_type tag and the context key the detail is reported under
_CONTEXT_TAGS = MappingProxyType(
    {
        ErrorKind.ETHEREUM_RPC: ("ethereum_rpc", "message"),
        ErrorKind.NETWORK_ERROR: ("network", "message"),
        ErrorKind.INVALID_ADDRESS: ("validation", "invalid_address"),
        ErrorKind.INSUFFICIENT_BALANCE: ("balance", "message"),
    }
)


class MCPError(Exception):
    """The single exception type raised by the wallet tools.

    The kind selects code, severity and recovery policy from the lookup
    tables above; ``detail`` is the free-form part of the message.
    """

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(self.message)

    @property
    def spec(self) -> KindSpec:
        return KIND_SPECS[self.kind]

    @property
    def message(self) -> str:
        return f"{self.spec.label}: {self.detail}"

    def error_code(self) -> int:
        return self.spec.code

    def severity(self) -> ErrorSeverity:
        return self.spec.severity

    def context(self) -> dict[str, str]:
        if self.kind in _CONTEXT_TAGS:
            tag, key = _CONTEXT_TAGS[self.kind]
            return {"error_type": tag, key: self.detail}
        return {"error_type": "general", "message": self.message}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary format for tool responses."""
        return {
            "success": False,
            "error": self.message,
            "error_type": self.kind.value,
            "code": self.error_code(),
            "details": self.context(),
        }


class ErrorRecovery:
    """Advisory retry policy per error kind."""

    _RECOVERABLE = frozenset(
        {
            ErrorKind.NETWORK_ERROR,
            ErrorKind.RPC_TIMEOUT,
            ErrorKind.RATE_LIMIT_EXCEEDED,
            ErrorKind.API_RATE_LIMIT_EXCEEDED,
            ErrorKind.HTTP,
            ErrorKind.TIMEOUT,
        }
    )
    _RATE_LIMITS = frozenset(
        {ErrorKind.RATE_LIMIT_EXCEEDED, ErrorKind.API_RATE_LIMIT_EXCEEDED}
    )
    _BACKOFF_CAPS = MappingProxyType(
        {
            ErrorKind.NETWORK_ERROR: 5,
            ErrorKind.RPC_TIMEOUT: 3,
            ErrorKind.HTTP: 3,
        }
    )
    _MAX_RETRIES = MappingProxyType(
        {
            ErrorKind.NETWORK_ERROR: 5,
            ErrorKind.RPC_TIMEOUT: 3,
            ErrorKind.HTTP: 3,
            ErrorKind.RATE_LIMIT_EXCEEDED: 3,
            ErrorKind.API_RATE_LIMIT_EXCEEDED: 3,
        }
    )

    @classmethod
    def is_recoverable(cls, error: MCPError) -> bool:
        return error.kind in cls._RECOVERABLE

    @classmethod
    def retry_delay(cls, error: MCPError, attempt: int) -> int:
        """Seconds to wait before retry ``attempt``."""
        if error.kind in cls._RATE_LIMITS:
            return 60
        cap = cls._BACKOFF_CAPS.get(error.kind)
        if cap is None:
            return 1
        return 2 ** min(attempt, cap)

    @classmethod
    def max_retries(cls, error: MCPError) -> int:
        return cls._MAX_RETRIES.get(error.kind, 1)


def classify_exception(error: BaseException) -> MCPError:
    """Map any exception onto the closed error taxonomy."""
    if isinstance(error, MCPError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return MCPError(ErrorKind.TIMEOUT, str(error) or "request timed out")
    if isinstance(error, httpx.HTTPError):
        return MCPError(ErrorKind.HTTP, str(error))
    if isinstance(error, json.JSONDecodeError):
        return MCPError(ErrorKind.SERIALIZATION, str(error))
    if isinstance(error, PydanticValidationError):
        errors = error.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(loc) for loc in first.get("loc", []))
            return MCPError(
                ErrorKind.INVALID_PARAMETER_TYPE,
                f"{field}: {first.get('msg', str(error))}",
            )
        return MCPError(ErrorKind.INVALID_PARAMETER_TYPE, str(error))
    if isinstance(error, asyncio.TimeoutError):
        return MCPError(ErrorKind.TIMEOUT, str(error) or "operation timed out")
    if isinstance(error, OSError):
        return MCPError(ErrorKind.IO, str(error))
    return MCPError(ErrorKind.OTHER, str(error) or type(error).__name__)


_SEVERITY_LOG_LEVELS = MappingProxyType(
    {
        ErrorSeverity.CRITICAL: logging.ERROR,
        ErrorSeverity.HIGH: logging.ERROR,
        ErrorSeverity.MEDIUM: logging.WARNING,
        ErrorSeverity.LOW: logging.INFO,
    }
)


def log_level_for(severity: ErrorSeverity) -> int:
    return _SEVERITY_LOG_LEVELS[severity]


class ErrorHandler:
    """Turns errors into JSON-RPC error responses."""

    @staticmethod
    def handle_error(
        error: BaseException,
        request_id: Optional[str] = None,
        response_id: Any = None,
    ) -> MCPResponse:
        classified = classify_exception(error)
        code = classified.error_code()
        severity = classified.severity()
        context = classified.context()

        logger.log(
            log_level_for(severity),
            "%s severity error occurred",
            severity.value,
            extra={
                "extra_fields": {
                    "error_code": code,
                    "severity": severity.value,
                    "context": context,
                    "recoverable": ErrorRecovery.is_recoverable(classified),
                    "max_retries": ErrorRecovery.max_retries(classified),
                    "request_id": request_id,
                }
            },
        )

        return MCPResponse(
            id=response_id,
            error=MCPErrorResponse(
                code=code,
                message=classified.message,
                data={
                    "severity": severity.value,
                    "context": context,
                    "request_id": request_id,
                },
            ),
        )


def format_error_response(error: Exception) -> dict[str, Any]:
    """
    Format any exception into a standardized tool error payload.

    Args:
        error: The exception to format

    Returns:
        Dictionary with standardized error format
    """
    return classify_exception(error).to_dict()
