"""Tests for input validation."""

from decimal import Decimal

import pytest

from web3_wallet_mcp.errors import ErrorKind, MCPError
from web3_wallet_mcp.validation import (
    DEFAULT_SLIPPAGE,
    GetBalanceParams,
    SwapTokensParams,
    validate_address,
    validate_amount,
    validate_config,
    validate_private_key,
    validate_rpc_url,
    validate_slippage,
    validate_tool_parameters,
)

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


class TestValidateAddress:
    """Tests for address format checks."""

    @pytest.mark.parametrize(
        "address",
        [
            "0x" + "a" * 40,
            "0x" + "F" * 40,
            "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1",
        ],
    )
    def test_valid_addresses(self, address):
        """Test that 0x plus 40 hex characters is accepted."""
        assert validate_address(address) == address

    @pytest.mark.parametrize(
        "address",
        [
            "",
            "0x" + "a" * 39,
            "0x" + "a" * 41,
            "742d35Cc6634C0532925a3b844Bc9e7595f0bEb1",
            "0x" + "g" * 40,
            "0X" + "a" * 40,
            " 0x" + "a" * 40,
        ],
    )
    def test_invalid_addresses(self, address):
        """Test that any other length or charset is rejected."""
        with pytest.raises(MCPError) as exc_info:
            validate_address(address)
        assert exc_info.value.kind == ErrorKind.INVALID_ADDRESS


class TestValidatePrivateKey:
    """Tests for private key format checks."""

    def test_with_and_without_prefix(self):
        """Test that 64 hex characters pass with or without 0x."""
        key = "ab" * 32
        assert validate_private_key(key) == key
        assert validate_private_key(f"0x{key}") == f"0x{key}"

    @pytest.mark.parametrize("key", ["", "0x123", "zz" * 32, "ab" * 33])
    def test_invalid_keys(self, key):
        """Test malformed keys."""
        with pytest.raises(MCPError) as exc_info:
            validate_private_key(key)
        assert exc_info.value.kind == ErrorKind.INVALID_PRIVATE_KEY


class TestValidateAmount:
    """Tests for amount bounds."""

    @pytest.mark.parametrize("amount", ["0", "-1", "1000000001", "abc", "", "NaN", "Infinity"])
    def test_rejected(self, amount):
        """Test non-positive, oversized and unparseable amounts."""
        with pytest.raises(MCPError) as exc_info:
            validate_amount(amount)
        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT

    def test_upper_bound_accepted(self):
        """Test that exactly one billion is allowed."""
        assert validate_amount("1000000000") == Decimal("1000000000")

    def test_exact_decimal(self):
        """Test that parsing keeps every digit."""
        assert validate_amount("0.000000000000000001") == Decimal("1E-18")

    @pytest.mark.parametrize("amount", ["1_000", " 5 ", "5\n", "1e3", "+1", ".5"])
    def test_rejects_loose_notation(self, amount):
        """Test that only plain decimal notation is accepted."""
        with pytest.raises(MCPError) as exc_info:
            validate_amount(amount)
        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT


class TestValidateSlippage:
    """Tests for slippage bounds."""

    @pytest.mark.parametrize("slippage", ["-0.1", "50.1", "x", " 1", "1_0"])
    def test_rejected(self, slippage):
        with pytest.raises(MCPError) as exc_info:
            validate_slippage(slippage)
        assert exc_info.value.kind == ErrorKind.INVALID_SLIPPAGE

    @pytest.mark.parametrize("slippage", ["0", "0.5", "50"])
    def test_accepted(self, slippage):
        assert validate_slippage(slippage) == Decimal(slippage)


class TestValidateConfig:
    """Tests for configuration checks."""

    def test_valid(self):
        validate_config("https://rpc.test", "ab" * 32)

    def test_bad_scheme(self):
        """Test that only http and https endpoints are accepted."""
        with pytest.raises(MCPError) as exc_info:
            validate_rpc_url("ws://rpc.test")
        assert exc_info.value.kind == ErrorKind.CONFIGURATION_ERROR

    def test_bad_key(self):
        with pytest.raises(MCPError) as exc_info:
            validate_config("https://rpc.test", "not-a-key")
        assert exc_info.value.kind == ErrorKind.INVALID_PRIVATE_KEY


class TestValidateToolParameters:
    """Tests for per-tool argument checks."""

    def test_get_balance_requires_address(self):
        """Test that a missing address is reported as a missing parameter."""
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters("get_balance", {})
        assert exc_info.value.kind == ErrorKind.MISSING_PARAMETER
        assert exc_info.value.error_code() == -32602
        assert "address" in str(exc_info.value)

    def test_get_balance_with_token(self):
        params = validate_tool_parameters(
            "get_balance", {"address": WETH, "token_address": USDC}
        )
        assert isinstance(params, GetBalanceParams)
        assert params.token_address == USDC

    def test_get_balance_invalid_token_address(self):
        """Test that an optional address is still validated when present."""
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters(
                "get_balance", {"address": WETH, "token_address": "0x123"}
            )
        assert exc_info.value.kind == ErrorKind.INVALID_ADDRESS

    def test_get_token_price_requires_token_address(self):
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters("get_token_price", {"address": USDC})
        assert exc_info.value.kind == ErrorKind.MISSING_PARAMETER

    def test_swap_defaults_slippage(self):
        """Test that slippage falls back to 0.5 when omitted."""
        params = validate_tool_parameters(
            "swap_tokens", {"from_token": WETH, "to_token": USDC, "amount": "1.5"}
        )
        assert isinstance(params, SwapTokensParams)
        assert params.amount == Decimal("1.5")
        assert params.slippage_tolerance == DEFAULT_SLIPPAGE

    def test_swap_null_slippage_uses_default(self):
        params = validate_tool_parameters(
            "swap_tokens",
            {
                "from_token": WETH,
                "to_token": USDC,
                "amount": "1",
                "slippage_tolerance": None,
            },
        )
        assert params.slippage_tolerance == Decimal("0.5")

    def test_swap_invalid_amount(self):
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters(
                "swap_tokens", {"from_token": WETH, "to_token": USDC, "amount": "0"}
            )
        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT

    def test_swap_invalid_slippage(self):
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters(
                "swap_tokens",
                {
                    "from_token": WETH,
                    "to_token": USDC,
                    "amount": "1",
                    "slippage_tolerance": "51",
                },
            )
        assert exc_info.value.kind == ErrorKind.INVALID_SLIPPAGE

    def test_swap_amount_must_be_string(self):
        """Test that numeric JSON amounts are refused to keep decimals exact."""
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters(
                "swap_tokens", {"from_token": WETH, "to_token": USDC, "amount": 1.1}
            )
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER_TYPE

    def test_non_string_address(self):
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters("get_balance", {"address": 42})
        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER_TYPE

    def test_unknown_tool(self):
        """Test that an unknown tool name is a validation error."""
        with pytest.raises(MCPError) as exc_info:
            validate_tool_parameters("invalid_tool", {})
        assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR
        assert "Unknown tool: invalid_tool" in str(exc_info.value)
