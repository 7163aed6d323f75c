"""Tests for JSON-RPC request routing."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from eth_abi import decode, encode

from web3_wallet_mcp import abi
from web3_wallet_mcp.errors import ErrorKind, MCPError
from web3_wallet_mcp.models import MCPRequest, ToolResult
from web3_wallet_mcp.router import RequestRouter
from web3_wallet_mcp.tool_handler import ToolHandler
from web3_wallet_mcp.tokens import UNISWAP_V3_QUOTER, USDC, WETH


@pytest.fixture
def router(ethereum_client) -> RequestRouter:
    """Router over a real ToolHandler and a client with a mocked node."""
    return RequestRouter(ToolHandler(ethereum_client, tool_timeout=5))


def tools_call(name: str, arguments: dict, request_id=1) -> MCPRequest:
    return MCPRequest(
        id=request_id,
        method="tools/call",
        params={"name": name, "arguments": arguments},
    )


class TestToolsList:
    @pytest.mark.asyncio
    async def test_lists_three_tools(self, router):
        """Test that the manifest names exactly the three wallet tools."""
        response = await router.handle_request(MCPRequest(id="a", method="tools/list"))

        assert response.error is None
        assert response.id == "a"
        tools = response.result["tools"]
        assert [tool["name"] for tool in tools] == [
            "get_balance",
            "get_token_price",
            "swap_tokens",
        ]
        for tool in tools:
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"

    @pytest.mark.asyncio
    async def test_required_fields(self, router):
        response = await router.handle_request(MCPRequest(id=1, method="tools/list"))
        schemas = {tool["name"]: tool["inputSchema"] for tool in response.result["tools"]}

        assert schemas["get_balance"]["required"] == ["address"]
        assert schemas["get_token_price"]["required"] == ["token_address"]
        assert schemas["swap_tokens"]["required"] == ["from_token", "to_token", "amount"]
        assert "slippage_tolerance" in schemas["swap_tokens"]["properties"]

    @pytest.mark.asyncio
    async def test_responses_do_not_share_manifest(self, router):
        """Test that editing one tools/list result leaves later ones intact."""
        first = await router.handle_request(MCPRequest(id=1, method="tools/list"))
        first.result["tools"].append({"name": "extra_tool"})
        first.result["tools"][0]["inputSchema"]["required"].clear()

        second = await router.handle_request(MCPRequest(id=2, method="tools/list"))

        assert len(second.result["tools"]) == 3
        assert second.result["tools"][0]["inputSchema"]["required"] == ["address"]


class TestToolsCall:
    @pytest.mark.asyncio
    async def test_missing_address(self, router, mock_rpc):
        """Test that get_balance without address yields -32602."""
        response = await router.handle_request(tools_call("get_balance", {}, 9))

        assert response.result is None
        assert response.id == 9
        assert response.error.code == -32602
        assert response.error.data["severity"] == "Medium"
        assert response.error.data["request_id"]
        mock_rpc.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_tool(self, router):
        response = await router.handle_request(tools_call("invalid_tool", {}))

        assert response.error is not None
        assert "Unknown tool: invalid_tool" in response.error.message

    @pytest.mark.asyncio
    async def test_invalid_address(self, router):
        response = await router.handle_request(
            tools_call("get_token_price", {"token_address": "0x12"})
        )

        assert response.error.code == -32602
        assert response.error.data["context"] == {
            "error_type": "validation",
            "invalid_address": "Invalid Ethereum address format: 0x12",
        }

    @pytest.mark.asyncio
    async def test_swap_amount_out(self, router, contract_calls):
        """Test the exact slippage-adjusted amount for a 1000-unit quote."""

        def quote(data: bytes) -> bytes:
            fee = decode(["address", "address", "uint24", "uint256", "uint160"], data[4:])[2]
            return encode(["uint256"], [1000 if fee == 3000 else 0])

        contract_calls(UNISWAP_V3_QUOTER, abi.QUOTE_EXACT_INPUT_SINGLE, quote)

        response = await router.handle_request(
            tools_call(
                "swap_tokens",
                {
                    "from_token": WETH,
                    "to_token": USDC,
                    "amount": "100.0",
                    "slippage_tolerance": "0.5",
                },
            )
        )

        assert response.error is None
        content = response.result["content"]
        assert content["amount_out"] == "0.000995"
        assert Decimal(content["amount_out"]) == Decimal(1000) / 10**6 * Decimal("99.5") / 100
        assert content["amount_in"] == "100.0"
        assert content["route"] == [WETH, USDC]

    @pytest.mark.asyncio
    async def test_get_balance_success(self, router):
        response = await router.handle_request(
            tools_call("get_balance", {"address": "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1"})
        )

        assert response.error is None
        assert response.result["content"]["eth_balance"] == "1"
        assert response.result["content"]["token_balances"] == {}

    @pytest.mark.asyncio
    async def test_execution_error(self, router, mock_rpc):
        mock_rpc.gas_price.side_effect = MCPError(ErrorKind.NETWORK_ERROR, "reset")

        response = await router.handle_request(
            tools_call("swap_tokens", {"from_token": WETH, "to_token": USDC, "amount": "1"})
        )

        assert response.error.code == -32603
        assert response.error.message == "Network connection failed: reset"
        assert response.error.data["context"] == {"error_type": "network", "message": "reset"}

    @pytest.mark.asyncio
    async def test_bad_tool_call_shape(self, router):
        """Test that params without a tool name are a protocol error."""
        response = await router.handle_request(
            MCPRequest(id=2, method="tools/call", params={"arguments": {}})
        )
        assert response.error.code == -32600

    @pytest.mark.asyncio
    async def test_missing_params(self, router):
        response = await router.handle_request(MCPRequest(id=2, method="tools/call"))
        assert response.error.code == -32600

    @pytest.mark.asyncio
    async def test_error_flagged_result(self):
        """Test that a result flagged as an error becomes -32603."""
        tool_handler = Mock(spec=ToolHandler)
        tool_handler.handle_tool_call = AsyncMock(
            return_value=ToolResult(content={"reason": "bad"}, is_error=True)
        )
        router = RequestRouter(tool_handler)

        response = await router.handle_request(tools_call("get_balance", {}))

        assert response.error.code == -32603
        assert response.error.message == "Tool execution failed"
        assert response.error.data == {"reason": "bad"}


class TestRouting:
    @pytest.mark.asyncio
    async def test_method_not_found(self, router):
        response = await router.handle_request(MCPRequest(id=3, method="resources/list"))

        assert response.result is None
        assert response.error.code == -32601
        assert response.error.message == "Method not found: resources/list"

    @pytest.mark.asyncio
    async def test_wrong_version(self, router):
        response = await router.handle_request(
            MCPRequest(jsonrpc="1.0", id=3, method="tools/list")
        )
        assert response.error.code == -32600

    @pytest.mark.asyncio
    async def test_handle_raw_valid(self, router):
        response = await router.handle_raw(
            {"jsonrpc": "2.0", "id": 4, "method": "tools/list", "params": {}}
        )
        assert response.id == 4
        assert len(response.result["tools"]) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"jsonrpc": "2.0", "id": 5},
            {"jsonrpc": "2.0", "id": 5, "method": "tools/list", "params": [1, 2]},
            [],
            "tools/list",
        ],
    )
    async def test_handle_raw_malformed(self, router, payload):
        """Test that malformed envelopes still get an answer."""
        response = await router.handle_raw(payload)

        assert response.error.code == -32600
        assert response.id == (5 if isinstance(payload, dict) else None)

    @pytest.mark.asyncio
    async def test_unexpected_errors_never_escape(self):
        tool_handler = Mock(spec=ToolHandler)
        tool_handler.handle_tool_call = AsyncMock(side_effect=KeyError("x"))
        router = RequestRouter(tool_handler)

        response = await router.handle_request(tools_call("get_balance", {}))

        assert response.error.code == -32603
        assert response.error.data["severity"] == "High"
