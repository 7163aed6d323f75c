"""Pytest configuration and shared fixtures for testing."""

import os
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from web3_wallet_mcp.abi import function_selector
from web3_wallet_mcp.config import WalletConfig
from web3_wallet_mcp.errors import ErrorKind, MCPError
from web3_wallet_mcp.ethereum_client import EthereumClient
from web3_wallet_mcp.rpc_transport import RpcTransport


# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

ENV_KEYS = (
    "PRIVATE_KEY",
    "ALCHEMY_API_KEY",
    "ETHEREUM_RPC_URL",
    "PRICE_API_URL",
    "PRICE_NETWORK",
    "RPC_TIMEOUT",
    "TOOL_TIMEOUT",
    "MCP_HOST",
    "MCP_PORT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)

TEST_RPC_URL = "https://rpc.test/v2/test-key"
TEST_PRICE_URL = "https://prices.test/prices/v1/test-key/tokens/by-address"


@pytest.fixture
def test_private_key() -> str:
    """Provide a test private key for testing."""
    return "0xb25c7db31feed9122727bf0939dc769a96564b2de4c4726d035b36ecf1e5b364"


@pytest.fixture
def test_wallet_address() -> str:
    """Provide the address belonging to the test private key."""
    return "0x5ce9454909639D2D17A3F753ce7d93fa0b9aB12E"


@pytest.fixture
def test_config(test_private_key: str, test_wallet_address: str) -> WalletConfig:
    """Provide a test configuration."""
    return WalletConfig(
        private_key=test_private_key,
        rpc_url=TEST_RPC_URL,
        price_api_url=TEST_PRICE_URL,
        wallet_address=test_wallet_address,
    )


@pytest.fixture
def mock_rpc() -> RpcTransport:
    """Create a mock node transport.

    Defaults: 1 ETH balance, 20 gwei gas price, 150000 gas estimate. Every
    ``eth_call`` reverts until routes are registered via ``contract_calls``.
    """
    rpc = Mock(spec=RpcTransport)
    rpc.get_balance = AsyncMock(return_value=10**18)
    rpc.gas_price = AsyncMock(return_value=20 * 10**9)
    rpc.estimate_gas = AsyncMock(return_value=150_000)
    rpc.call = AsyncMock(
        side_effect=MCPError(ErrorKind.ETHEREUM_RPC, "execution reverted")
    )
    rpc.aclose = AsyncMock()
    return rpc


@pytest.fixture
def contract_calls(mock_rpc) -> Callable[[str, str, object], None]:
    """Route mocked ``eth_call`` requests by contract and function signature.

    A route value may be raw return bytes, an exception to raise, or a
    callable taking the call data and returning bytes.
    """
    routes: dict[tuple[str, bytes], object] = {}

    async def fake_call(to: str, data: bytes, block: str = "latest") -> bytes:
        key = (to.lower(), data[:4])
        if key not in routes:
            raise MCPError(ErrorKind.ETHEREUM_RPC, "execution reverted")
        value = routes[key]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(data)
        return value

    mock_rpc.call = AsyncMock(side_effect=fake_call)

    def register(contract: str, signature: str, value: object) -> None:
        routes[(contract.lower(), function_selector(signature))] = value

    return register


@pytest.fixture
def ethereum_client(mock_rpc) -> EthereumClient:
    """Create an EthereumClient backed by the mock transport."""
    return EthereumClient(mock_rpc, price_api_url=TEST_PRICE_URL)


@pytest.fixture
def mock_http_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RpcTransport]:
    """Build a real RpcTransport whose HTTP traffic goes to a handler function."""

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> RpcTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RpcTransport(TEST_RPC_URL, http_client=client)

    return build


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    # Store original environment
    original_env = os.environ.copy()

    for key in ENV_KEYS:
        os.environ.pop(key, None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# Integration test fixtures (for real node testing)


@pytest.fixture
def integration_config() -> WalletConfig:
    """
    Load configuration for integration tests from environment.

    Integration tests need ETHEREUM_RPC_URL (or ALCHEMY_API_KEY) and a
    PRIVATE_KEY in the environment, and are skipped otherwise.
    """
    if not (os.environ.get("ETHEREUM_RPC_URL") or os.environ.get("ALCHEMY_API_KEY")):
        pytest.skip("Integration test endpoint not configured")
    os.environ.setdefault("PRIVATE_KEY", "0x" + "11" * 32)
    try:
        return WalletConfig.from_env()
    except ValueError:
        pytest.skip("Integration test configuration incomplete")


@pytest.fixture
async def integration_client(
    integration_config: WalletConfig,
) -> AsyncGenerator[EthereumClient, None]:
    """
    Create a real EthereumClient for integration tests.

    This fixture talks to the configured Ethereum mainnet node.
    """
    client = EthereumClient.from_config(integration_config)

    try:
        await client.rpc.validate_connection()
    except ConnectionError as e:
        await client.aclose()
        pytest.skip(f"Cannot connect to Ethereum node: {e}")

    yield client

    await client.aclose()


# Pytest configuration


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a live Ethereum node)",
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark integration tests."""
    for item in items:
        # Mark tests in test_integration.py as integration tests
        if "test_integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
