"""Entry point for the MCP server."""

import argparse
import asyncio
import sys
from typing import Optional

from .config import load_config
from .logging_config import setup_logging
from .server import Web3WalletMCPServer


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="web3-wallet-mcp",
        description="Ethereum wallet tools (balances, prices, swap simulation) over MCP.",
    )
    parser.add_argument(
        "--transport",
        choices=("stdio", "http"),
        default="stdio",
        help="stdio for MCP clients, http for JSON-RPC over POST /mcp (default: stdio)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None):
    """Main entry point for the MCP server."""
    args = parse_args(argv)
    try:
        asyncio.run(async_main(args.transport))
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


async def async_main(transport: str = "stdio"):
    """Async main function."""
    config = load_config()
    setup_logging(config.log_level, json_format=config.log_format == "json")

    server = Web3WalletMCPServer(config)

    if transport == "http":
        await server.run_http()
    else:
        await server.run()


if __name__ == "__main__":
    main()
