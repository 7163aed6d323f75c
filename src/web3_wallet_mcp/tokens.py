"""Well-known mainnet tokens and fixed contract addresses."""

from types import MappingProxyType

from .models import TokenMetadata

UNISWAP_V3_QUOTER = "0xb27308f9F90D607463bb33eA1BeBb41C27CE5AB6"
UNISWAP_V2_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
# Sender/recipient for gas estimation; nothing is ever signed or sent.
PLACEHOLDER_SENDER = "0x0000000000000000000000000000000000000001"

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

UNKNOWN_TOKEN = TokenMetadata(name="Token", symbol="TOKEN", decimals=18)

WELL_KNOWN_TOKENS: MappingProxyType = MappingProxyType(
    {
        USDC.lower(): TokenMetadata("USD Coin", "USDC", 6),
        USDT.lower(): TokenMetadata("Tether USD", "USDT", 6),
        WETH.lower(): TokenMetadata("Wrapped Ether", "WETH", 18),
        "0x6b175474e89094c44da98b954eedeac495271d0f": TokenMetadata(
            "Dai Stablecoin", "DAI", 18
        ),
        "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": TokenMetadata(
            "Wrapped BTC", "WBTC", 8
        ),
        "0x514910771af9ca656af840dff83e8264ecf986ca": TokenMetadata(
            "ChainLink Token", "LINK", 18
        ),
        "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984": TokenMetadata(
            "Uniswap", "UNI", 18
        ),
        "0x7d1afa7b718fb893db30a3abc0cfc608aacfebb0": TokenMetadata(
            "Polygon", "MATIC", 18
        ),
        "0x4fabb145d64652a948d72533023f6e7a623c7c53": TokenMetadata(
            "Binance USD", "BUSD", 18
        ),
        "0x95ad61b0a150d79219dcf64e1e6cc01f0b64c4ce": TokenMetadata(
            "Shiba Inu", "SHIB", 18
        ),
    }
)

# Tokens reported by get_balance when no specific token is requested.
COMMON_TOKENS: tuple[str, ...] = (USDC, USDT, WETH)


def known_token_info(token_address: str) -> TokenMetadata:
    """Table entry for ``token_address``, or the generic 18-decimal default."""
    return WELL_KNOWN_TOKENS.get(token_address.lower(), UNKNOWN_TOKEN)
