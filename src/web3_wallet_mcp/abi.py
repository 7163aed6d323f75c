"""Contract-call payload encoding and return-data decoding.

Covers the handful of types the wallet tools need (``address``, ``uintN``
and ``address[]`` arguments; ``uint`` and ``string`` return values) without a
full ABI library.
"""

import re
from collections.abc import Sequence
from typing import Any

from eth_utils import is_hex_address, keccak, to_canonical_address

from .errors import ErrorKind, MCPError

WORD_SIZE = 32
FUNC_SIG_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\((.*)\)$")
UINT_RE = re.compile(r"^uint([0-9]{0,3})$")

BALANCE_OF = "balanceOf(address)"
NAME = "name()"
SYMBOL = "symbol()"
DECIMALS = "decimals()"
QUOTE_EXACT_INPUT_SINGLE = "quoteExactInputSingle(address,address,uint24,uint256,uint160)"
SWAP_EXACT_TOKENS_FOR_TOKENS = (
    "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)"
)


def function_selector(signature: str) -> bytes:
    """First four bytes of the keccak-256 hash of a canonical signature."""
    return keccak(text=signature)[:4]


def parse_signature(signature: str) -> list[str]:
    match = FUNC_SIG_RE.fullmatch(signature.strip())
    if not match:
        raise MCPError(
            ErrorKind.INVALID_CONTRACT_ABI,
            f"signature must look like name(type1,type2,...): {signature}",
        )
    raw = match.group(2).strip()
    return [item.strip() for item in raw.split(",")] if raw else []


def _to_word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big", signed=False)


def _encode_address(value: Any) -> bytes:
    if not isinstance(value, str) or not is_hex_address(value):
        raise MCPError(ErrorKind.VALIDATION_ERROR, f"cannot encode address: {value!r}")
    return to_canonical_address(value).rjust(WORD_SIZE, b"\x00")


def _encode_uint(value: Any, bits: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MCPError(ErrorKind.VALIDATION_ERROR, f"uint value must be int: {value!r}")
    if value < 0 or value >= 1 << bits:
        raise MCPError(
            ErrorKind.VALIDATION_ERROR, f"value {value} does not fit in uint{bits}"
        )
    return _to_word(value)


def _encode_static(abi_type: str, value: Any) -> bytes:
    if abi_type == "address":
        return _encode_address(value)
    match = UINT_RE.fullmatch(abi_type)
    if match:
        bits = int(match.group(1) or "256")
        if bits < 8 or bits > 256 or bits % 8:
            raise MCPError(ErrorKind.INVALID_CONTRACT_ABI, f"invalid uint size: {abi_type}")
        return _encode_uint(value, bits)
    raise MCPError(ErrorKind.INVALID_CONTRACT_ABI, f"unsupported ABI type: {abi_type}")


def _is_dynamic(abi_type: str) -> bool:
    return abi_type.endswith("[]")


def _encode_dynamic(abi_type: str, value: Any) -> bytes:
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise MCPError(ErrorKind.VALIDATION_ERROR, f"{abi_type} value must be a list")
    item_type = abi_type[:-2]
    if _is_dynamic(item_type):
        raise MCPError(ErrorKind.INVALID_CONTRACT_ABI, f"nested arrays unsupported: {abi_type}")
    return _to_word(len(value)) + b"".join(_encode_static(item_type, item) for item in value)


def encode_arguments(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Head/tail encode ``values``; static words in order, arrays behind offsets."""
    if len(types) != len(values):
        raise MCPError(
            ErrorKind.VALIDATION_ERROR, f"expected {len(types)} values, got {len(values)}"
        )
    head: list[bytes] = []
    tail: list[bytes] = []
    head_size = WORD_SIZE * len(types)
    for abi_type, value in zip(types, values):
        if _is_dynamic(abi_type):
            head.append(_to_word(head_size + sum(len(part) for part in tail)))
            tail.append(_encode_dynamic(abi_type, value))
        else:
            head.append(_encode_static(abi_type, value))
    return b"".join(head + tail)


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    """Selector followed by the encoded arguments."""
    return function_selector(signature) + encode_arguments(parse_signature(signature), args)


def decode_uint(data: bytes) -> int:
    """Read the first return word as an unsigned integer.

    Only the low 16 bytes are used, which covers balances, decimals and gas.
    """
    if len(data) < WORD_SIZE:
        raise MCPError(ErrorKind.VALIDATION_ERROR, "Invalid response length")
    return int.from_bytes(data[WORD_SIZE - 16 : WORD_SIZE], "big")


def decode_string(data: bytes) -> str:
    """Decode a dynamic ``string`` return value.

    Layout: word 0 is the offset ``o``; the word at ``o`` is the byte length
    ``n``; the text is ``data[o + 32 : o + 32 + n]``.
    """
    if len(data) < WORD_SIZE:
        raise MCPError(ErrorKind.VALIDATION_ERROR, "Invalid response length")
    offset = int.from_bytes(data[:WORD_SIZE], "big")
    if offset + WORD_SIZE > len(data):
        raise MCPError(ErrorKind.VALIDATION_ERROR, "Invalid string offset")
    length = int.from_bytes(data[offset : offset + WORD_SIZE], "big")
    start = offset + WORD_SIZE
    if start + length > len(data):
        raise MCPError(ErrorKind.VALIDATION_ERROR, "Invalid string length")
    text = data[start : start + length].decode("utf-8", errors="replace")
    return text.rstrip("\x00")
