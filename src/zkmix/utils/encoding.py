"""Encoding and decoding utilities."""

from decimal import Decimal
from typing import Union

WEI_PER_ETHER = 10**18
ZERO_ADDRESS = "0x" + "00" * 20


def bytes_to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string.

    Args:
        data: Bytes to convert

    Returns:
        str: Hexadecimal string with '0x' prefix
    """
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hexadecimal string to bytes.

    Args:
        hex_str: Hexadecimal string (with or without '0x' prefix)

    Returns:
        bytes: Decoded bytes

    Raises:
        ValueError: If hex string is invalid
    """
    if hex_str.startswith(("0x", "0X")):
        hex_str = hex_str[2:]

    if len(hex_str) % 2 != 0:
        raise ValueError("Hex string must have even number of characters")

    return bytes.fromhex(hex_str)


def int_to_bytes32(value: int) -> bytes:
    """
    Encode a non-negative integer as a 32-byte big-endian word.

    Raises:
        ValueError: If the value does not fit in 256 bits
    """
    if value < 0 or value >= 1 << 256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return value.to_bytes(32, "big")


def bytes32_to_int(data: bytes) -> int:
    """Decode a 32-byte big-endian word."""
    if not isinstance(data, bytes) or len(data) != 32:
        raise ValueError("Expected 32 bytes")
    return int.from_bytes(data, "big")


def ensure_bytes32(data: Union[bytes, str, int]) -> bytes:
    """
    Coerce a hash given as bytes, hex string, or int to 32 bytes.

    Args:
        data: 32 raw bytes, a 64-digit hex string, or an integer

    Returns:
        bytes: 32-byte word

    Raises:
        ValueError: If the value cannot be represented as 32 bytes
        TypeError: If the value has an unsupported type
    """
    if isinstance(data, bool):
        raise TypeError("Expected bytes, hex str or int, got bool")
    if isinstance(data, int):
        return int_to_bytes32(data)
    if isinstance(data, str):
        data = hex_to_bytes(data)
    if not isinstance(data, bytes):
        raise TypeError(f"Expected bytes, hex str or int, got {type(data)}")
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    return data


def normalize_address(address: str) -> str:
    """
    Validate and lowercase a 0x-prefixed 20-byte address.

    Raises:
        ValueError: If the address is not 40 hex digits after the prefix
    """
    if not isinstance(address, str) or not address.startswith(("0x", "0X")):
        raise ValueError(f"Address must be a 0x-prefixed string: {address!r}")
    body = address[2:]
    if len(body) != 40:
        raise ValueError(f"Address must be 20 bytes: {address!r}")
    int(body, 16)
    return "0x" + body.lower()


def address_to_int(address: str) -> int:
    """Interpret an address as an unsigned integer (a public-input encoding)."""
    return int(normalize_address(address)[2:], 16)


def parse_ether(value: Union[str, int, float, Decimal]) -> int:
    """
    Convert an ether amount to integer wei.

    Floats are routed through their string form so that ``parse_ether(0.01)``
    yields exactly ``10**16``.

    Raises:
        ValueError: If the amount has sub-wei precision or is negative
    """
    amount = Decimal(str(value)) * WEI_PER_ETHER
    if amount != amount.to_integral_value():
        raise ValueError(f"Amount has sub-wei precision: {value}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative: {value}")
    return int(amount)


def format_ether(wei: int) -> str:
    """Render wei as a decimal ether string."""
    text = format(Decimal(wei) / WEI_PER_ETHER, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
