"""
Address helpers for 20-byte account and contract addresses.

Thin wrappers over eth-utils so the rest of the package compares and packs
addresses in one canonical (EIP-55 checksummed) form.
"""

from eth_utils import is_address, to_checksum_address

from optionkit.constants import ZERO_ADDRESS
from optionkit.exceptions import DomainRangeError

__all__ = [
    "ZERO_ADDRESS",
    "normalize_address",
    "same_address",
    "address_to_int",
    "int_to_address",
]


def normalize_address(address: str) -> str:
    """
    Validate and checksum an address.

    Raises:
        DomainRangeError: if *address* is not a 20-byte hex address
    """
    if not isinstance(address, str) or not is_address(address):
        raise DomainRangeError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return normalize_address(a) == normalize_address(b)


def address_to_int(address: str) -> int:
    return int(normalize_address(address), 16)


def int_to_address(value: int) -> str:
    if value < 0 or value >= 1 << 160:
        raise DomainRangeError(f"Value does not fit in 160 bits: {value}")
    return to_checksum_address("0x" + value.to_bytes(20, "big").hex())
