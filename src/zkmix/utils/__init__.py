"""Hashing and encoding helpers."""

from zkmix.utils.encoding import (
    ZERO_ADDRESS,
    address_to_int,
    bytes_to_hex,
    ensure_bytes32,
    hex_to_bytes,
    normalize_address,
    parse_ether,
)
from zkmix.utils.hash import (
    SNARK_SCALAR_FIELD,
    compute_commitment,
    compute_nullifier_hash,
    is_field_element,
    keccak256,
    merkle_hash,
)

__all__ = [
    "ZERO_ADDRESS",
    "address_to_int",
    "bytes_to_hex",
    "ensure_bytes32",
    "hex_to_bytes",
    "normalize_address",
    "parse_ether",
    "SNARK_SCALAR_FIELD",
    "compute_commitment",
    "compute_nullifier_hash",
    "is_field_element",
    "keccak256",
    "merkle_hash",
]
