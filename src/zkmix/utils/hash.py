"""Domain-separated hashing into the BN254 scalar field.

Every hash produced here is keccak-256 reduced modulo the scalar field order
``r`` and re-encoded as 32 big-endian bytes, so the result can be fed to a
Groth16 verifier as a public input without further conversion. Each use has
its own domain tag, which keeps commitments, nullifiers and Merkle nodes in
disjoint hash families.
"""

from typing import Union

from Crypto.Hash import keccak

from zkmix.utils.encoding import int_to_bytes32

# BN254 scalar field order (the order of G1).
SNARK_SCALAR_FIELD = 21888242871839275222246405745257275088548364400416034343698204186575808495617

COMMITMENT_DOMAIN = b"zkmix.commitment"
NULLIFIER_DOMAIN = b"zkmix.nullifier"
MERKLE_NODE_DOMAIN = b"zkmix.merkle.node"
MERKLE_ZERO_DOMAIN = b"zkmix.merkle.zero"


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash of data (the pre-NIST padding used by Ethereum).

    Args:
        data: Bytes or string to hash

    Returns:
        bytes: 32-byte digest
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = keccak.new(digest_bits=256)
    digest.update(data)
    return digest.digest()


def field_hash(domain: bytes, *parts: bytes) -> bytes:
    """
    Hash a domain tag and concatenated parts into a canonical field element.

    Args:
        domain: Domain separation tag
        *parts: Byte strings to concatenate after the tag

    Returns:
        bytes: 32-byte encoding of a value strictly below ``SNARK_SCALAR_FIELD``
    """
    value = int.from_bytes(keccak256(domain + b"".join(parts)), "big")
    return int_to_bytes32(value % SNARK_SCALAR_FIELD)


def is_field_element(data: bytes) -> bool:
    """Return True if ``data`` is 32 bytes encoding a value below ``r``."""
    return (
        isinstance(data, bytes)
        and len(data) == 32
        and int.from_bytes(data, "big") < SNARK_SCALAR_FIELD
    )


def merkle_hash(left: bytes, right: bytes) -> bytes:
    """
    Compute Merkle tree hash of two siblings.

    Args:
        left: Left child hash (32 bytes)
        right: Right child hash (32 bytes)

    Returns:
        bytes: Parent hash (32 bytes)

    Raises:
        ValueError: If either child is not 32 bytes
    """
    if not isinstance(left, bytes) or len(left) != 32:
        raise ValueError("Left hash must be 32 bytes")
    if not isinstance(right, bytes) or len(right) != 32:
        raise ValueError("Right hash must be 32 bytes")

    return field_hash(MERKLE_NODE_DOMAIN, left, right)


def merkle_zero_leaf() -> bytes:
    """Value of an unoccupied leaf."""
    return field_hash(MERKLE_ZERO_DOMAIN)


def compute_commitment(secret: int, amount: int, nullifier_seed: int, fee: int = 0) -> bytes:
    """
    Compute commitment C = H(secret || amount || nullifier_seed || fee).

    Args:
        secret: Depositor secret
        amount: Deposit amount in wei
        nullifier_seed: Per-deposit nullifier seed
        fee: Per-deposit fee committed at deposit time

    Returns:
        bytes: Commitment (32 bytes)
    """
    return field_hash(
        COMMITMENT_DOMAIN,
        int_to_bytes32(secret),
        int_to_bytes32(amount),
        int_to_bytes32(nullifier_seed),
        int_to_bytes32(fee),
    )


def compute_nullifier_hash(secret: int, nullifier_seed: int) -> bytes:
    """
    Compute nullifier hash N = H(secret || nullifier_seed).

    Args:
        secret: Depositor secret
        nullifier_seed: Per-deposit nullifier seed

    Returns:
        bytes: Nullifier hash (32 bytes)
    """
    return field_hash(NULLIFIER_DOMAIN, int_to_bytes32(secret), int_to_bytes32(nullifier_seed))
