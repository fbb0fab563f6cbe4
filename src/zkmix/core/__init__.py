"""Mixing engine: registry, accumulator, pools, batching."""

from zkmix.core.commitment import Commitment, DepositNote
from zkmix.core.merkle_tree import MAX_DEPTH, MerkleTree
from zkmix.core.mixer import (
    DepositReceipt,
    MixingPool,
    MixingPoolManager,
    WithdrawalReceipt,
    deposit_public_inputs,
    withdrawal_public_inputs,
)
from zkmix.core.randomness import RandomnessSource, SeededRandomness, SystemRandomness
from zkmix.core.registry import DepositRecord, InMemoryRegistry, Registry

__all__ = [
    "Commitment",
    "DepositNote",
    "MAX_DEPTH",
    "MerkleTree",
    "DepositReceipt",
    "MixingPool",
    "MixingPoolManager",
    "WithdrawalReceipt",
    "deposit_public_inputs",
    "withdrawal_public_inputs",
    "RandomnessSource",
    "SeededRandomness",
    "SystemRandomness",
    "DepositRecord",
    "InMemoryRegistry",
    "Registry",
]
