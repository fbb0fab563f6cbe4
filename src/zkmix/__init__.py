"""Main package initialization."""

__version__ = "0.1.0"
__author__ = "ZK-Mixer Team"
__description__ = "ZK privacy mixer: Groth16 withdrawals over alt-bn128 with anti-correlation batching"

from .config import MixerSettings, get_settings
from .core.commitment import Commitment, DepositNote
from .core.merkle_tree import MerkleTree
from .core.mixer import MixingPoolManager
from .core.registry import InMemoryRegistry, Registry
from .crypto.groth16 import Proof, VerificationKey, verify

__all__ = [
    "MixerSettings",
    "get_settings",
    "Commitment",
    "DepositNote",
    "MerkleTree",
    "MixingPoolManager",
    "InMemoryRegistry",
    "Registry",
    "Proof",
    "VerificationKey",
    "verify",
]
