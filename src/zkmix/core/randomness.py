"""Randomness strategies for release jitter and batch ordering."""

import secrets
from abc import ABC, abstractmethod
from typing import List, Sequence, TypeVar, Union

from cryptography.hazmat.primitives import hashes, hmac

T = TypeVar("T")


class RandomnessSource(ABC):
    """Source of uniform integers used by the mixer's timing obfuscation."""

    @abstractmethod
    def randbelow(self, n: int) -> int:
        """Return a uniform integer in ``[0, n)``."""

    def randint(self, low: int, high: int) -> int:
        """Return a uniform integer in ``[low, high]``."""
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")
        return low + self.randbelow(high - low + 1)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """Return a Fisher-Yates permutation of ``items``."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randbelow(i + 1)
            result[i], result[j] = result[j], result[i]
        return result


class SystemRandomness(RandomnessSource):
    """OS CSPRNG."""

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        return secrets.randbelow(n)


class SeededRandomness(RandomnessSource):
    """
    Deterministic generator for tests and replays.

    Blocks are HMAC-SHA256(seed, counter); integers are drawn by rejection
    sampling so the output stays uniform for any ``n``.
    """

    def __init__(self, seed: Union[bytes, str, int]):
        if isinstance(seed, int):
            seed = seed.to_bytes(max(1, (seed.bit_length() + 7) // 8), "big")
        elif isinstance(seed, str):
            seed = seed.encode("utf-8")
        self._key = seed
        self._counter = 0

    def _block(self) -> bytes:
        mac = hmac.HMAC(self._key, hashes.SHA256())
        mac.update(self._counter.to_bytes(8, "big"))
        self._counter += 1
        return mac.finalize()

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        n_bytes = max(1, (n.bit_length() + 7) // 8)
        mask = (1 << n.bit_length()) - 1
        while True:
            raw = b""
            while len(raw) < n_bytes:
                raw += self._block()
            candidate = int.from_bytes(raw[:n_bytes], "big") & mask
            if candidate < n:
                return candidate
