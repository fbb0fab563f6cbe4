"""Commitment/nullifier registry: the double-spend defense.

The registry records every deposit by commitment and every spent nullifier
hash. Deposit records are never deleted and a spent nullifier is never
unspent, except when an ``atomic()`` block that made the change fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Optional, Set, Tuple

from zkmix.exceptions import (
    CommitmentAlreadyWithdrawnError,
    DuplicateCommitmentError,
    NullifierReusedError,
    UnknownCommitmentError,
)
from zkmix.core.journal import UndoJournal
from zkmix.utils.encoding import bytes_to_hex


@dataclass(frozen=True)
class DepositRecord:
    """
    A deposit keyed by its commitment.

    ``release_at`` is advisory metadata for callers; nothing in the core
    blocks on it.
    """

    commitment: bytes
    amount: int
    timestamp: int
    mixing_delay: int
    pool_id: int
    leaf_index: int
    release_jitter: int = 0
    withdrawn: bool = False

    @property
    def release_at(self) -> int:
        return self.timestamp + self.mixing_delay + self.release_jitter

    def to_dict(self) -> dict:
        return {
            "commitment": bytes_to_hex(self.commitment),
            "amount": self.amount,
            "timestamp": self.timestamp,
            "mixing_delay": self.mixing_delay,
            "release_jitter": self.release_jitter,
            "release_at": self.release_at,
            "pool_id": self.pool_id,
            "leaf_index": self.leaf_index,
            "withdrawn": self.withdrawn,
        }


class Registry(ABC):
    """Store of deposit records, spent nullifiers, and per-pool roots."""

    @abstractmethod
    def record_deposit(self, record: DepositRecord) -> None:
        """
        Store a new deposit record.

        Raises:
            DuplicateCommitmentError: If the commitment is already recorded
        """

    @abstractmethod
    def get_deposit(self, commitment: bytes) -> Optional[DepositRecord]:
        """Look up a deposit record by commitment."""

    @abstractmethod
    def has_commitment(self, commitment: bytes) -> bool:
        """Return True if the commitment has a deposit record."""

    @abstractmethod
    def mark_withdrawn(self, commitment: bytes) -> None:
        """
        Flip a deposit's ``withdrawn`` flag.

        Raises:
            UnknownCommitmentError: If the commitment is not recorded
            CommitmentAlreadyWithdrawnError: If the flag is already set
        """

    @abstractmethod
    def mark_spent(self, nullifier_hash: bytes) -> None:
        """
        Record a nullifier hash as spent.

        Raises:
            NullifierReusedError: If it is already spent
        """

    @abstractmethod
    def is_spent(self, nullifier_hash: bytes) -> bool:
        """Return True if the nullifier hash has been spent."""

    @abstractmethod
    def record_root(self, pool_id: int, root: bytes, leaf_count: int) -> None:
        """Persist a pool's current root and leaf count."""

    @abstractmethod
    def get_root(self, pool_id: int) -> Optional[Tuple[bytes, int]]:
        """Return a pool's persisted ``(root, leaf_count)``."""

    @abstractmethod
    def atomic(self):
        """
        Context manager grouping mutations into one all-or-nothing unit.

        If the block raises, every mutation made inside it is undone and the
        exception propagates. Nested blocks join the outermost one.
        """


class InMemoryRegistry(Registry):
    """
    Registry held in process memory.

    Mutations made inside ``atomic()`` push an undo entry onto a journal that
    is replayed in reverse if the block fails.
    """

    def __init__(self):
        self.deposits: Dict[bytes, DepositRecord] = {}
        self.spent_nullifiers: Set[bytes] = set()
        self.roots: Dict[int, Tuple[bytes, int]] = {}
        self._journal = UndoJournal()

    def atomic(self):
        return self._journal.transaction()

    def record_deposit(self, record: DepositRecord) -> None:
        if record.commitment in self.deposits:
            raise DuplicateCommitmentError(
                f"Commitment already exists: {bytes_to_hex(record.commitment)[:18]}..."
            )
        self.deposits[record.commitment] = record
        self._journal.record(lambda: self.deposits.pop(record.commitment, None))

    def get_deposit(self, commitment: bytes) -> Optional[DepositRecord]:
        return self.deposits.get(commitment)

    def has_commitment(self, commitment: bytes) -> bool:
        return commitment in self.deposits

    def mark_withdrawn(self, commitment: bytes) -> None:
        record = self.deposits.get(commitment)
        if record is None:
            raise UnknownCommitmentError(f"Unknown commitment: {bytes_to_hex(commitment)[:18]}...")
        if record.withdrawn:
            raise CommitmentAlreadyWithdrawnError(
                f"Deposit already withdrawn: {bytes_to_hex(commitment)[:18]}..."
            )
        self.deposits[commitment] = replace(record, withdrawn=True)
        self._journal.record(lambda: self.deposits.__setitem__(commitment, record))

    def mark_spent(self, nullifier_hash: bytes) -> None:
        if nullifier_hash in self.spent_nullifiers:
            raise NullifierReusedError(
                f"Nullifier already used: {bytes_to_hex(nullifier_hash)[:18]}..."
            )
        self.spent_nullifiers.add(nullifier_hash)
        self._journal.record(lambda: self.spent_nullifiers.discard(nullifier_hash))

    def is_spent(self, nullifier_hash: bytes) -> bool:
        return nullifier_hash in self.spent_nullifiers

    def record_root(self, pool_id: int, root: bytes, leaf_count: int) -> None:
        previous = self.roots.get(pool_id)
        self.roots[pool_id] = (root, leaf_count)
        if previous is None:
            self._journal.record(lambda: self.roots.pop(pool_id, None))
        else:
            self._journal.record(lambda: self.roots.__setitem__(pool_id, previous))

    def get_root(self, pool_id: int) -> Optional[Tuple[bytes, int]]:
        return self.roots.get(pool_id)

    def __len__(self) -> int:
        return len(self.deposits)
