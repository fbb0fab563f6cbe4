"""Mixing Pool Manager: pool lifecycle, deposits, withdrawals, and admin controls.

Deposit:
    1. Depositor derives commitment C = H(secret || amount || seed || fee) off-ledger
    2. Manager validates value, pool, delay, and (if configured) a deposit proof
    3. C is recorded in the registry and appended to the pool's Merkle tree
    4. A random release jitter is drawn and stored with the deposit record

Withdrawal:
    1. Withdrawer proves in zero knowledge that some leaf of the current root
       opens to a secret whose nullifier hash is N
    2. Public inputs bind the proof to [root, N, recipient, amount, fee]
    3. Manager verifies the Groth16 proof, marks N spent, and pays
       ``amount - fee`` to the recipient; ``fee`` accrues to the protocol

Every public mutating operation runs under one re-entrant lock and inside a
registry transaction plus an undo journal for in-process state. A failed
operation leaves registry, trees, pools, balances, and events untouched.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from zkmix.config import MixerSettings, get_settings
from zkmix.core.batching import BatchScheduler, TransactionBatch
from zkmix.core.events import (
    DepositCreated,
    EmergencyWithdrawal,
    EventBus,
    FeesWithdrawn,
    MixerEvent,
    MixingPoolUpdated,
    Paused,
    RandomDelayApplied,
    Unpaused,
    WithdrawalExecuted,
    ZKProofVerified,
)
from zkmix.core.journal import UndoJournal
from zkmix.core.ledger import Ledger
from zkmix.core.merkle_tree import MAX_DEPTH, MerkleTree
from zkmix.core.randomness import RandomnessSource, SystemRandomness
from zkmix.core.registry import DepositRecord, InMemoryRegistry, Registry
from zkmix.crypto import groth16
from zkmix.crypto.groth16 import Proof, VerificationKey
from zkmix.exceptions import (
    AdministrativeError,
    BatchError,
    CryptoError,
    DeserializationError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidCommitmentError,
    InvalidDelayError,
    InvalidDelayRangeError,
    InvalidDepthError,
    InvalidNullifierError,
    InvalidProofError,
    InvalidRecipientError,
    MixerPausedError,
    NullifierReusedError,
    PoolInactiveError,
    UnauthorizedError,
)
from zkmix.models.schemas import DepositInfo, MixerStatistics, PoolInfo, WithdrawalRequest
from zkmix.utils.encoding import (
    ZERO_ADDRESS,
    address_to_int,
    bytes_to_hex,
    ensure_bytes32,
    normalize_address,
)
from zkmix.utils.hash import is_field_element

logger = logging.getLogger(__name__)

WITHDRAW_PUBLIC_INPUTS = 5
DEPOSIT_PUBLIC_INPUTS = 2
BPS_DENOMINATOR = 10_000

HashLike = Union[bytes, str, int]
ProofLike = Union[Proof, Dict[str, Any]]


def withdrawal_public_inputs(
    root: bytes, nullifier_hash: bytes, recipient: str, amount: int, fee: int
) -> List[int]:
    """Public inputs of the withdrawal circuit, in circuit order."""
    return [
        int.from_bytes(root, "big"),
        int.from_bytes(nullifier_hash, "big"),
        address_to_int(recipient),
        amount,
        fee,
    ]


def deposit_public_inputs(commitment: bytes, amount: int) -> List[int]:
    """Public inputs of the optional deposit circuit."""
    return [int.from_bytes(commitment, "big"), amount]


@dataclass
class MixingPool:
    """A pool's fixed parameters, running totals, and accumulator."""

    pool_id: int
    min_delay: int
    max_delay: int
    merkle_depth: int
    tree: MerkleTree
    created_at: int
    total_amount: int = 0
    participant_count: int = 0
    is_active: bool = True

    @property
    def root(self) -> bytes:
        return self.tree.root

    def info(self) -> PoolInfo:
        return PoolInfo(
            pool_id=self.pool_id,
            is_active=self.is_active,
            total_amount=self.total_amount,
            participant_count=self.participant_count,
            min_delay=self.min_delay,
            max_delay=self.max_delay,
            merkle_depth=self.merkle_depth,
            root=bytes_to_hex(self.root),
        )


class DepositReceipt:
    """Receipt for a successful deposit."""

    def __init__(
        self,
        commitment: bytes,
        pool_id: int,
        leaf_index: int,
        merkle_root: bytes,
        amount: int,
        timestamp: int,
        release_at: int,
    ):
        self.commitment = commitment
        self.pool_id = pool_id
        self.leaf_index = leaf_index
        self.merkle_root = merkle_root
        self.amount = amount
        self.timestamp = timestamp
        self.release_at = release_at

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "commitment": bytes_to_hex(self.commitment),
            "pool_id": self.pool_id,
            "leaf_index": self.leaf_index,
            "merkle_root": bytes_to_hex(self.merkle_root),
            "amount": self.amount,
            "timestamp": self.timestamp,
            "release_at": self.release_at,
        }


class WithdrawalReceipt:
    """Receipt for a successful withdrawal."""

    def __init__(
        self,
        nullifier_hash: bytes,
        recipient: str,
        amount: int,
        fee: int,
        timestamp: int,
        proof_id: str,
    ):
        self.nullifier_hash = nullifier_hash
        self.recipient = recipient
        self.amount = amount
        self.fee = fee
        self.timestamp = timestamp
        self.proof_id = proof_id

    @property
    def net_amount(self) -> int:
        return self.amount - self.fee

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "nullifier_hash": bytes_to_hex(self.nullifier_hash),
            "recipient": self.recipient,
            "amount": self.amount,
            "fee": self.fee,
            "net_amount": self.net_amount,
            "timestamp": self.timestamp,
            "proof_id": self.proof_id,
        }


class MixingPoolManager:
    """
    Orchestrates pools, the registry, and the Groth16 verifier.

    The registry and accumulators are owned exclusively by the manager. The
    verification keys are fixed at construction.
    """

    MAX_DEPTH = MAX_DEPTH

    def __init__(
        self,
        owner: str,
        withdraw_key: VerificationKey,
        *,
        registry: Optional[Registry] = None,
        settings: Optional[MixerSettings] = None,
        randomness: Optional[RandomnessSource] = None,
        clock: Optional[Callable[[], float]] = None,
        events: Optional[EventBus] = None,
        deposit_key: Optional[VerificationKey] = None,
    ):
        """
        Initialize the manager with no pools.

        Args:
            owner: Address allowed to run administrative operations
            withdraw_key: Verification key of the withdrawal circuit (5 public inputs)
            registry: Deposit/nullifier store (in-memory by default)
            settings: Mixer settings (process settings by default)
            randomness: Source for release jitter and batch ordering
            clock: Returns the current unix time
            events: Event bus receiving committed events
            deposit_key: Optional verification key of a deposit circuit (2 public inputs)

        Raises:
            ValueError: If a key has the wrong number of public inputs
        """
        if withdraw_key.n_public != WITHDRAW_PUBLIC_INPUTS:
            raise ValueError(
                f"Withdrawal key must have {WITHDRAW_PUBLIC_INPUTS} public inputs, "
                f"got {withdraw_key.n_public}"
            )
        if deposit_key is not None and deposit_key.n_public != DEPOSIT_PUBLIC_INPUTS:
            raise ValueError(
                f"Deposit key must have {DEPOSIT_PUBLIC_INPUTS} public inputs, "
                f"got {deposit_key.n_public}"
            )

        self.owner = normalize_address(owner)
        self.withdraw_key = withdraw_key
        self.deposit_key = deposit_key
        self.registry = registry if registry is not None else InMemoryRegistry()
        self.settings = settings or get_settings()
        self.randomness = randomness or SystemRandomness()
        self.events = events or EventBus()
        self._clock = clock or time.time

        self.random_delay_range = self.settings.random_delay_range
        self.pools: Dict[int, MixingPool] = {}
        self.paused = False
        self.total_deposits = 0
        self.total_withdrawals = 0
        self.total_volume = 0

        self._lock = threading.RLock()
        self._journal = UndoJournal()
        self.ledger = Ledger(self._journal)
        self.batches = BatchScheduler(self)
        self._pending_events: Optional[List[MixerEvent]] = None

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Run a block as one serialized all-or-nothing operation.

        Events emitted inside the block are published only if it commits.
        Nested blocks join the outermost one.
        """
        with self._lock:
            if self._pending_events is not None:
                yield
                return

            self._pending_events = []
            try:
                with self._journal.transaction(), self.registry.atomic():
                    yield
            except BaseException:
                self._pending_events = None
                raise
            events, self._pending_events = self._pending_events, None
            for event in events:
                self.events.emit(event)

    def _emit(self, event: MixerEvent) -> None:
        if self._pending_events is None:
            self.events.emit(event)
        else:
            self._pending_events.append(event)

    def _set(self, obj: Any, attr: str, value: Any) -> None:
        """Assign an attribute and journal its previous value."""
        previous = getattr(obj, attr)
        setattr(obj, attr, value)
        self._journal.record(lambda: setattr(obj, attr, previous))

    def _now(self) -> int:
        return int(self._clock())

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str) -> None:
        try:
            if normalize_address(caller) == self.owner:
                return
        except ValueError:
            pass
        raise UnauthorizedError("Caller is not the owner")

    def _require_not_paused(self) -> None:
        if self.paused:
            raise MixerPausedError("Pausable: paused")

    def _active_pool(self, pool_id: int) -> MixingPool:
        pool = self.pools.get(pool_id)
        if pool is None or not pool.is_active:
            raise PoolInactiveError("Pool not active")
        return pool

    @staticmethod
    def _as_commitment(commitment: HashLike) -> bytes:
        try:
            value = ensure_bytes32(commitment)
        except (ValueError, TypeError) as e:
            raise InvalidCommitmentError(f"Invalid commitment: {e}") from e
        if not is_field_element(value):
            raise InvalidCommitmentError("Commitment is not a canonical field element")
        return value

    @staticmethod
    def _as_nullifier(nullifier_hash: HashLike) -> bytes:
        try:
            value = ensure_bytes32(nullifier_hash)
        except (ValueError, TypeError) as e:
            raise InvalidNullifierError(f"Invalid nullifier hash: {e}") from e
        if not is_field_element(value):
            raise InvalidNullifierError("Nullifier hash is not a canonical field element")
        return value

    @staticmethod
    def _as_recipient(recipient: str) -> str:
        try:
            address = normalize_address(recipient)
        except (ValueError, TypeError) as e:
            raise InvalidRecipientError("Invalid recipient") from e
        if address == ZERO_ADDRESS:
            raise InvalidRecipientError("Invalid recipient")
        return address

    @staticmethod
    def _as_proof(proof: Optional[ProofLike]) -> Proof:
        if isinstance(proof, Proof):
            if not groth16.is_well_formed(proof):
                raise InvalidProofError("Malformed proof: point shape or curve check failed")
            return proof
        if isinstance(proof, dict):
            try:
                return Proof.from_snarkjs(proof)
            except (CryptoError, DeserializationError) as e:
                raise InvalidProofError(f"Malformed proof: {e}") from e
        raise InvalidProofError("Proof missing")

    def compute_fee(self, amount: int) -> int:
        """Protocol fee for a withdrawal of ``amount`` wei."""
        return amount * self.settings.withdrawal_fee_bps // BPS_DENOMINATOR

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    def create_pool(self, min_delay: int, max_delay: int, merkle_depth: int, *, caller: str) -> int:
        """
        Create a mixing pool.

        Args:
            min_delay: Shortest mixing delay a deposit may request (seconds)
            max_delay: Longest mixing delay a deposit may request (seconds)
            merkle_depth: Accumulator depth, at most ``max_merkle_depth``
            caller: Must be the owner

        Returns:
            int: New sequential pool id, starting at 1

        Raises:
            UnauthorizedError: If caller is not the owner
            InvalidDelayRangeError: If min_delay > max_delay or a delay is negative
            InvalidDepthError: If merkle_depth is out of range
        """
        with self.transaction():
            self._require_owner(caller)
            if min_delay < 0 or min_delay > max_delay:
                raise InvalidDelayRangeError("Invalid delay range")
            if not 1 <= merkle_depth <= min(self.MAX_DEPTH, self.settings.max_merkle_depth):
                raise InvalidDepthError("Invalid merkle depth")

            pool_id = len(self.pools) + 1
            pool = MixingPool(
                pool_id=pool_id,
                min_delay=min_delay,
                max_delay=max_delay,
                merkle_depth=merkle_depth,
                tree=MerkleTree(merkle_depth),
                created_at=self._now(),
            )
            self.pools[pool_id] = pool
            self._journal.record(lambda: self.pools.pop(pool_id, None))
            self.registry.record_root(pool_id, pool.root, 0)

        logger.info(
            "Created pool %d (delay %d-%ds, depth %d)", pool_id, min_delay, max_delay, merkle_depth
        )
        return pool_id

    def set_pool_active(self, pool_id: int, active: bool, *, caller: str) -> None:
        """Toggle a pool's ``is_active`` flag (owner only)."""
        with self.transaction():
            self._require_owner(caller)
            pool = self.pools.get(pool_id)
            if pool is None:
                raise PoolInactiveError(f"Pool not found: {pool_id}")
            self._set(pool, "is_active", bool(active))
        logger.info("Pool %d active=%s", pool_id, bool(active))

    def update_random_delay_range(self, seconds: int, *, caller: str) -> None:
        """Set the upper bound of the per-deposit release jitter (owner only)."""
        with self.transaction():
            self._require_owner(caller)
            if seconds < 0:
                raise InvalidDelayError("Invalid random delay range")
            self._set(self, "random_delay_range", seconds)

    # ------------------------------------------------------------------
    # Deposit / withdraw
    # ------------------------------------------------------------------

    def deposit(
        self,
        commitment: HashLike,
        pool_id: int,
        mixing_delay: int,
        value: int,
        proof: Optional[ProofLike] = None,
    ) -> DepositReceipt:
        """
        Deposit ``value`` wei under ``commitment``.

        Args:
            commitment: 32-byte commitment (bytes, hex, or int)
            pool_id: Target pool
            mixing_delay: Requested delay within the pool's range (seconds)
            value: Attached value in wei
            proof: Deposit proof; required only when a deposit key is configured

        Returns:
            DepositReceipt: Leaf index, new root, and advisory release time

        Raises:
            MixerPausedError: If the mixer is paused
            InvalidAmountError: If value is outside [min_deposit, max_deposit]
            PoolInactiveError: If the pool is unknown or inactive
            InvalidDelayError: If mixing_delay is outside the pool's range
            InvalidCommitmentError: If the commitment is malformed
            InvalidProofError: If a required deposit proof is missing or rejected
            DuplicateCommitmentError: If the commitment was already deposited
            TreeFullError: If the pool's accumulator is full
        """
        with self.transaction():
            self._require_not_paused()
            if (
                isinstance(value, bool)
                or not isinstance(value, int)
                or not self.settings.min_deposit <= value <= self.settings.max_deposit
            ):
                raise InvalidAmountError("Invalid deposit amount")
            pool = self._active_pool(pool_id)
            if (
                isinstance(mixing_delay, bool)
                or not isinstance(mixing_delay, int)
                or not pool.min_delay <= mixing_delay <= pool.max_delay
            ):
                raise InvalidDelayError("Invalid mixing delay")
            leaf = self._as_commitment(commitment)

            if self.deposit_key is not None:
                inputs = deposit_public_inputs(leaf, value)
                if not groth16.verify(self._as_proof(proof), self.deposit_key, inputs):
                    raise InvalidProofError("Invalid deposit proof")
            elif proof is not None:
                logger.debug("No deposit key configured; ignoring deposit proof")

            now = self._now()
            jitter = self.randomness.randint(0, self.random_delay_range)
            record = DepositRecord(
                commitment=leaf,
                amount=value,
                timestamp=now,
                mixing_delay=mixing_delay,
                pool_id=pool_id,
                leaf_index=len(pool.tree),
                release_jitter=jitter,
            )
            self.registry.record_deposit(record)

            root = pool.tree.insert(leaf)
            self._journal.record(pool.tree._pop_leaf)
            self.registry.record_root(pool_id, root, len(pool.tree))

            self._set(pool, "total_amount", pool.total_amount + value)
            self._set(pool, "participant_count", pool.participant_count + 1)
            self._set(self, "total_deposits", self.total_deposits + 1)
            self._set(self, "total_volume", self.total_volume + value)
            self.ledger.receive(value)

            self._emit(DepositCreated(commitment=leaf, amount=value, pool_id=pool_id, timestamp=now))
            self._emit(RandomDelayApplied(commitment=leaf, mixing_delay=mixing_delay, release_jitter=jitter))
            self._emit(MixingPoolUpdated(pool_id=pool_id, new_root=root))

        logger.info(
            "Deposit %s... accepted into pool %d at leaf %d",
            bytes_to_hex(leaf)[:18],
            pool_id,
            record.leaf_index,
        )
        return DepositReceipt(
            commitment=leaf,
            pool_id=pool_id,
            leaf_index=record.leaf_index,
            merkle_root=root,
            amount=value,
            timestamp=now,
            release_at=record.release_at,
        )

    def withdraw(
        self,
        nullifier_hash: HashLike,
        recipient: str,
        amount: int,
        proof: ProofLike,
        *,
        pool_id: int = 1,
        commitment: Optional[HashLike] = None,
    ) -> WithdrawalReceipt:
        """
        Withdraw ``amount`` to ``recipient`` against a Groth16 proof.

        The proof must verify against the pool's current root with public
        inputs ``[root, nullifier_hash, recipient, amount, fee]``.

        Args:
            nullifier_hash: Nullifier hash revealed by the withdrawer
            recipient: Payout address
            amount: Gross amount in wei; the recipient receives ``amount - fee``
            proof: Groth16 proof (``Proof`` or snarkjs dict)
            pool_id: Pool whose root the proof references
            commitment: Optional voluntary disclosure that flips the deposit's
                ``withdrawn`` flag; it links the withdrawal to its deposit

        Returns:
            WithdrawalReceipt: Amounts paid and the proof id

        Raises:
            MixerPausedError: If the mixer is paused
            InvalidRecipientError: If recipient is empty, malformed, or zero
            InvalidAmountError: If amount is zero or negative
            InvalidNullifierError: If the nullifier hash is malformed
            PoolInactiveError: If the pool is unknown or inactive
            InvalidProofError: If the verifier rejects the proof
            NullifierReusedError: If the nullifier hash was already spent
            InsufficientFundsError: If custody holds less than amount
        """
        with self.transaction():
            self._require_not_paused()
            payee = self._as_recipient(recipient)
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise InvalidAmountError("Invalid amount")
            nullifier = self._as_nullifier(nullifier_hash)
            pool = self._active_pool(pool_id)
            if self.registry.is_spent(nullifier):
                logger.warning("Double-spend attempt with nullifier %s...", bytes_to_hex(nullifier)[:18])
                raise NullifierReusedError("Nullifier already used")
            parsed = self._as_proof(proof)

            fee = self.compute_fee(amount)
            inputs = withdrawal_public_inputs(pool.root, nullifier, payee, amount, fee)
            pid = groth16.proof_id(parsed, inputs)
            if not groth16.verify(parsed, self.withdraw_key, inputs):
                logger.warning("Rejected withdrawal proof %s...", pid[:18])
                raise InvalidProofError("Invalid withdrawal proof")
            self._emit(ZKProofVerified(proof_id=pid, success=True))

            try:
                self.registry.mark_spent(nullifier)
            except NullifierReusedError:
                logger.warning("Double-spend attempt with nullifier %s...", bytes_to_hex(nullifier)[:18])
                raise
            self.ledger.pay_out(payee, amount, fee)
            if commitment is not None:
                self.registry.mark_withdrawn(self._as_commitment(commitment))
            self._set(self, "total_withdrawals", self.total_withdrawals + 1)

            now = self._now()
            self._emit(
                WithdrawalExecuted(
                    nullifier_hash=nullifier, recipient=payee, amount=amount, timestamp=now
                )
            )

        logger.info(
            "Withdrawal %s... paid %d wei (fee %d)", bytes_to_hex(nullifier)[:18], amount - fee, fee
        )
        return WithdrawalReceipt(
            nullifier_hash=nullifier,
            recipient=payee,
            amount=amount,
            fee=fee,
            timestamp=now,
            proof_id=pid,
        )

    def batch_withdraw(
        self,
        nullifier_hashes: Sequence[HashLike],
        recipients: Sequence[str],
        amounts: Sequence[int],
        proofs: Sequence[ProofLike],
        *,
        pool_id: int = 1,
    ) -> List[WithdrawalReceipt]:
        """
        Apply ``withdraw`` to each tuple as one atomic unit.

        A single failing element (including a nullifier repeated inside the
        batch) aborts the whole batch and leaves all state unchanged.

        Raises:
            BatchError: If the columns differ in length, are empty, or exceed
                ``max_batch_size``
            ZKMixerException: The first element failure, after rollback
        """
        size = len(nullifier_hashes)
        if not (size == len(recipients) == len(amounts) == len(proofs)):
            raise BatchError("Batch columns differ in length")
        return self._withdraw_many(
            [
                (nullifier_hashes[i], recipients[i], amounts[i], proofs[i], pool_id)
                for i in range(size)
            ]
        )

    def _withdraw_many(self, items: Sequence[Tuple[HashLike, str, int, ProofLike, int]]) -> List[WithdrawalReceipt]:
        if not items:
            raise BatchError("Empty transaction batch")
        if len(items) > self.settings.max_batch_size:
            raise BatchError(f"Batch exceeds {self.settings.max_batch_size} withdrawals")

        with self.transaction():
            receipts = [
                self.withdraw(nullifier, recipient, amount, proof, pool_id=pool_id)
                for nullifier, recipient, amount, proof, pool_id in items
            ]
        logger.info("Batch of %d withdrawals executed", len(receipts))
        return receipts

    def withdraw_requests(self, requests: Sequence[WithdrawalRequest]) -> List[WithdrawalReceipt]:
        """Execute queued withdrawal requests atomically, in the given order."""
        return self._withdraw_many(
            [(r.nullifier_bytes, r.recipient, r.amount, r.proof, r.pool_id) for r in requests]
        )

    # ------------------------------------------------------------------
    # Anti-correlation batching
    # ------------------------------------------------------------------

    def create_transaction_batch(
        self, requests: Sequence[WithdrawalRequest], min_delay: int, *, caller: str
    ) -> TransactionBatch:
        """Queue withdrawals for shuffled, delayed execution (owner only)."""
        return self.batches.create_batch(requests, min_delay, caller=caller)

    def process_batch(self, batch_id: int, *, caller: str) -> List[WithdrawalReceipt]:
        """Execute a queued batch once its delay has passed (owner only)."""
        return self.batches.process_batch(batch_id, caller=caller)

    def get_batch(self, batch_id: int) -> TransactionBatch:
        return self.batches.get_batch(batch_id)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def pause(self, *, caller: str) -> None:
        """Block every state-mutating entry point except emergency withdrawal."""
        with self.transaction():
            self._require_owner(caller)
            self._require_not_paused()
            self._set(self, "paused", True)
            self._emit(Paused(account=self.owner))
        logger.warning("Mixer paused")

    def unpause(self, *, caller: str) -> None:
        with self.transaction():
            self._require_owner(caller)
            if not self.paused:
                raise AdministrativeError("Pausable: not paused")
            self._set(self, "paused", False)
            self._emit(Unpaused(account=self.owner))
        logger.info("Mixer unpaused")

    def emergency_withdraw(self, *, caller: str) -> int:
        """
        Sweep custody and accrued fees to the owner, bypassing all withdrawal checks.

        Works while paused. Returns the amount swept.
        """
        with self.transaction():
            self._require_owner(caller)
            amount = self.ledger.sweep_all(self.owner)
            self._emit(EmergencyWithdrawal(recipient=self.owner, amount=amount))
        return amount

    def withdraw_fees(self, *, caller: str) -> int:
        """
        Transfer accrued protocol fees to the owner.

        Raises:
            InsufficientFundsError: If no fees have accrued
        """
        with self.transaction():
            self._require_owner(caller)
            if self.ledger.protocol_fees == 0:
                raise InsufficientFundsError("No fees to withdraw")
            amount = self.ledger.sweep_fees(self.owner)
            self._emit(FeesWithdrawn(recipient=self.owner, amount=amount))
        logger.info("Withdrew %d wei of fees", amount)
        return amount

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_pool_info(self, pool_id: int) -> PoolInfo:
        """Pool view; an unknown id yields an inactive, zero-valued view."""
        with self._lock:
            pool = self.pools.get(pool_id)
            if pool is None:
                return PoolInfo(
                    pool_id=0,
                    is_active=False,
                    total_amount=0,
                    participant_count=0,
                    min_delay=0,
                    max_delay=0,
                    merkle_depth=0,
                    root=bytes_to_hex(b"\x00" * 32),
                )
            return pool.info()

    def get_deposit_info(self, commitment: HashLike) -> DepositInfo:
        """Deposit view; an unknown commitment yields a zero-valued view."""
        with self._lock:
            record = self.registry.get_deposit(self._as_commitment(commitment))
        if record is None:
            return DepositInfo(amount=0, timestamp=0, withdrawn=False, delay=0)
        return DepositInfo(
            amount=record.amount,
            timestamp=record.timestamp,
            withdrawn=record.withdrawn,
            delay=record.mixing_delay,
            release_jitter=record.release_jitter,
            release_at=record.release_at,
            pool_id=record.pool_id,
        )

    def is_nullifier_used(self, nullifier_hash: HashLike) -> bool:
        with self._lock:
            return self.registry.is_spent(self._as_nullifier(nullifier_hash))

    def current_root(self, pool_id: int) -> bytes:
        with self._lock:
            pool = self.pools.get(pool_id)
            if pool is None:
                raise PoolInactiveError(f"Pool not found: {pool_id}")
            return pool.root

    def get_merkle_path(self, pool_id: int, leaf_index: int) -> Tuple[List[bytes], List[int]]:
        """Authentication path of a leaf against the pool's current root."""
        with self._lock:
            pool = self.pools.get(pool_id)
            if pool is None:
                raise PoolInactiveError(f"Pool not found: {pool_id}")
            return pool.tree.get_path(leaf_index)

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.ledger.balance_of(normalize_address(account))

    @property
    def protocol_fees(self) -> int:
        return self.ledger.protocol_fees

    def get_statistics(self) -> MixerStatistics:
        """Get mixer statistics."""
        with self._lock:
            return MixerStatistics(
                total_deposits=self.total_deposits,
                total_withdrawals=self.total_withdrawals,
                total_pools=len(self.pools),
                total_batches=len(self.batches),
                total_volume=self.total_volume,
                held_balance=self.ledger.held,
                protocol_fees=self.ledger.protocol_fees,
                paused=self.paused,
            )
