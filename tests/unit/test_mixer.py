"""Tests for the mixing pool manager."""

from contextlib import contextmanager

import pytest

from zkmix.config import MixerSettings
from zkmix.core.commitment import Commitment
from zkmix.core.events import (
    DepositCreated,
    EmergencyWithdrawal,
    FeesWithdrawn,
    MixingPoolUpdated,
    Paused,
    RandomDelayApplied,
    Unpaused,
    WithdrawalExecuted,
    ZKProofVerified,
)
from zkmix.core.merkle_tree import ZERO_HASHES, MerkleTree
from zkmix.core.mixer import MixingPoolManager, deposit_public_inputs
from zkmix.core.randomness import SeededRandomness
from zkmix.core.registry import InMemoryRegistry
from zkmix.crypto.groth16 import Proof
from zkmix.exceptions import (
    AdministrativeError,
    BatchError,
    DuplicateCommitmentError,
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
    StorageError,
    TreeFullError,
    UnauthorizedError,
)
from zkmix.utils.encoding import ZERO_ADDRESS, bytes_to_hex, int_to_bytes32
from zkmix.utils.hash import SNARK_SCALAR_FIELD

from conftest import ALICE, BOB, CAROL, ETHER, OWNER, withdrawal_proof

FEE = ETHER * 10 // 10_000


def deposit_note(manager, pool_id, amount=ETHER, delay=7200):
    note = Commitment.create_note(amount)
    manager.deposit(note.commitment, pool_id, delay, amount)
    return note


class FailingCommitRegistry(InMemoryRegistry):
    """Registry whose commit fails after the block body has run."""

    def __init__(self):
        super().__init__()
        self.fail_commit = False

    @contextmanager
    def atomic(self):
        with super().atomic():
            yield
            if self.fail_commit:
                raise StorageError("Commit failed")


class TestManagerConstruction:
    """Tests for manager setup."""

    def test_withdraw_key_size_checked(self, deposit_circuit, settings):
        """Test that a key with the wrong number of inputs is refused."""
        with pytest.raises(ValueError):
            MixingPoolManager(OWNER, deposit_circuit.vk, settings=settings)

    def test_deposit_key_size_checked(self, withdraw_circuit, settings):
        with pytest.raises(ValueError):
            MixingPoolManager(
                OWNER, withdraw_circuit.vk, settings=settings, deposit_key=withdraw_circuit.vk
            )

    def test_owner_normalized(self, withdraw_circuit, settings):
        manager = MixingPoolManager(OWNER.upper().replace("0X", "0x"), withdraw_circuit.vk, settings=settings)
        assert manager.owner == OWNER
        assert manager.pools == {}
        assert not manager.paused


class TestPoolCreation:
    """Tests for pool lifecycle."""

    def test_sequential_ids(self, manager):
        """Test that pool ids start at 1 and increase."""
        assert manager.create_pool(3600, 604_800, 32, caller=OWNER) == 1
        assert manager.create_pool(0, 0, 1, caller=OWNER) == 2

    def test_pool_info(self, manager, pool_id):
        info = manager.get_pool_info(pool_id)
        assert info.pool_id == 1
        assert info.is_active
        assert info.total_amount == 0
        assert info.participant_count == 0
        assert (info.min_delay, info.max_delay, info.merkle_depth) == (3600, 604_800, 32)
        assert info.root == bytes_to_hex(ZERO_HASHES[32])
        assert manager.registry.get_root(pool_id) == (ZERO_HASHES[32], 0)

    def test_invalid_delay_range(self, manager):
        """Test that min_delay above max_delay is rejected."""
        with pytest.raises(InvalidDelayRangeError, match="Invalid delay range"):
            manager.create_pool(100, 50, 20, caller=OWNER)
        with pytest.raises(InvalidDelayRangeError):
            manager.create_pool(-1, 50, 20, caller=OWNER)
        assert manager.pools == {}

    def test_invalid_depth(self, manager):
        """Test that depths outside 1..32 are rejected."""
        for depth in (0, 33):
            with pytest.raises(InvalidDepthError, match="Invalid merkle depth"):
                manager.create_pool(3600, 604_800, depth, caller=OWNER)

    def test_configured_depth_cap(self, withdraw_circuit, clock):
        settings = MixerSettings(max_merkle_depth=20, database_url="sqlite://")
        manager = MixingPoolManager(OWNER, withdraw_circuit.vk, settings=settings, clock=clock)
        manager.create_pool(0, 10, 20, caller=OWNER)
        with pytest.raises(InvalidDepthError):
            manager.create_pool(0, 10, 21, caller=OWNER)

    def test_owner_only(self, manager):
        for caller in (ALICE, "not-an-address"):
            with pytest.raises(UnauthorizedError):
                manager.create_pool(3600, 604_800, 32, caller=caller)

    def test_unknown_pool_zero_view(self, manager):
        info = manager.get_pool_info(99)
        assert info.pool_id == 0
        assert not info.is_active
        assert info.total_amount == 0

    def test_unknown_pool_root(self, manager):
        with pytest.raises(PoolInactiveError):
            manager.current_root(5)
        with pytest.raises(PoolInactiveError):
            manager.get_merkle_path(5, 0)


class TestDeposit:
    """Tests for deposits."""

    def test_deposit_updates_state(self, manager, pool_id, clock):
        """Test that a deposit lands in registry, tree, pool and ledger."""
        note = Commitment.create_note(ETHER)
        receipt = manager.deposit(note.commitment, pool_id, 7200, ETHER)

        assert receipt.leaf_index == 0
        assert receipt.merkle_root == manager.current_root(pool_id)
        assert receipt.timestamp == clock.now

        info = manager.get_pool_info(pool_id)
        assert info.total_amount == ETHER
        assert info.participant_count == 1

        deposit = manager.get_deposit_info(note.commitment)
        assert deposit.amount == ETHER
        assert deposit.delay == 7200
        assert deposit.timestamp == clock.now
        assert not deposit.withdrawn
        assert 0 <= deposit.release_jitter <= 3600
        assert deposit.release_at == clock.now + 7200 + deposit.release_jitter
        assert receipt.release_at == deposit.release_at

        assert manager.ledger.held == ETHER
        assert manager.registry.get_root(pool_id) == (receipt.merkle_root, 1)

    def test_deposit_events(self, manager, pool_id):
        """Test the events a deposit emits, in order."""
        note = deposit_note(manager, pool_id)
        events = manager.events.history
        assert [type(e) for e in events] == [DepositCreated, RandomDelayApplied, MixingPoolUpdated]
        assert events[0].commitment == note.commitment
        assert events[0].amount == ETHER
        assert events[2].new_root == manager.current_root(pool_id)
        assert events[0].to_dict()["commitment"] == bytes_to_hex(note.commitment)

    def test_subscribers_notified(self, manager, pool_id):
        seen = []
        manager.events.subscribe(seen.append)
        deposit_note(manager, pool_id)
        assert [e.name for e in seen] == ["DepositCreated", "RandomDelayApplied", "MixingPoolUpdated"]

    def test_commitment_forms(self, manager, pool_id):
        """Test that hex and int commitments are accepted."""
        manager.deposit("0x" + "00" * 31 + "05", pool_id, 3600, ETHER)
        manager.deposit(6, pool_id, 3600, ETHER)
        assert manager.get_deposit_info(5).amount == ETHER
        assert manager.get_deposit_info(int_to_bytes32(6)).amount == ETHER

    @pytest.mark.parametrize("value", [ETHER // 200, 0, -1, 10**25, True])
    def test_invalid_amount(self, manager, pool_id, value):
        """Test that 0.005 ETH and other out-of-range values are refused."""
        with pytest.raises(InvalidAmountError, match="Invalid deposit amount"):
            manager.deposit(int_to_bytes32(1), pool_id, 7200, value)

    def test_amount_bounds_inclusive(self, manager, pool_id):
        manager.deposit(int_to_bytes32(1), pool_id, 7200, ETHER // 100)

    @pytest.mark.parametrize("delay", [3599, 604_801, -5])
    def test_invalid_delay(self, manager, pool_id, delay):
        with pytest.raises(InvalidDelayError, match="Invalid mixing delay"):
            manager.deposit(int_to_bytes32(1), pool_id, delay, ETHER)

    def test_delay_bounds_inclusive(self, manager, pool_id):
        manager.deposit(int_to_bytes32(1), pool_id, 3600, ETHER)
        manager.deposit(int_to_bytes32(2), pool_id, 604_800, ETHER)

    def test_unknown_or_inactive_pool(self, manager, pool_id):
        with pytest.raises(PoolInactiveError, match="Pool not active"):
            manager.deposit(int_to_bytes32(1), 42, 7200, ETHER)
        manager.set_pool_active(pool_id, False, caller=OWNER)
        with pytest.raises(PoolInactiveError):
            manager.deposit(int_to_bytes32(1), pool_id, 7200, ETHER)
        manager.set_pool_active(pool_id, True, caller=OWNER)
        manager.deposit(int_to_bytes32(1), pool_id, 7200, ETHER)

    def test_invalid_commitment(self, manager, pool_id):
        with pytest.raises(InvalidCommitmentError):
            manager.deposit(int_to_bytes32(SNARK_SCALAR_FIELD), pool_id, 7200, ETHER)
        with pytest.raises(InvalidCommitmentError):
            manager.deposit(b"short", pool_id, 7200, ETHER)

    def test_duplicate_commitment_leaves_state(self, manager, pool_id):
        """Test that a rejected duplicate changes nothing."""
        note = deposit_note(manager, pool_id)
        root = manager.current_root(pool_id)
        history = len(manager.events.history)

        with pytest.raises(DuplicateCommitmentError):
            manager.deposit(note.commitment, pool_id, 7200, ETHER)

        assert manager.current_root(pool_id) == root
        assert manager.get_pool_info(pool_id).participant_count == 1
        assert manager.ledger.held == ETHER
        assert len(manager.events.history) == history

    def test_tree_full_rolls_back_registry(self, manager):
        """Test that a full accumulator aborts the deposit entirely."""
        pool = manager.create_pool(0, 100, 1, caller=OWNER)
        manager.deposit(int_to_bytes32(1), pool, 0, ETHER)
        manager.deposit(int_to_bytes32(2), pool, 0, ETHER)

        with pytest.raises(TreeFullError):
            manager.deposit(int_to_bytes32(3), pool, 0, ETHER)

        assert not manager.registry.has_commitment(int_to_bytes32(3))
        assert manager.get_pool_info(pool).participant_count == 2
        assert manager.ledger.held == 2 * ETHER
        assert manager.get_statistics().total_deposits == 2

    def test_registry_commit_failure_rolls_back(self, withdraw_circuit, settings, clock):
        """Test that a failing registry commit leaves pool, ledger, and tree untouched."""
        registry = FailingCommitRegistry()
        manager = MixingPoolManager(
            OWNER,
            withdraw_circuit.vk,
            registry=registry,
            settings=settings,
            randomness=SeededRandomness(b"commit"),
            clock=clock,
        )
        pool = manager.create_pool(3600, 604_800, 32, caller=OWNER)
        root = manager.current_root(pool)
        note = Commitment.create_note(ETHER)

        registry.fail_commit = True
        with pytest.raises(StorageError, match="Commit failed"):
            manager.deposit(note.commitment, pool, 7200, ETHER)

        assert not registry.has_commitment(note.commitment)
        assert len(manager.pools[pool].tree) == 0
        assert manager.current_root(pool) == root
        assert manager.get_pool_info(pool).participant_count == 0
        assert manager.get_pool_info(pool).total_amount == 0
        assert manager.ledger.held == 0
        assert manager.get_statistics().total_deposits == 0
        assert manager.events.of_type(DepositCreated) == []

        registry.fail_commit = False
        assert manager.deposit(note.commitment, pool, 7200, ETHER).leaf_index == 0

    def test_paused_blocks_deposit(self, manager, pool_id):
        manager.pause(caller=OWNER)
        with pytest.raises(MixerPausedError, match="Pausable: paused"):
            manager.deposit(int_to_bytes32(1), pool_id, 7200, ETHER)

    def test_zero_random_delay_range(self, manager, pool_id):
        manager.update_random_delay_range(0, caller=OWNER)
        note = deposit_note(manager, pool_id)
        assert manager.get_deposit_info(note.commitment).release_jitter == 0
        with pytest.raises(InvalidDelayError):
            manager.update_random_delay_range(-1, caller=OWNER)
        with pytest.raises(UnauthorizedError):
            manager.update_random_delay_range(10, caller=ALICE)

    def test_unknown_deposit_zero_view(self, manager):
        info = manager.get_deposit_info(int_to_bytes32(123))
        assert (info.amount, info.timestamp, info.withdrawn, info.delay) == (0, 0, False, 0)


class TestDepositProofs:
    """Tests for deposits gated by a deposit circuit."""

    @pytest.fixture
    def gated(self, withdraw_circuit, deposit_circuit, settings, clock):
        manager = MixingPoolManager(
            OWNER,
            withdraw_circuit.vk,
            settings=settings,
            randomness=SeededRandomness(b"gated"),
            clock=clock,
            deposit_key=deposit_circuit.vk,
        )
        manager.create_pool(3600, 604_800, 20, caller=OWNER)
        return manager

    def test_proof_required(self, gated):
        with pytest.raises(InvalidProofError, match="Proof missing"):
            gated.deposit(int_to_bytes32(1), 1, 7200, ETHER)

    def test_valid_proof_accepted(self, gated, deposit_circuit):
        """Test that a proof over (commitment, amount) admits the deposit."""
        commitment = int_to_bytes32(1)
        proof = deposit_circuit.prove(deposit_public_inputs(commitment, ETHER))
        gated.deposit(commitment, 1, 7200, ETHER, proof=proof.to_snarkjs())
        assert gated.get_deposit_info(commitment).amount == ETHER

    def test_proof_bound_to_amount(self, gated, deposit_circuit):
        commitment = int_to_bytes32(1)
        proof = deposit_circuit.prove(deposit_public_inputs(commitment, ETHER))
        with pytest.raises(InvalidProofError, match="Invalid deposit proof"):
            gated.deposit(commitment, 1, 7200, 2 * ETHER, proof=proof)
        assert not gated.registry.has_commitment(commitment)

    def test_proof_ignored_without_key(self, manager, pool_id):
        manager.deposit(int_to_bytes32(1), pool_id, 7200, ETHER, proof={"junk": True})
        assert manager.get_deposit_info(int_to_bytes32(1)).amount == ETHER


class TestWithdraw:
    """Tests for withdrawals."""

    def test_withdraw_pays_recipient(self, manager, pool_id, withdraw_circuit):
        """Test a full deposit and withdrawal cycle."""
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)

        receipt = manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)

        assert receipt.fee == FEE
        assert receipt.net_amount == ETHER - FEE
        assert manager.balance_of(BOB) == ETHER - FEE
        assert manager.protocol_fees == FEE
        assert manager.ledger.held == 0
        assert manager.is_nullifier_used(note.nullifier_hash)
        assert manager.get_statistics().total_withdrawals == 1
        assert receipt.to_dict()["recipient"] == BOB

        verified = manager.events.of_type(ZKProofVerified)
        executed = manager.events.of_type(WithdrawalExecuted)
        assert len(verified) == 1 and verified[0].success
        assert verified[0].proof_id == receipt.proof_id
        assert executed[0].nullifier_hash == note.nullifier_hash
        assert executed[0].amount == ETHER

    def test_nullifier_reuse_rejected(self, manager, pool_id, withdraw_circuit):
        """Test that a spent nullifier cannot withdraw again."""
        deposit_note(manager, pool_id)
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)

        with pytest.raises(NullifierReusedError):
            manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)
        assert manager.balance_of(BOB) == ETHER - FEE
        assert manager.ledger.held == ETHER

    def test_spent_nullifier_with_stale_proof(self, manager, pool_id, withdraw_circuit):
        """Test that reuse is reported even after the root has moved on."""
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)
        deposit_note(manager, pool_id)

        with pytest.raises(NullifierReusedError):
            manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)
        with pytest.raises(NullifierReusedError):
            manager.withdraw(note.nullifier_hash, CAROL, ETHER, {})
        assert manager.balance_of(BOB) == ETHER - FEE
        assert manager.get_statistics().total_withdrawals == 1

    def test_malformed_proof_instance(self, manager, pool_id, withdraw_circuit):
        """Test that a directly built proof with bad point shapes is an invalid proof."""
        note = deposit_note(manager, pool_id)
        good = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        bad = Proof(a=(1, 2, 3), b=good.b, c=good.c)

        with pytest.raises(InvalidProofError, match="Malformed proof"):
            manager.withdraw(note.nullifier_hash, BOB, ETHER, bad)
        assert not manager.is_nullifier_used(note.nullifier_hash)

    def test_proof_bound_to_recipient(self, manager, pool_id, withdraw_circuit):
        """Test that a proof for one recipient fails for another."""
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)

        with pytest.raises(InvalidProofError, match="Invalid withdrawal proof"):
            manager.withdraw(note.nullifier_hash, CAROL, ETHER, proof)
        assert not manager.is_nullifier_used(note.nullifier_hash)
        assert manager.events.of_type(ZKProofVerified) == []

    def test_stale_root_rejected(self, manager, pool_id, withdraw_circuit):
        """Test that only the current root is accepted."""
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        deposit_note(manager, pool_id)

        with pytest.raises(InvalidProofError):
            manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)

    def test_rollback_after_verified_proof(self, manager, pool_id, withdraw_circuit):
        """Test that a failure after verification leaves nothing behind."""
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, 2 * ETHER)

        with pytest.raises(InsufficientFundsError):
            manager.withdraw(note.nullifier_hash, BOB, 2 * ETHER, proof)

        assert not manager.is_nullifier_used(note.nullifier_hash)
        assert manager.ledger.held == ETHER
        assert manager.events.of_type(ZKProofVerified) == []

    def test_commitment_disclosure(self, manager, pool_id, withdraw_circuit):
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        manager.withdraw(note.nullifier_hash, BOB, ETHER, proof, commitment=note.commitment)
        assert manager.get_deposit_info(note.commitment).withdrawn

    @pytest.mark.parametrize("recipient", [ZERO_ADDRESS, "", "0x1234", None])
    def test_invalid_recipient(self, manager, pool_id, recipient):
        with pytest.raises(InvalidRecipientError, match="Invalid recipient"):
            manager.withdraw(int_to_bytes32(1), recipient, ETHER, {})

    @pytest.mark.parametrize("amount", [0, -1, True])
    def test_invalid_amount(self, manager, pool_id, amount):
        with pytest.raises(InvalidAmountError, match="Invalid amount"):
            manager.withdraw(int_to_bytes32(1), BOB, amount, {})

    def test_invalid_nullifier(self, manager, pool_id):
        with pytest.raises(InvalidNullifierError):
            manager.withdraw(int_to_bytes32(SNARK_SCALAR_FIELD), BOB, ETHER, {})
        with pytest.raises(InvalidNullifierError):
            manager.is_nullifier_used(b"\x01")

    def test_malformed_proof(self, manager, pool_id):
        with pytest.raises(InvalidProofError, match="Malformed proof"):
            manager.withdraw(int_to_bytes32(1), BOB, ETHER, {"pi_a": ["1", "3", "1"]})
        with pytest.raises(InvalidProofError, match="Proof missing"):
            manager.withdraw(int_to_bytes32(1), BOB, ETHER, None)

    def test_unknown_pool(self, manager):
        with pytest.raises(PoolInactiveError):
            manager.withdraw(int_to_bytes32(1), BOB, ETHER, {}, pool_id=7)

    def test_paused_blocks_withdraw(self, manager, pool_id):
        manager.pause(caller=OWNER)
        with pytest.raises(MixerPausedError):
            manager.withdraw(int_to_bytes32(1), BOB, ETHER, {})


class TestBatchWithdraw:
    """Tests for atomic multi-withdrawals."""

    def test_batch_succeeds(self, manager, pool_id, withdraw_circuit):
        notes = [deposit_note(manager, pool_id) for _ in range(2)]
        proofs = [
            withdrawal_proof(manager, withdraw_circuit, n.nullifier_hash, r, ETHER)
            for n, r in zip(notes, (BOB, CAROL))
        ]
        receipts = manager.batch_withdraw(
            [n.nullifier_hash for n in notes], [BOB, CAROL], [ETHER, ETHER], proofs
        )
        assert [r.recipient for r in receipts] == [BOB, CAROL]
        assert manager.balance_of(BOB) == manager.balance_of(CAROL) == ETHER - FEE
        assert manager.protocol_fees == 2 * FEE

    def test_one_bad_element_aborts_batch(self, manager, pool_id, withdraw_circuit):
        """Test that a failing element leaves every earlier element undone."""
        notes = [deposit_note(manager, pool_id) for _ in range(2)]
        good = withdrawal_proof(manager, withdraw_circuit, notes[0].nullifier_hash, BOB, ETHER)
        bad = withdrawal_proof(manager, withdraw_circuit, notes[1].nullifier_hash, BOB, ETHER)
        history = len(manager.events.history)

        with pytest.raises(InvalidProofError):
            manager.batch_withdraw(
                [notes[0].nullifier_hash, notes[1].nullifier_hash],
                [BOB, CAROL],
                [ETHER, ETHER],
                [good, bad],
            )

        assert not manager.is_nullifier_used(notes[0].nullifier_hash)
        assert manager.balance_of(BOB) == 0
        assert manager.ledger.held == 2 * ETHER
        assert manager.protocol_fees == 0
        assert len(manager.events.history) == history

    def test_repeated_nullifier_in_batch(self, manager, pool_id, withdraw_circuit):
        deposit_note(manager, pool_id)
        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        with pytest.raises(NullifierReusedError):
            manager.batch_withdraw(
                [note.nullifier_hash] * 2, [BOB, BOB], [ETHER, ETHER], [proof, proof]
            )
        assert not manager.is_nullifier_used(note.nullifier_hash)

    def test_shape_checks(self, manager, pool_id):
        with pytest.raises(BatchError):
            manager.batch_withdraw([int_to_bytes32(1)], [BOB, CAROL], [ETHER], [{}])
        with pytest.raises(BatchError):
            manager.batch_withdraw([], [], [], [])
        size = manager.settings.max_batch_size + 1
        with pytest.raises(BatchError):
            manager.batch_withdraw(
                [int_to_bytes32(i) for i in range(size)], [BOB] * size, [ETHER] * size, [{}] * size
            )


class TestAdministration:
    """Tests for owner-only controls."""

    def test_pause_unpause(self, manager):
        manager.pause(caller=OWNER)
        assert manager.paused
        with pytest.raises(MixerPausedError):
            manager.pause(caller=OWNER)
        manager.unpause(caller=OWNER)
        assert not manager.paused
        with pytest.raises(AdministrativeError, match="Pausable: not paused"):
            manager.unpause(caller=OWNER)
        assert [type(e) for e in manager.events.history] == [Paused, Unpaused]

    def test_pause_owner_only(self, manager):
        with pytest.raises(UnauthorizedError):
            manager.pause(caller=ALICE)
        manager.pause(caller=OWNER)
        with pytest.raises(UnauthorizedError):
            manager.unpause(caller=ALICE)

    def test_pool_creation_allowed_while_paused(self, manager, pool_id):
        manager.pause(caller=OWNER)
        assert manager.create_pool(0, 10, 4, caller=OWNER) == 2

    def test_emergency_withdraw_while_paused(self, manager, pool_id):
        """Test that emergency withdrawal sweeps custody to the owner."""
        deposit_note(manager, pool_id)
        deposit_note(manager, pool_id)
        manager.pause(caller=OWNER)

        with pytest.raises(UnauthorizedError):
            manager.emergency_withdraw(caller=ALICE)
        amount = manager.emergency_withdraw(caller=OWNER)

        assert amount == 2 * ETHER
        assert manager.balance_of(OWNER) == 2 * ETHER
        assert manager.ledger.total == 0
        event = manager.events.of_type(EmergencyWithdrawal)[0]
        assert (event.recipient, event.amount) == (OWNER, 2 * ETHER)

    def test_withdraw_fees(self, manager, pool_id, withdraw_circuit):
        with pytest.raises(InsufficientFundsError, match="No fees to withdraw"):
            manager.withdraw_fees(caller=OWNER)

        note = deposit_note(manager, pool_id)
        proof = withdrawal_proof(manager, withdraw_circuit, note.nullifier_hash, BOB, ETHER)
        manager.withdraw(note.nullifier_hash, BOB, ETHER, proof)

        with pytest.raises(UnauthorizedError):
            manager.withdraw_fees(caller=BOB)
        assert manager.withdraw_fees(caller=OWNER) == FEE
        assert manager.balance_of(OWNER) == FEE
        assert manager.protocol_fees == 0
        assert manager.events.of_type(FeesWithdrawn)[0].amount == FEE

    def test_set_pool_active_owner_only(self, manager, pool_id):
        with pytest.raises(UnauthorizedError):
            manager.set_pool_active(pool_id, False, caller=ALICE)
        with pytest.raises(PoolInactiveError):
            manager.set_pool_active(9, False, caller=OWNER)

    def test_statistics(self, manager, pool_id):
        deposit_note(manager, pool_id)
        stats = manager.get_statistics()
        assert stats.total_deposits == 1
        assert stats.total_pools == 1
        assert stats.total_volume == ETHER
        assert stats.held_balance == ETHER
        assert stats.total_batches == 0
        assert not stats.paused


class TestQueries:
    """Tests for read-only views."""

    def test_merkle_path_verifies(self, manager, pool_id):
        """Test that a deposit's path proves membership in the current root."""
        notes = [deposit_note(manager, pool_id) for _ in range(3)]
        elements, indices = manager.get_merkle_path(pool_id, 1)
        assert len(elements) == 32
        assert MerkleTree.verify(notes[1].commitment, manager.current_root(pool_id), elements, indices)

    def test_nullifier_unused(self, manager):
        assert not manager.is_nullifier_used(int_to_bytes32(5))
        assert not manager.is_nullifier_used("0x" + "00" * 31 + "05")

    def test_balance_of_unknown(self, manager):
        assert manager.balance_of(ALICE) == 0
