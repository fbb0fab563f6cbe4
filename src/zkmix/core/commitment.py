"""Commitment and nullifier derivation (depositor side)."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

from zkmix.exceptions import InvalidCommitmentError, InvalidNullifierError
from zkmix.utils.encoding import bytes_to_hex
from zkmix.utils.hash import (
    SNARK_SCALAR_FIELD,
    compute_commitment,
    compute_nullifier_hash,
)


@dataclass
class DepositNote:
    """Everything a depositor must keep to withdraw later."""

    secret: int
    nullifier_seed: int
    amount: int
    fee: int
    commitment: bytes
    nullifier_hash: bytes
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Serialize the note; the secret fields make this sensitive."""
        return {
            "secret": hex(self.secret),
            "nullifier_seed": hex(self.nullifier_seed),
            "amount": self.amount,
            "fee": self.fee,
            "commitment": bytes_to_hex(self.commitment),
            "nullifier_hash": bytes_to_hex(self.nullifier_hash),
            "created_at": self.created_at.isoformat(),
        }


class Commitment:
    """
    Commitment and nullifier generation.

    C = H(secret || amount || nullifier_seed || fee) and N = H(secret || nullifier_seed),
    in separate hash domains. Knowing C reveals nothing about N and vice versa;
    only the holder of ``secret`` can link them.
    """

    # 31 random bytes always fit below the scalar field order.
    SECRET_SIZE = 31

    @staticmethod
    def generate_secret() -> int:
        """
        Generate a random secret scalar.

        Returns:
            int: 248-bit random value from os.urandom
        """
        return int.from_bytes(os.urandom(Commitment.SECRET_SIZE), "big")

    @staticmethod
    def generate_nullifier_seed() -> int:
        """Generate a random nullifier seed scalar."""
        return int.from_bytes(os.urandom(Commitment.SECRET_SIZE), "big")

    @staticmethod
    def _check_scalar(name: str, value: int, error: type) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise error(f"{name} must be an integer")
        if not 0 <= value < SNARK_SCALAR_FIELD:
            raise error(f"{name} must be in [0, r)")

    @staticmethod
    def compute_commitment(secret: int, amount: int, nullifier_seed: int, fee: int = 0) -> bytes:
        """
        Compute the deposit commitment.

        Args:
            secret: Depositor secret
            amount: Deposit amount in wei
            nullifier_seed: Per-deposit nullifier seed
            fee: Fee committed at deposit time

        Returns:
            bytes: Commitment (32 bytes, canonical field element)

        Raises:
            InvalidCommitmentError: If an input is not a field scalar
        """
        Commitment._check_scalar("secret", secret, InvalidCommitmentError)
        Commitment._check_scalar("amount", amount, InvalidCommitmentError)
        Commitment._check_scalar("nullifier_seed", nullifier_seed, InvalidCommitmentError)
        Commitment._check_scalar("fee", fee, InvalidCommitmentError)
        return compute_commitment(secret, amount, nullifier_seed, fee)

    @staticmethod
    def compute_nullifier_hash(secret: int, nullifier_seed: int) -> bytes:
        """
        Compute the nullifier hash revealed at withdrawal.

        Raises:
            InvalidNullifierError: If an input is not a field scalar
        """
        Commitment._check_scalar("secret", secret, InvalidNullifierError)
        Commitment._check_scalar("nullifier_seed", nullifier_seed, InvalidNullifierError)
        return compute_nullifier_hash(secret, nullifier_seed)

    @staticmethod
    def create_note(amount: int, fee: int = 0) -> DepositNote:
        """
        Create a new deposit note with a fresh secret and seed.

        Args:
            amount: Deposit value in wei
            fee: Fee committed into the note

        Returns:
            DepositNote: Secret material plus derived commitment and nullifier hash
        """
        secret = Commitment.generate_secret()
        seed = Commitment.generate_nullifier_seed()
        return DepositNote(
            secret=secret,
            nullifier_seed=seed,
            amount=amount,
            fee=fee,
            commitment=Commitment.compute_commitment(secret, amount, seed, fee),
            nullifier_hash=Commitment.compute_nullifier_hash(secret, seed),
        )

    @staticmethod
    def verify_note(note: DepositNote) -> bool:
        """Check that a note's hashes match its secret material."""
        try:
            return (
                Commitment.compute_commitment(note.secret, note.amount, note.nullifier_seed, note.fee)
                == note.commitment
                and Commitment.compute_nullifier_hash(note.secret, note.nullifier_seed)
                == note.nullifier_hash
            )
        except (InvalidCommitmentError, InvalidNullifierError):
            return False
