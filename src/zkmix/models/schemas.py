"""Pydantic data models for mixer queries and batched requests."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zkmix.utils.encoding import ensure_bytes32


class PoolInfo(BaseModel):
    """Public view of a mixing pool."""

    model_config = ConfigDict(frozen=True)

    pool_id: int = Field(..., description="Sequential pool id (0 for an unknown pool)")
    is_active: bool = Field(..., description="Whether deposits and withdrawals are accepted")
    total_amount: int = Field(..., description="Sum of deposits in wei")
    participant_count: int = Field(..., description="Number of deposits")
    min_delay: int = Field(..., description="Minimum mixing delay (seconds)")
    max_delay: int = Field(..., description="Maximum mixing delay (seconds)")
    merkle_depth: int = Field(..., description="Accumulator depth")
    root: str = Field(..., description="Current Merkle root (hex)")


class DepositInfo(BaseModel):
    """Public view of a deposit record."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(..., description="Deposit amount in wei (0 if unknown)")
    timestamp: int = Field(..., description="Deposit time (unix seconds)")
    withdrawn: bool = Field(..., description="Whether the deposit was disclosed as withdrawn")
    delay: int = Field(..., description="Requested mixing delay (seconds)")
    release_jitter: int = Field(0, description="Random extra delay (seconds)")
    release_at: int = Field(0, description="Advisory earliest withdrawal time")
    pool_id: int = Field(0, description="Pool the deposit belongs to")


class WithdrawalRequest(BaseModel):
    """One withdrawal queued for batched execution."""

    nullifier_hash: str = Field(..., description="Nullifier hash (hex)")
    recipient: str = Field(..., description="Recipient address")
    amount: int = Field(..., description="Withdrawal amount in wei")
    proof: Dict[str, Any] = Field(..., description="snarkjs proof object")
    pool_id: int = Field(1, description="Pool to withdraw from")

    @field_validator("nullifier_hash")
    @classmethod
    def _is_hash(cls, v: str) -> str:
        return "0x" + ensure_bytes32(v).hex()

    @property
    def nullifier_bytes(self) -> bytes:
        return ensure_bytes32(self.nullifier_hash)


class BatchInfo(BaseModel):
    """Public view of a transaction batch."""

    batch_id: int
    size: int
    created_at: int
    min_delay: int
    processed: bool
    shuffled_order: List[int] = Field(..., description="Execution order as request indices")


class MixerStatistics(BaseModel):
    """Aggregate mixer counters."""

    total_deposits: int = Field(..., description="Accepted deposits")
    total_withdrawals: int = Field(..., description="Executed withdrawals")
    total_pools: int = Field(..., description="Pools created")
    total_batches: int = Field(0, description="Transaction batches created")
    total_volume: int = Field(..., description="Sum of deposits in wei")
    held_balance: int = Field(..., description="Value in custody in wei")
    protocol_fees: int = Field(..., description="Accrued, unswept fees in wei")
    paused: bool = Field(..., description="Global pause flag")
