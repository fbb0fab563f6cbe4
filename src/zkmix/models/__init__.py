"""Data models."""

from zkmix.models.schemas import (
    BatchInfo,
    DepositInfo,
    MixerStatistics,
    PoolInfo,
    WithdrawalRequest,
)

__all__ = ["BatchInfo", "DepositInfo", "MixerStatistics", "PoolInfo", "WithdrawalRequest"]
