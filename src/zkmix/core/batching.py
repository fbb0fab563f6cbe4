"""Anti-correlation batching of withdrawals.

A batch holds queued withdrawal requests, a random execution order, and a
minimum delay after creation before it can run. Ordering and delay weaken
timing correlation between deposits and withdrawals; they do not change what
the proofs guarantee. Processing a batch is atomic: one failing withdrawal
aborts the whole batch.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Sequence

from zkmix.core.events import BatchProcessed, RandomOrderingApplied, TransactionBatchCreated
from zkmix.exceptions import (
    BatchAlreadyProcessedError,
    BatchDelayNotMetError,
    BatchError,
    BatchNotFoundError,
    InvalidDelayError,
)
from zkmix.models.schemas import BatchInfo, WithdrawalRequest

if TYPE_CHECKING:
    from zkmix.core.mixer import MixingPoolManager, WithdrawalReceipt

logger = logging.getLogger(__name__)


@dataclass
class TransactionBatch:
    """Queued withdrawals and their shuffled execution order."""

    batch_id: int
    requests: List[WithdrawalRequest]
    order: List[int]
    created_at: int
    min_delay: int
    processed: bool = False
    receipts: list = field(default_factory=list)

    @property
    def ready_at(self) -> int:
        return self.created_at + self.min_delay

    def ordered_requests(self) -> List[WithdrawalRequest]:
        return [self.requests[i] for i in self.order]

    def info(self) -> BatchInfo:
        return BatchInfo(
            batch_id=self.batch_id,
            size=len(self.requests),
            created_at=self.created_at,
            min_delay=self.min_delay,
            processed=self.processed,
            shuffled_order=list(self.order),
        )


class BatchScheduler:
    """Creates and processes transaction batches on behalf of a manager."""

    def __init__(self, manager: "MixingPoolManager"):
        self.manager = manager
        self.batches: Dict[int, TransactionBatch] = {}

    def __len__(self) -> int:
        return len(self.batches)

    def create_batch(
        self, requests: Sequence[WithdrawalRequest], min_delay: int, *, caller: str
    ) -> TransactionBatch:
        """
        Queue withdrawal requests under a random execution order.

        Args:
            requests: Withdrawals to execute together
            min_delay: Seconds to wait after creation before processing
            caller: Must be the manager's owner

        Returns:
            TransactionBatch: The new batch

        Raises:
            UnauthorizedError: If caller is not the owner
            MixerPausedError: If the mixer is paused
            BatchError: If the batch is empty or too large
            InvalidDelayError: If min_delay is outside the configured window
        """
        manager = self.manager
        settings = manager.settings
        with manager.transaction():
            manager._require_owner(caller)
            manager._require_not_paused()
            if not requests:
                raise BatchError("Empty transaction batch")
            if len(requests) > settings.max_batch_size:
                raise BatchError(f"Batch exceeds {settings.max_batch_size} withdrawals")
            if not settings.min_batch_delay <= min_delay <= settings.max_batch_delay:
                raise InvalidDelayError("Invalid delay")

            batch_id = len(self.batches) + 1
            batch = TransactionBatch(
                batch_id=batch_id,
                requests=list(requests),
                order=manager.randomness.shuffled(range(len(requests))),
                created_at=manager._now(),
                min_delay=min_delay,
            )
            self.batches[batch_id] = batch
            manager._journal.record(lambda: self.batches.pop(batch_id, None))

            manager._emit(
                TransactionBatchCreated(batch_id=batch_id, size=len(requests), min_delay=min_delay)
            )
            manager._emit(RandomOrderingApplied(batch_id=batch_id, order=tuple(batch.order)))

        logger.info("Created batch %d with %d withdrawals", batch_id, len(requests))
        return batch

    def process_batch(self, batch_id: int, *, caller: str) -> List["WithdrawalReceipt"]:
        """
        Execute a batch's withdrawals in shuffled order.

        Raises:
            UnauthorizedError: If caller is not the owner
            BatchNotFoundError: If the batch id is unknown
            BatchAlreadyProcessedError: If the batch already ran
            BatchDelayNotMetError: If the minimum delay has not elapsed
            ZKMixerException: The first failing withdrawal, after rollback
        """
        manager = self.manager
        with manager.transaction():
            manager._require_owner(caller)
            batch = self.get_batch(batch_id)
            if batch.processed:
                raise BatchAlreadyProcessedError("Batch already processed")
            now = manager._now()
            if now < batch.ready_at:
                raise BatchDelayNotMetError("Delay not met")

            receipts = manager.withdraw_requests(batch.ordered_requests())
            manager._set(batch, "processed", True)
            manager._set(batch, "receipts", receipts)
            manager._emit(BatchProcessed(batch_id=batch_id, timestamp=now))

        logger.info("Processed batch %d", batch_id)
        return receipts

    def get_batch(self, batch_id: int) -> TransactionBatch:
        batch = self.batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError("Batch not found")
        return batch
