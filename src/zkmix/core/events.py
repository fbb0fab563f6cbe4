"""Observable mixer events."""

import logging
from dataclasses import asdict, dataclass
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MixerEvent:
    """Base class of all events."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        data = {"event": self.name}
        for key, value in asdict(self).items():
            data[key] = "0x" + value.hex() if isinstance(value, bytes) else value
        return data


@dataclass(frozen=True)
class DepositCreated(MixerEvent):
    commitment: bytes
    amount: int
    pool_id: int
    timestamp: int


@dataclass(frozen=True)
class WithdrawalExecuted(MixerEvent):
    nullifier_hash: bytes
    recipient: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class ZKProofVerified(MixerEvent):
    proof_id: str
    success: bool


@dataclass(frozen=True)
class MixingPoolUpdated(MixerEvent):
    pool_id: int
    new_root: bytes


@dataclass(frozen=True)
class RandomDelayApplied(MixerEvent):
    commitment: bytes
    mixing_delay: int
    release_jitter: int


@dataclass(frozen=True)
class TransactionBatchCreated(MixerEvent):
    batch_id: int
    size: int
    min_delay: int


@dataclass(frozen=True)
class RandomOrderingApplied(MixerEvent):
    batch_id: int
    order: Tuple[int, ...]


@dataclass(frozen=True)
class BatchProcessed(MixerEvent):
    batch_id: int
    timestamp: int


@dataclass(frozen=True)
class Paused(MixerEvent):
    account: str


@dataclass(frozen=True)
class Unpaused(MixerEvent):
    account: str


@dataclass(frozen=True)
class EmergencyWithdrawal(MixerEvent):
    recipient: str
    amount: int


@dataclass(frozen=True)
class FeesWithdrawn(MixerEvent):
    recipient: str
    amount: int


Subscriber = Callable[[MixerEvent], None]


class EventBus:
    """Ordered event log with synchronous subscribers."""

    def __init__(self):
        self.history: List[MixerEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def emit(self, event: MixerEvent) -> None:
        self.history.append(event)
        logger.debug("Event %s", event.name)
        for callback in self._subscribers:
            callback(event)

    def of_type(self, event_type: type) -> List[MixerEvent]:
        """Return recorded events of one type, oldest first."""
        return [e for e in self.history if isinstance(e, event_type)]
