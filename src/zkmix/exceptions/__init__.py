"""Custom exceptions for the ZK privacy mixer."""


class ZKMixerException(Exception):
    """Base exception for all mixer errors."""
    pass


# Validation Errors
class ValidationError(ZKMixerException):
    """Base exception for malformed or out-of-range inputs."""
    pass


class InvalidAmountError(ValidationError):
    """Raised when a deposit or withdrawal amount is out of range."""
    pass


class InvalidDelayError(ValidationError):
    """Raised when a mixing or batch delay is outside the allowed window."""
    pass


class InvalidDelayRangeError(ValidationError):
    """Raised when a pool's minimum delay exceeds its maximum delay."""
    pass


class InvalidDepthError(ValidationError):
    """Raised when a Merkle depth exceeds the supported maximum."""
    pass


class InvalidRecipientError(ValidationError):
    """Raised when a recipient address is empty, zero, or malformed."""
    pass


class InvalidCommitmentError(ValidationError):
    """Raised when a commitment is malformed or not a field element."""
    pass


class InvalidNullifierError(ValidationError):
    """Raised when a nullifier hash is malformed or not a field element."""
    pass


class InvalidLeafIndexError(ValidationError):
    """Raised when leaf index is invalid."""
    pass


# Cryptography Errors
class CryptoError(ZKMixerException):
    """Base exception for cryptographic errors."""
    pass


class PointNotOnCurveError(CryptoError):
    """Raised when a curve point fails the curve equation."""
    pass


class ProofError(CryptoError):
    """Base exception for proof-related errors."""
    pass


class InvalidProofError(ProofError):
    """Raised when proof verification fails."""
    pass


class InvalidMerklePathError(ProofError):
    """Raised when a Merkle path is malformed."""
    pass


# Integrity Errors
class IntegrityError(ZKMixerException):
    """Base exception for replay and double-spend attempts."""
    pass


class DuplicateCommitmentError(IntegrityError):
    """Raised when a commitment has already been deposited."""
    pass


class NullifierReusedError(IntegrityError):
    """Raised when attempting to spend the same nullifier twice."""
    pass


class CommitmentAlreadyWithdrawnError(IntegrityError):
    """Raised when a deposit record is marked withdrawn a second time."""
    pass


class UnknownCommitmentError(IntegrityError):
    """Raised when a commitment has no deposit record."""
    pass


# Merkle Tree Errors
class MerkleTreeError(ZKMixerException):
    """Base exception for Merkle tree errors."""
    pass


class TreeFullError(MerkleTreeError):
    """Raised when the tree has no free leaf left."""
    pass


# Mixer Errors
class MixerError(ZKMixerException):
    """Base exception for mixer operation errors."""
    pass


class InsufficientFundsError(MixerError):
    """Raised when the mixer does not hold enough value for a payout."""
    pass


class BatchError(MixerError):
    """Raised when a batch is empty, oversized, or has mismatched columns."""
    pass


class BatchNotFoundError(BatchError):
    """Raised when a batch id is unknown."""
    pass


class BatchAlreadyProcessedError(BatchError):
    """Raised when a batch is processed twice."""
    pass


class BatchDelayNotMetError(BatchError):
    """Raised when a batch is processed before its minimum delay."""
    pass


# Administrative Errors
class AdministrativeError(ZKMixerException):
    """Base exception for paused, inactive, or unauthorized operations."""
    pass


class MixerPausedError(AdministrativeError):
    """Raised when a mutating operation is attempted while paused."""
    pass


class PoolInactiveError(AdministrativeError):
    """Raised when a pool does not exist or is not active."""
    pass


class UnauthorizedError(AdministrativeError):
    """Raised when a non-owner calls an owner-only operation."""
    pass


# Storage Errors
class StorageError(ZKMixerException):
    """Base exception for storage errors."""
    pass


class DeserializationError(StorageError):
    """Raised when deserialization fails."""
    pass


__all__ = [
    "ZKMixerException",
    "ValidationError",
    "InvalidAmountError",
    "InvalidDelayError",
    "InvalidDelayRangeError",
    "InvalidDepthError",
    "InvalidRecipientError",
    "InvalidCommitmentError",
    "InvalidNullifierError",
    "InvalidLeafIndexError",
    "CryptoError",
    "PointNotOnCurveError",
    "ProofError",
    "InvalidProofError",
    "InvalidMerklePathError",
    "IntegrityError",
    "DuplicateCommitmentError",
    "NullifierReusedError",
    "CommitmentAlreadyWithdrawnError",
    "UnknownCommitmentError",
    "MerkleTreeError",
    "TreeFullError",
    "MixerError",
    "InsufficientFundsError",
    "BatchError",
    "BatchNotFoundError",
    "BatchAlreadyProcessedError",
    "BatchDelayNotMetError",
    "AdministrativeError",
    "MixerPausedError",
    "PoolInactiveError",
    "UnauthorizedError",
    "StorageError",
    "DeserializationError",
]
