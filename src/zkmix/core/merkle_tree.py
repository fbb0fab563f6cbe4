"""Incremental Merkle accumulator over deposit commitments."""

from typing import Dict, List, Sequence, Tuple

from zkmix.exceptions import (
    InvalidCommitmentError,
    InvalidDepthError,
    InvalidLeafIndexError,
    InvalidMerklePathError,
    TreeFullError,
)
from zkmix.utils.hash import is_field_element, merkle_hash, merkle_zero_leaf

MAX_DEPTH = 32

_ZERO_LEAF = merkle_zero_leaf()


def _zero_hashes(depth: int) -> List[bytes]:
    zeros = [_ZERO_LEAF]
    for _ in range(depth):
        zeros.append(merkle_hash(zeros[-1], zeros[-1]))
    return zeros


# Root of an empty subtree at each level, leaves first.
ZERO_HASHES: List[bytes] = _zero_hashes(MAX_DEPTH)


class MerkleTree:
    """
    Append-only, fixed-depth binary Merkle tree.

    Leaves are commitments. Only the occupied nodes are stored in
    ``nodes`` keyed by ``(level, position)``; an absent node is the root of an
    empty subtree and takes its value from ``ZERO_HASHES``.

    Path indices follow the circuit convention: 0 means the running hash is
    the left child at that level, 1 means it is the right child.
    """

    ZERO_LEAF = _ZERO_LEAF

    def __init__(self, depth: int = MAX_DEPTH):
        """
        Initialize empty Merkle tree.

        Args:
            depth: Number of levels above the leaves, 1 to 32

        Raises:
            InvalidDepthError: If depth is out of range
        """
        if isinstance(depth, bool) or not isinstance(depth, int) or not 1 <= depth <= MAX_DEPTH:
            raise InvalidDepthError(f"Merkle depth must be between 1 and {MAX_DEPTH}, got {depth}")

        self.depth = depth
        self.capacity = 2**depth
        self.leaves: List[bytes] = []
        self.nodes: Dict[Tuple[int, int], bytes] = {}
        self._root = ZERO_HASHES[depth]

    def _node(self, level: int, position: int) -> bytes:
        return self.nodes.get((level, position), ZERO_HASHES[level])

    def insert(self, leaf: bytes) -> bytes:
        """
        Append a leaf at the next free index and return the new root.

        Args:
            leaf: Commitment, 32 bytes encoding a field element

        Returns:
            bytes: New root

        Raises:
            InvalidCommitmentError: If the leaf is malformed
            TreeFullError: If all ``2**depth`` leaves are occupied
        """
        if not is_field_element(leaf):
            raise InvalidCommitmentError("Leaf must be 32 bytes encoding a value below r")
        if self.is_full:
            raise TreeFullError(f"Tree is full (max {self.capacity} leaves)")

        position = len(self.leaves)
        self.leaves.append(leaf)
        self.nodes[(0, position)] = leaf
        self._recompute_from(position)
        return self._root

    def _pop_leaf(self) -> None:
        """Undo the most recent insert (rollback of an uncommitted operation)."""
        if not self.leaves:
            return
        leaf_index = len(self.leaves) - 1
        self.leaves.pop()
        for level in range(self.depth + 1):
            # Drop every node whose subtree starts at the removed leaf.
            position = leaf_index >> level
            if position << level == leaf_index:
                self.nodes.pop((level, position), None)
        if self.leaves:
            self._recompute_from(len(self.leaves) - 1)
        else:
            self._root = ZERO_HASHES[self.depth]

    def _recompute_from(self, leaf_index: int) -> None:
        position = leaf_index
        current = self.nodes[(0, position)]
        for level in range(self.depth):
            if position % 2 == 0:
                current = merkle_hash(current, self._node(level, position + 1))
            else:
                current = merkle_hash(self._node(level, position - 1), current)
            position >>= 1
            self.nodes[(level + 1, position)] = current
        self._root = current

    def get_path(self, leaf_index: int) -> Tuple[List[bytes], List[int]]:
        """
        Return the authentication path for a leaf.

        Args:
            leaf_index: Index of an inserted leaf

        Returns:
            Tuple of sibling hashes (leaf level first) and path index bits

        Raises:
            InvalidLeafIndexError: If no leaf is stored at that index
        """
        if isinstance(leaf_index, bool) or not isinstance(leaf_index, int) or not (
            0 <= leaf_index < len(self.leaves)
        ):
            raise InvalidLeafIndexError(f"Invalid leaf index: {leaf_index}")

        elements: List[bytes] = []
        indices: List[int] = []
        position = leaf_index
        for level in range(self.depth):
            elements.append(self._node(level, position ^ 1))
            indices.append(position & 1)
            position >>= 1
        return elements, indices

    @staticmethod
    def compute_root(leaf: bytes, path_elements: Sequence[bytes], path_indices: Sequence[int]) -> bytes:
        """
        Fold a leaf with its path into a candidate root.

        Raises:
            InvalidMerklePathError: If lengths differ or an index is not 0/1
            ValueError: If a hash is not 32 bytes
        """
        if len(path_elements) != len(path_indices):
            raise InvalidMerklePathError("Path elements and indices differ in length")
        if len(path_elements) > MAX_DEPTH:
            raise InvalidMerklePathError(f"Path longer than {MAX_DEPTH}")

        current = leaf
        for sibling, index in zip(path_elements, path_indices):
            if index == 0 and not isinstance(index, bool):
                current = merkle_hash(current, sibling)
            elif index == 1 and not isinstance(index, bool):
                current = merkle_hash(sibling, current)
            else:
                raise InvalidMerklePathError(f"Path index must be 0 or 1, got {index!r}")
        return current

    @staticmethod
    def verify(
        leaf: bytes,
        root: bytes,
        path_elements: Sequence[bytes],
        path_indices: Sequence[int],
    ) -> bool:
        """
        Check a membership path against a root.

        Side-effect free; safe to call concurrently.

        Returns:
            bool: True if the folded path reproduces ``root``; malformed input is False
        """
        try:
            if not isinstance(leaf, bytes) or len(leaf) != 32:
                return False
            return MerkleTree.compute_root(leaf, path_elements, path_indices) == root
        except (InvalidMerklePathError, ValueError, TypeError):
            return False

    def verify_path(self, leaf: bytes, path_elements: Sequence[bytes], path_indices: Sequence[int]) -> bool:
        """Check a path of this tree's depth against the current root."""
        if len(path_elements) != self.depth:
            return False
        return MerkleTree.verify(leaf, self.root, path_elements, path_indices)

    @property
    def root(self) -> bytes:
        """Get the current Merkle root hash."""
        return self._root

    @property
    def is_full(self) -> bool:
        return len(self.leaves) >= self.capacity

    def get_state(self) -> dict:
        """
        Get the current state of the tree for serialization.

        Returns:
            dict: Tree state including leaves, depth, and root
        """
        return {
            "depth": self.depth,
            "capacity": self.capacity,
            "num_leaves": len(self.leaves),
            "leaves": [leaf.hex() for leaf in self.leaves],
            "root": self.root.hex(),
        }

    def __len__(self) -> int:
        """Return the number of leaves in the tree."""
        return len(self.leaves)

    def __repr__(self) -> str:
        return (
            f"MerkleTree(depth={self.depth}, "
            f"leaves={len(self.leaves)}/{self.capacity}, "
            f"root={self.root.hex()[:16]}...)"
        )
