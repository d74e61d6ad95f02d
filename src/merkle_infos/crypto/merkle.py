"""
Merkle Infos Service - Merkle Tree Implementation

Provides deterministic Merkle tree construction over SHA3-256 and structural
validation of a stored node set.

Nodes are laid out as a complete binary tree in a flat array (heap layout):
- The root is at index 0
- The node at index i has its children at 2i+1 (left) and 2i+2 (right)
- Leaves occupy the last P slots, where P is the padded leaf count

Internal node digests are computed over the raw binary digests of the two
children, never over their hex text.

For leaf counts that are not a power of two, padding leaves are appended by
chaining the hash of the previous leaf digest until the count reaches the
next power of two. This changes the committed root, so callers that need a
domain-meaningful sentinel should pre-pad their leaves themselves.
"""

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass


class EmptyInputError(ValueError):
    """Raised when a tree is requested for zero leaves."""

    pass


class StructuralInvariantError(RuntimeError):
    """Raised when a built tree does not have the expected node count."""

    pass


@dataclass(frozen=True)
class MerkleNode:
    """
    A single node of the linearized Merkle tree.

    Attributes:
        index: Position in the heap layout (root is 0)
        hash: Hex-encoded SHA3-256 digest
    """

    index: int
    hash: str

    @property
    def digest(self) -> bytes:
        """Decoded binary digest."""
        return bytes.fromhex(self.hash)

    def to_dict(self) -> dict[str, int | str]:
        """Serialize to dictionary."""
        return {"index": self.index, "hash": self.hash}

    @classmethod
    def from_dict(cls, data: dict) -> "MerkleNode":
        """Deserialize from dictionary."""
        return cls(index=int(data["index"]), hash=data["hash"])


def hash_leaf(data: bytes | str) -> bytes:
    """
    Compute the digest of a leaf value.

    Args:
        data: Leaf data (str is UTF-8 encoded)

    Returns:
        32-byte SHA3-256 digest
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha3_256(data).digest()


def hash_children(left: bytes, right: bytes) -> bytes:
    """
    Compute the digest of an internal node.

    Args:
        left: Binary digest of the left child
        right: Binary digest of the right child

    Returns:
        32-byte SHA3-256 digest of left || right
    """
    hasher = hashlib.sha3_256()
    hasher.update(left)
    hasher.update(right)
    return hasher.digest()


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (n must be positive)."""
    if n < 1:
        raise ValueError(f"Expected a positive count, got {n}")
    return 1 << (n - 1).bit_length()


def _leaf_digests(leaves: Sequence[bytes | str]) -> list[bytes]:
    """Hash the leaves and pad to a power of two by chaining the last digest."""
    digests = [hash_leaf(leaf) for leaf in leaves]
    padded_count = next_power_of_two(len(digests))

    while len(digests) < padded_count:
        digests.append(hashlib.sha3_256(digests[-1]).digest())

    return digests


def build_tree(leaves: Sequence[bytes | str]) -> list[MerkleNode]:
    """
    Build the full node set of a Merkle tree from ordered leaves.

    Levels are built bottom-up, then laid out top-down so that level d
    fills indices [2^d - 1, 2^(d+1) - 2] left to right. Each level keeps
    its construction order, so every parent's left child stays at 2i+1
    and its right child at 2i+2.

    Args:
        leaves: Ordered leaf values (bytes, or str encoded as UTF-8)

    Returns:
        Nodes ordered by index, root first

    Raises:
        EmptyInputError: If leaves is empty
        StructuralInvariantError: If the node count is not 2P - 1
    """
    if not leaves:
        raise EmptyInputError("Cannot create Merkle tree from empty leaves")

    current_level = _leaf_digests(leaves)
    padded_count = len(current_level)
    levels = [current_level]

    while len(current_level) > 1:
        next_level = []
        for i in range(0, len(current_level), 2):
            next_level.append(hash_children(current_level[i], current_level[i + 1]))
        levels.append(next_level)
        current_level = next_level

    nodes = []
    for level in reversed(levels):
        for digest in level:
            nodes.append(MerkleNode(index=len(nodes), hash=digest.hex()))

    expected_total = 2 * padded_count - 1
    if len(nodes) != expected_total:
        raise StructuralInvariantError(
            f"Built {len(nodes)} nodes, expected {expected_total}"
        )

    return nodes


def root_hash(nodes: Sequence[MerkleNode]) -> str | None:
    """Hex digest of the root, or None for an empty node set."""
    if not nodes:
        return None
    return nodes[0].hash


def is_valid_tree(nodes: Sequence[MerkleNode]) -> bool:
    """
    Structurally validate a node set in heap layout.

    Walks the tree from the root at index 0 with an explicit worklist.
    Leaves (index >= N // 2) are accepted as given; every internal node
    must equal the hash of its two children's binary digests.

    Any anomaly (empty input, a node out of position, a child index past
    the end, an undecodable hash) yields False rather than an exception.

    Args:
        nodes: Nodes ordered by index ascending, covering 0..N-1

    Returns:
        True if every internal node is consistent with its children
    """
    total = len(nodes)
    if total == 0:
        return False

    first_leaf = total // 2
    pending = [0]

    while pending:
        position = pending.pop()
        node = nodes[position]

        if node.index != position:
            return False

        if node.index >= first_leaf:
            continue

        left_index = 2 * position + 1
        right_index = 2 * position + 2
        if left_index >= total or right_index >= total:
            return False

        left = nodes[left_index]
        right = nodes[right_index]

        try:
            expected = hash_children(left.digest, right.digest)
            actual = node.digest
        except (TypeError, ValueError):
            return False

        if expected != actual:
            return False

        pending.append(right_index)
        pending.append(left_index)

    return True
