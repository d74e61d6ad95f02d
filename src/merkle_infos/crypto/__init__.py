"""
Merkle Infos Service - Cryptographic Utilities

Provides Merkle tree construction, node position mapping, and structural
validation.
"""

from merkle_infos.crypto.merkle import (
    EmptyInputError,
    MerkleNode,
    StructuralInvariantError,
    build_tree,
    hash_children,
    hash_leaf,
    is_valid_tree,
)
from merkle_infos.crypto.position import (
    NodePosition,
    from_position,
    to_position,
)

__all__ = [
    "EmptyInputError",
    "MerkleNode",
    "StructuralInvariantError",
    "build_tree",
    "hash_children",
    "hash_leaf",
    "is_valid_tree",
    "NodePosition",
    "from_position",
    "to_position",
]
