"""
Merkle Infos Service - Node Position Codec

Maps a heap-layout linear index to its (depth, offset) position and back.
Depth d holds 2^d nodes, starting at index 2^d - 1.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NodePosition:
    """Depth (root is 0) and left-to-right offset within that depth."""

    depth: int
    offset: int

    def to_dict(self) -> dict[str, int]:
        return {"depth": self.depth, "offset": self.offset}


def _check_index(index: int) -> None:
    if index < 0:
        raise ValueError(f"Node index must be non-negative, got {index}")


def to_position(index: int) -> NodePosition:
    """
    Translate a linear index into its (depth, offset) position.

    Uses the closed form depth = floor(log2(index + 1)), computed exactly
    with integer bit length.

    Args:
        index: Non-negative node index

    Returns:
        NodePosition of the index

    Raises:
        ValueError: If index is negative
    """
    _check_index(index)
    depth = (index + 1).bit_length() - 1
    return NodePosition(depth=depth, offset=index - ((1 << depth) - 1))


def to_position_by_search(index: int) -> NodePosition:
    """
    Translate a linear index by accumulating level sizes.

    Equivalent to to_position(); kept for cross-checking the closed form.
    """
    _check_index(index)

    depth = 0
    nodes_through_depth = 1
    # Grow until the running total of nodes passes the index
    while nodes_through_depth <= index:
        depth += 1
        nodes_through_depth += 1 << depth

    first_at_depth = nodes_through_depth - (1 << depth)
    return NodePosition(depth=depth, offset=index - first_at_depth)


def from_position(depth: int, offset: int) -> int:
    """
    Translate a (depth, offset) position back into a linear index.

    Raises:
        ValueError: If depth is negative or offset is outside the level
    """
    if depth < 0:
        raise ValueError(f"Depth must be non-negative, got {depth}")
    if offset < 0 or offset >= (1 << depth):
        raise ValueError(f"Offset {offset} out of range for depth {depth}")
    return (1 << depth) - 1 + offset
