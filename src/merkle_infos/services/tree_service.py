"""
Merkle Infos Service - Tree Service

Orchestrates tree construction and persistence, structural validation of
the stored tree, and node lookups with position decoding.
"""

import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from merkle_infos.crypto.merkle import build_tree, is_valid_tree, root_hash
from merkle_infos.crypto.position import to_position
from merkle_infos.db.repository import NodeRepository
from merkle_infos.metrics.tree_metrics import TreeMetrics

logger = structlog.get_logger(__name__)


class TreeServiceError(Exception):
    """Base exception for tree service errors."""

    pass


class NodeNotFoundError(TreeServiceError):
    """Raised when no node is stored at the requested index."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Node {index} not found")
        self.index = index


class TreeStorageError(TreeServiceError):
    """Raised when the storage backend fails."""

    pass


@dataclass
class TreeBuildResult:
    """Result of building and storing a tree."""

    root_hash: str
    leaf_count: int
    padded_leaf_count: int
    node_count: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "root_hash": self.root_hash,
            "leaf_count": self.leaf_count,
            "padded_leaf_count": self.padded_leaf_count,
            "node_count": self.node_count,
        }


@dataclass
class TreeValidationResult:
    """Result of validating the stored tree."""

    valid: bool
    node_count: int
    root_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "valid": self.valid,
            "node_count": self.node_count,
            "root_hash": self.root_hash,
        }


@dataclass
class NodeInfo:
    """Stored node with its decoded position."""

    index: int
    depth: int
    offset: int
    hash: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the lookup response body."""
        return {"depth": self.depth, "offset": self.offset, "hash": self.hash}


class TreeService:
    """
    Merkle tree service.

    Orchestrates:
    - Tree construction from leaves and replacement of the stored tree
    - Fetching and structurally validating the stored tree
    - Node lookup by index with (depth, offset) decoding
    """

    def __init__(
        self,
        repository: NodeRepository,
        metrics: TreeMetrics | None = None,
    ) -> None:
        """
        Initialize tree service.

        Args:
            repository: Node storage
            metrics: Optional metrics recorder
        """
        self._repository = repository
        self._metrics = metrics

    async def create_and_store_tree(self, leaves: Sequence[bytes | str]) -> TreeBuildResult:
        """
        Build a tree from leaves and replace the stored tree with it.

        Args:
            leaves: Ordered leaf values

        Returns:
            TreeBuildResult describing the stored tree

        Raises:
            EmptyInputError: If leaves is empty
            TreeStorageError: If the nodes cannot be written
        """
        start = time.perf_counter()

        nodes = build_tree(leaves)
        padded_leaf_count = (len(nodes) + 1) // 2

        try:
            await self._repository.replace_tree(nodes)
        except SQLAlchemyError as e:
            logger.error("Failed to store Merkle tree", error=str(e))
            raise TreeStorageError(f"Failed to store Merkle tree: {e}") from e

        duration = time.perf_counter() - start
        if self._metrics:
            self._metrics.record_build(duration, len(leaves), len(nodes))

        result = TreeBuildResult(
            root_hash=nodes[0].hash,
            leaf_count=len(leaves),
            padded_leaf_count=padded_leaf_count,
            node_count=len(nodes),
        )

        logger.info(
            "Merkle tree created",
            root_hash=result.root_hash,
            leaf_count=result.leaf_count,
            node_count=result.node_count,
            duration=duration,
        )
        return result

    async def validate_stored_tree(self) -> TreeValidationResult:
        """
        Fetch every stored node and validate the tree structure.

        Returns:
            TreeValidationResult

        Raises:
            TreeStorageError: If the nodes cannot be read
        """
        start = time.perf_counter()

        try:
            nodes = await self._repository.scan_all_nodes()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch Merkle tree", error=str(e))
            raise TreeStorageError(f"Failed to fetch Merkle tree: {e}") from e

        valid = is_valid_tree(nodes)

        if self._metrics:
            self._metrics.record_validation(valid, time.perf_counter() - start)

        if valid:
            logger.info("Fetched Merkle tree is valid", node_count=len(nodes))
        else:
            logger.warning("Fetched Merkle tree is invalid", node_count=len(nodes))

        return TreeValidationResult(
            valid=valid,
            node_count=len(nodes),
            root_hash=root_hash(nodes),
        )

    async def get_node_info(self, index: int) -> NodeInfo:
        """
        Look up a node and decode its position.

        Args:
            index: Heap-layout node index

        Returns:
            NodeInfo with depth, offset and stored hash

        Raises:
            NodeNotFoundError: If no node is stored at index
            TreeStorageError: If the lookup fails
        """
        try:
            node = await self._repository.get_node(index)
        except SQLAlchemyError as e:
            if self._metrics:
                self._metrics.record_lookup("error")
            logger.error("Failed to fetch node", index=index, error=str(e))
            raise TreeStorageError(f"Failed to fetch node {index}: {e}") from e

        if node is None:
            if self._metrics:
                self._metrics.record_lookup("not_found")
            raise NodeNotFoundError(index)

        if self._metrics:
            self._metrics.record_lookup("found")

        position = to_position(node.index)
        return NodeInfo(
            index=node.index,
            depth=position.depth,
            offset=position.offset,
            hash=node.hash,
        )
