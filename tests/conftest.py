"""
Pytest configuration and shared fixtures for Merkle Infos tests.
"""

from collections.abc import Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest

from merkle_infos.crypto.merkle import MerkleNode, build_tree
from merkle_infos.db.repository import NodeRepository
from merkle_infos.metrics.tree_metrics import TreeMetrics


class InMemoryNodeRepository:
    """Dict-backed stand-in for NodeRepository."""

    def __init__(self) -> None:
        self.rows: dict[int, str] = {}

    async def replace_tree(self, nodes: Sequence[MerkleNode]) -> int:
        self.rows = {node.index: node.hash for node in nodes}
        return len(nodes)

    async def scan_all_nodes(self) -> list[MerkleNode]:
        return [MerkleNode(index=i, hash=h) for i, h in sorted(self.rows.items())]

    async def get_node(self, index: int) -> MerkleNode | None:
        if index not in self.rows:
            return None
        return MerkleNode(index=index, hash=self.rows[index])


@pytest.fixture
def eight_leaves() -> list[str]:
    """The eight-leaf sample batch."""
    return [f"leaf{i}" for i in range(8)]


@pytest.fixture
def eight_leaf_tree(eight_leaves: list[str]) -> list[MerkleNode]:
    """Nodes built from the eight-leaf batch."""
    return build_tree(eight_leaves)


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock async database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def mock_repository() -> AsyncMock:
    """Create a mock node repository."""
    return AsyncMock(spec=NodeRepository)


@pytest.fixture
def mock_metrics() -> MagicMock:
    """Create a mock metrics recorder."""
    return MagicMock(spec=TreeMetrics)


@pytest.fixture
def memory_repository() -> InMemoryNodeRepository:
    """Create an in-memory node repository."""
    return InMemoryNodeRepository()
