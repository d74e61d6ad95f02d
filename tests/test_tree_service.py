"""
Unit tests for the Tree Service.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from merkle_infos.crypto.merkle import EmptyInputError, MerkleNode, build_tree
from merkle_infos.services.tree_service import (
    NodeInfo,
    NodeNotFoundError,
    TreeBuildResult,
    TreeService,
    TreeServiceError,
    TreeStorageError,
    TreeValidationResult,
)


class TestResultModels:
    """Tests for service result dataclasses."""

    def test_build_result_to_dict(self) -> None:
        """Test build result serialization."""
        result = TreeBuildResult(
            root_hash="ab" * 32,
            leaf_count=3,
            padded_leaf_count=4,
            node_count=7,
        )
        assert result.to_dict() == {
            "root_hash": "ab" * 32,
            "leaf_count": 3,
            "padded_leaf_count": 4,
            "node_count": 7,
        }

    def test_validation_result_to_dict(self) -> None:
        """Test validation result serialization."""
        result = TreeValidationResult(valid=False, node_count=0)
        assert result.to_dict() == {"valid": False, "node_count": 0, "root_hash": None}

    def test_node_info_to_dict(self) -> None:
        """Test that node info serializes to the lookup body."""
        info = NodeInfo(index=7, depth=3, offset=0, hash="cd" * 32)
        assert info.to_dict() == {"depth": 3, "offset": 0, "hash": "cd" * 32}

    def test_error_hierarchy(self) -> None:
        """Test that service errors share a base class."""
        assert issubclass(NodeNotFoundError, TreeServiceError)
        assert issubclass(TreeStorageError, TreeServiceError)
        assert NodeNotFoundError(5).index == 5


class TestCreateAndStoreTree:
    """Tests for building and storing trees."""

    @pytest.mark.asyncio
    async def test_stores_all_nodes(
        self,
        mock_repository: AsyncMock,
        mock_metrics: MagicMock,
        eight_leaves: list[str],
    ) -> None:
        """Test that the full node set replaces the stored tree."""
        service = TreeService(mock_repository, metrics=mock_metrics)

        result = await service.create_and_store_tree(eight_leaves)

        expected = build_tree(eight_leaves)
        mock_repository.replace_tree.assert_awaited_once_with(expected)
        assert result.root_hash == expected[0].hash
        assert result.leaf_count == 8
        assert result.padded_leaf_count == 8
        assert result.node_count == 15
        mock_metrics.record_build.assert_called_once()

    @pytest.mark.asyncio
    async def test_padded_counts(self, mock_repository: AsyncMock) -> None:
        """Test counts reported for a non-power-of-two batch."""
        service = TreeService(mock_repository)

        result = await service.create_and_store_tree(["a", "b", "c"])

        assert result.leaf_count == 3
        assert result.padded_leaf_count == 4
        assert result.node_count == 7

    @pytest.mark.asyncio
    async def test_empty_leaves(self, mock_repository: AsyncMock) -> None:
        """Test that empty input is rejected before storage."""
        service = TreeService(mock_repository)

        with pytest.raises(EmptyInputError):
            await service.create_and_store_tree([])

        mock_repository.replace_tree.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure(self, mock_repository: AsyncMock) -> None:
        """Test that storage errors are wrapped."""
        mock_repository.replace_tree.side_effect = SQLAlchemyError("connection lost")
        service = TreeService(mock_repository)

        with pytest.raises(TreeStorageError, match="connection lost"):
            await service.create_and_store_tree(["a"])


class TestValidateStoredTree:
    """Tests for validating the stored tree."""

    @pytest.mark.asyncio
    async def test_valid_tree(
        self,
        mock_repository: AsyncMock,
        mock_metrics: MagicMock,
        eight_leaf_tree: list[MerkleNode],
    ) -> None:
        """Test validation of an untouched tree."""
        mock_repository.scan_all_nodes.return_value = eight_leaf_tree
        service = TreeService(mock_repository, metrics=mock_metrics)

        result = await service.validate_stored_tree()

        assert result.valid
        assert result.node_count == 15
        assert result.root_hash == eight_leaf_tree[0].hash
        mock_metrics.record_validation.assert_called_once()
        assert mock_metrics.record_validation.call_args.args[0] is True

    @pytest.mark.asyncio
    async def test_tampered_tree(
        self,
        mock_repository: AsyncMock,
        eight_leaf_tree: list[MerkleNode],
    ) -> None:
        """Test validation of a tree with a replaced leaf."""
        tampered = list(eight_leaf_tree)
        tampered[10] = MerkleNode(index=10, hash="00" * 32)
        mock_repository.scan_all_nodes.return_value = tampered
        service = TreeService(mock_repository)

        result = await service.validate_stored_tree()

        assert not result.valid

    @pytest.mark.asyncio
    async def test_empty_store(self, mock_repository: AsyncMock) -> None:
        """Test validation with nothing stored."""
        mock_repository.scan_all_nodes.return_value = []
        service = TreeService(mock_repository)

        result = await service.validate_stored_tree()

        assert result == TreeValidationResult(valid=False, node_count=0, root_hash=None)

    @pytest.mark.asyncio
    async def test_scan_failure(self, mock_repository: AsyncMock) -> None:
        """Test that scan errors are wrapped."""
        mock_repository.scan_all_nodes.side_effect = OperationalError("SELECT", {}, Exception("down"))
        service = TreeService(mock_repository)

        with pytest.raises(TreeStorageError):
            await service.validate_stored_tree()


class TestGetNodeInfo:
    """Tests for node lookups."""

    @pytest.mark.asyncio
    async def test_leaf_position(
        self,
        mock_repository: AsyncMock,
        mock_metrics: MagicMock,
        eight_leaf_tree: list[MerkleNode],
    ) -> None:
        """Test lookup of the first leaf."""
        mock_repository.get_node.return_value = eight_leaf_tree[7]
        service = TreeService(mock_repository, metrics=mock_metrics)

        info = await service.get_node_info(7)

        assert info == NodeInfo(index=7, depth=3, offset=0, hash=eight_leaf_tree[7].hash)
        mock_repository.get_node.assert_awaited_once_with(7)
        mock_metrics.record_lookup.assert_called_once_with("found")

    @pytest.mark.asyncio
    async def test_root_position(
        self,
        mock_repository: AsyncMock,
        eight_leaf_tree: list[MerkleNode],
    ) -> None:
        """Test lookup of the root."""
        mock_repository.get_node.return_value = eight_leaf_tree[0]
        service = TreeService(mock_repository)

        info = await service.get_node_info(0)

        assert (info.depth, info.offset) == (0, 0)

    @pytest.mark.asyncio
    async def test_not_found(
        self,
        mock_repository: AsyncMock,
        mock_metrics: MagicMock,
    ) -> None:
        """Test lookup of a missing node."""
        mock_repository.get_node.return_value = None
        service = TreeService(mock_repository, metrics=mock_metrics)

        with pytest.raises(NodeNotFoundError, match="Node 99 not found"):
            await service.get_node_info(99)

        mock_metrics.record_lookup.assert_called_once_with("not_found")

    @pytest.mark.asyncio
    async def test_storage_failure(
        self,
        mock_repository: AsyncMock,
        mock_metrics: MagicMock,
    ) -> None:
        """Test that lookup errors are wrapped."""
        mock_repository.get_node.side_effect = SQLAlchemyError("timeout")
        service = TreeService(mock_repository, metrics=mock_metrics)

        with pytest.raises(TreeStorageError):
            await service.get_node_info(1)

        mock_metrics.record_lookup.assert_called_once_with("error")


class TestStoreValidateLookupFlow:
    """Tests for the full build, store, validate and lookup flow."""

    @pytest.mark.asyncio
    async def test_eight_leaf_flow(self, memory_repository, eight_leaves: list[str]) -> None:
        """Test the eight-leaf batch end to end."""
        service = TreeService(memory_repository)

        build = await service.create_and_store_tree(eight_leaves)
        validation = await service.validate_stored_tree()
        info = await service.get_node_info(7)

        assert validation.valid
        assert validation.root_hash == build.root_hash
        assert (info.depth, info.offset) == (3, 0)

    @pytest.mark.asyncio
    async def test_smaller_tree_replaces_larger(self, memory_repository) -> None:
        """Test that storing a new tree drops nodes of the previous one."""
        service = TreeService(memory_repository)

        await service.create_and_store_tree([f"leaf{i}" for i in range(8)])
        await service.create_and_store_tree(["a", "b"])

        validation = await service.validate_stored_tree()
        assert validation.valid
        assert validation.node_count == 3

        with pytest.raises(NodeNotFoundError):
            await service.get_node_info(7)
