"""
Merkle Infos Service - Services Package

Provides tree construction, validation, and node lookup orchestration.
"""

from merkle_infos.services.tree_service import (
    NodeInfo,
    NodeNotFoundError,
    TreeBuildResult,
    TreeService,
    TreeServiceError,
    TreeStorageError,
    TreeValidationResult,
)

__all__ = [
    "NodeInfo",
    "NodeNotFoundError",
    "TreeBuildResult",
    "TreeService",
    "TreeServiceError",
    "TreeStorageError",
    "TreeValidationResult",
]
