"""
Merkle Infos API - Tree Endpoints

- POST /tree: Build a Merkle tree from leaves and replace the stored tree
- GET /tree/validation: Fetch the stored tree and validate its structure
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from merkle_infos.api.deps import get_tree_service
from merkle_infos.crypto.merkle import EmptyInputError
from merkle_infos.services.tree_service import TreeService, TreeServiceError

logger = structlog.get_logger(__name__)
router = APIRouter()


class TreeCreateRequest(BaseModel):
    """Request to build and store a tree."""

    leaves: list[str] = Field(
        ...,
        min_length=1,
        description="Ordered leaf values (UTF-8 encoded before hashing)",
    )


class TreeCreateResponse(BaseModel):
    """Stored tree summary."""

    root_hash: str
    leaf_count: int
    padded_leaf_count: int
    node_count: int


class TreeValidationResponse(BaseModel):
    """Structural validation result."""

    valid: bool
    node_count: int
    root_hash: str | None = None


@router.post(
    "",
    response_model=TreeCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Build and store tree",
    description="Build a Merkle tree from the given leaves and replace the stored tree.",
)
async def create_tree(
    request: TreeCreateRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeCreateResponse:
    """Build a tree from leaves and persist every node."""
    logger.info("Tree creation requested", leaf_count=len(request.leaves))

    try:
        result = await service.create_and_store_tree(request.leaves)
    except EmptyInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except TreeServiceError as e:
        logger.error("Failed to create tree", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create tree: {e}",
        )

    return TreeCreateResponse(**result.to_dict())


@router.get(
    "/validation",
    response_model=TreeValidationResponse,
    summary="Validate stored tree",
    description="Fetch all stored nodes and check every internal hash against its children.",
)
async def validate_tree(
    service: TreeService = Depends(get_tree_service),
) -> TreeValidationResponse:
    """Validate the stored tree."""
    try:
        result = await service.validate_stored_tree()
    except TreeServiceError as e:
        logger.error("Failed to validate tree", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to validate tree: {e}",
        )

    return TreeValidationResponse(**result.to_dict())
