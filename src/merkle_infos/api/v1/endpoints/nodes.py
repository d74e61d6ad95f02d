"""
Merkle Infos API - Node Info Endpoint

- GET /merkleinfos?index=N: Depth, offset and hash of the node at index N
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from merkle_infos.api.deps import get_tree_service
from merkle_infos.services.tree_service import TreeService, TreeServiceError

logger = structlog.get_logger(__name__)
router = APIRouter()

MAX_NODE_INDEX = 2**32 - 1


class NodeInfoResponse(BaseModel):
    """Node position and stored hash."""

    depth: int
    offset: int
    hash: str


@router.get(
    "/merkleinfos",
    response_model=NodeInfoResponse,
    summary="Get node info",
    description="Return the depth, offset and hash of the node stored at the given index.",
    responses={
        200: {"description": "Node info"},
        500: {"description": "Node not found or storage error"},
    },
)
async def get_node_info(
    index: int = Query(
        ...,
        ge=0,
        le=MAX_NODE_INDEX,
        description="Heap-layout node index (root is 0)",
    ),
    service: TreeService = Depends(get_tree_service),
) -> NodeInfoResponse:
    """Look up a node by index."""
    try:
        info = await service.get_node_info(index)
    except TreeServiceError as e:
        logger.error("Failed to get node info", index=index, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error: {e}",
        )

    logger.info(
        "Node info",
        index=index,
        depth=info.depth,
        offset=info.offset,
    )
    return NodeInfoResponse(**info.to_dict())
