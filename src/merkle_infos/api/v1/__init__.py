"""
Merkle Infos API v1

Endpoints:
- POST /tree - Build and store a tree
- GET /tree/validation - Validate the stored tree
- GET /merkleinfos - Node info by index (mounted at the application root)
"""

from fastapi import APIRouter

from merkle_infos.api.v1.endpoints import nodes, tree

router = APIRouter()
router.include_router(tree.router, prefix="/tree", tags=["Tree"])

node_info_router = nodes.router
