"""
Merkle Infos Service - API Dependencies
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from merkle_infos.core.config import settings
from merkle_infos.db.repository import NodeRepository
from merkle_infos.db.session import get_db
from merkle_infos.metrics.tree_metrics import get_tree_metrics
from merkle_infos.services.tree_service import TreeService


async def get_tree_service(session: AsyncSession = Depends(get_db)) -> TreeService:
    """Dependency for a request-scoped tree service."""
    repository = NodeRepository(
        session,
        table_name=settings.MERKLE_TABLE_NAME,
        page_size=settings.SCAN_PAGE_SIZE,
    )
    metrics = get_tree_metrics() if settings.METRICS_ENABLED else None
    return TreeService(repository, metrics=metrics)
