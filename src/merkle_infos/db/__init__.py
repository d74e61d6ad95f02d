"""
Merkle Infos Service - Database Package

Provides async database session management and the node repository.
"""

from merkle_infos.db.session import (
    async_session_factory,
    close_db,
    engine,
    get_db,
    init_db,
)

__all__ = [
    "engine",
    "async_session_factory",
    "init_db",
    "close_db",
    "get_db",
]
