"""
Merkle Infos Service - Node Repository

Database operations for Merkle tree nodes. Nodes are keyed by their
heap-layout index; writes are idempotent upserts.
"""

import re
from collections.abc import Sequence

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause

from merkle_infos.crypto.merkle import MerkleNode

logger = structlog.get_logger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_PAGE_SIZE = 1000


class NodeRepository:
    """Repository for Merkle node storage."""

    def __init__(
        self,
        session: AsyncSession,
        table_name: str = "merkle_nodes",
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session
            table_name: Table holding the nodes
            page_size: Rows fetched per scan page

        Raises:
            ValueError: If table_name is not a plain SQL identifier
        """
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")
        if page_size < 1:
            raise ValueError(f"Page size must be positive, got {page_size}")

        self._session = session
        self._table = table_name
        self._page_size = page_size

    def _upsert_query(self) -> TextClause:
        return text(f"""
            INSERT INTO {self._table} (node_index, hash)
            VALUES (:node_index, :hash)
            ON CONFLICT (node_index) DO UPDATE SET
                hash = EXCLUDED.hash
        """)

    async def put_node(self, node: MerkleNode) -> None:
        """
        Insert or replace a single node.

        Args:
            node: MerkleNode to persist
        """
        await self._session.execute(
            self._upsert_query(),
            {"node_index": node.index, "hash": node.hash},
        )
        await self._session.commit()

    async def put_nodes(self, nodes: Sequence[MerkleNode], commit: bool = True) -> int:
        """
        Insert or replace a batch of nodes.

        Args:
            nodes: Nodes to persist
            commit: Commit the transaction after writing

        Returns:
            Number of nodes written
        """
        if not nodes:
            return 0

        await self._session.execute(
            self._upsert_query(),
            [{"node_index": node.index, "hash": node.hash} for node in nodes],
        )
        if commit:
            await self._session.commit()

        return len(nodes)

    async def replace_tree(self, nodes: Sequence[MerkleNode]) -> int:
        """
        Replace all stored nodes with a new tree in one transaction.

        Args:
            nodes: Complete node set of the new tree

        Returns:
            Number of nodes written
        """
        try:
            await self._session.execute(text(f"DELETE FROM {self._table}"))
            written = await self.put_nodes(nodes, commit=False)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        logger.info("Stored Merkle tree", table=self._table, node_count=written)
        return written

    async def get_node(self, index: int) -> MerkleNode | None:
        """
        Get a node by index.

        Args:
            index: Heap-layout node index

        Returns:
            MerkleNode or None if not found
        """
        query = text(f"""
            SELECT node_index, hash
            FROM {self._table}
            WHERE node_index = :node_index
        """)

        result = await self._session.execute(query, {"node_index": index})
        row = result.fetchone()

        if not row:
            return None

        return MerkleNode(index=row.node_index, hash=row.hash)

    async def scan_page(
        self,
        cursor: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[MerkleNode], int | None]:
        """
        Fetch one page of nodes after a continuation cursor.

        Args:
            cursor: Last index of the previous page, None for the first page
            limit: Maximum rows to return (defaults to the repository page size)

        Returns:
            Tuple of (nodes, next cursor); the cursor is None once exhausted
        """
        limit = limit or self._page_size

        if cursor is None:
            query = text(f"""
                SELECT node_index, hash
                FROM {self._table}
                ORDER BY node_index
                LIMIT :limit
            """)
            params = {"limit": limit}
        else:
            query = text(f"""
                SELECT node_index, hash
                FROM {self._table}
                WHERE node_index > :cursor
                ORDER BY node_index
                LIMIT :limit
            """)
            params = {"cursor": cursor, "limit": limit}

        result = await self._session.execute(query, params)
        nodes = [
            MerkleNode(index=row.node_index, hash=row.hash)
            for row in result.fetchall()
        ]

        next_cursor = nodes[-1].index if len(nodes) == limit else None
        return nodes, next_cursor

    async def scan_all_nodes(self) -> list[MerkleNode]:
        """
        Fetch every stored node, following cursors until exhausted.

        Returns:
            Nodes sorted by index ascending
        """
        nodes: list[MerkleNode] = []
        cursor = None
        pages = 0

        while True:
            page, cursor = await self.scan_page(cursor)
            nodes.extend(page)
            pages += 1
            if cursor is None:
                break

        nodes.sort(key=lambda node: node.index)

        logger.debug("Scanned Merkle nodes", node_count=len(nodes), pages=pages)
        return nodes

    async def count_nodes(self) -> int:
        """Count stored nodes."""
        result = await self._session.execute(
            text(f"SELECT COUNT(*) AS total FROM {self._table}")
        )
        row = result.fetchone()
        return row.total if row else 0
