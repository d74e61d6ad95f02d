"""
Merkle Infos Service - Tree Metrics

Prometheus metrics for Merkle tree construction, validation, and node lookups.
"""

import time

import structlog
from prometheus_client import Counter, Gauge, Histogram, Info

logger = structlog.get_logger(__name__)


class TreeMetrics:
    """
    Centralized metrics for the Merkle Infos service.

    Provides visibility into:
    - Tree build times and sizes
    - Structural validation outcomes
    - Node lookups by result
    """

    def __init__(self) -> None:
        """Initialize all tree metrics."""
        self._init_build_metrics()
        self._init_validation_metrics()
        self._init_lookup_metrics()
        self._init_info_metrics()

    def _init_build_metrics(self) -> None:
        """Initialize tree build metrics."""
        self.build_duration = Histogram(
            "merkle_tree_build_duration_seconds",
            "Merkle tree build and store time",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        self.tree_leaves = Histogram(
            "merkle_tree_leaves",
            "Number of leaves in built Merkle trees",
            buckets=[1, 8, 64, 512, 4096, 32768, 262144],
        )

        self.stored_nodes = Gauge(
            "merkle_tree_stored_nodes",
            "Nodes in the most recently stored tree",
        )

    def _init_validation_metrics(self) -> None:
        """Initialize validation metrics."""
        self.validations = Counter(
            "merkle_tree_validations_total",
            "Structural validations of the stored tree",
            ["result"],
        )

        self.validation_duration = Histogram(
            "merkle_tree_validation_duration_seconds",
            "Fetch and validate time for the stored tree",
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
        )

        self.last_validation_timestamp = Gauge(
            "merkle_tree_last_validation_timestamp",
            "Timestamp of last validation (Unix epoch)",
        )

    def _init_lookup_metrics(self) -> None:
        """Initialize node lookup metrics."""
        self.node_lookups = Counter(
            "merkle_node_lookups_total",
            "Node info lookups by index",
            ["result"],
        )

    def _init_info_metrics(self) -> None:
        """Initialize info metrics."""
        self.service_info = Info(
            "merkle_infos_service",
            "Merkle Infos service information",
        )

    # Convenience methods

    def record_build(self, duration: float, leaf_count: int, node_count: int) -> None:
        """Record a tree build."""
        self.build_duration.observe(duration)
        self.tree_leaves.observe(leaf_count)
        self.stored_nodes.set(node_count)

    def record_validation(self, valid: bool, duration: float) -> None:
        """Record a tree validation."""
        result = "valid" if valid else "invalid"
        self.validations.labels(result=result).inc()
        self.validation_duration.observe(duration)
        self.last_validation_timestamp.set(time.time())

    def record_lookup(self, result: str) -> None:
        """Record a node lookup (found, not_found, error)."""
        self.node_lookups.labels(result=result).inc()

    def set_service_info(self, version: str, environment: str, table: str) -> None:
        """Set service info labels."""
        self.service_info.info({
            "version": version,
            "environment": environment,
            "table": table,
        })


# Singleton instance
_tree_metrics: TreeMetrics | None = None


def get_tree_metrics() -> TreeMetrics:
    """Get global tree metrics instance."""
    global _tree_metrics
    if _tree_metrics is None:
        _tree_metrics = TreeMetrics()
    return _tree_metrics
