"""
Merkle Infos Service - Metrics Module

Prometheus metrics for tree builds, validations, and node lookups.
"""

from merkle_infos.metrics.tree_metrics import (
    TreeMetrics,
    get_tree_metrics,
)

__all__ = [
    "TreeMetrics",
    "get_tree_metrics",
]
