# ============================================================================
# NODE CAPACITY SERVICE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Per-node admission accounting
# PURPOSE: Track active bulk jobs per node against the effective limit
# CREATED: 17 OCT 2026
# ============================================================================
"""
Node Capacity Service

The cluster caps concurrent bulk volume jobs per node
(bulkVolumeJobsPerNodeMax). The scheduler holds a reserve back from that
cap so restores can still be started during a long backup run.

Only the scheduling loop mutates the tracker; it is not thread-safe.
"""

import logging
from typing import Dict, Optional

from core.config import CapacityDefaults

logger = logging.getLogger(__name__)


def effective_limit(
    cluster_max: int,
    reserve: int = 2,
    minimum: int = 1,
    default_max: int = 8,
) -> int:
    """
    Per-node ceiling after applying the safety reserve.

    A cluster reporting no limit (<= 0) is treated as default_max. The
    reserve never pushes the result below minimum.

        effective_limit(8)  -> 6
        effective_limit(2)  -> 1
        effective_limit(0)  -> 6   (default 8 minus reserve 2)
    """
    if minimum < 1:
        raise ValueError("minimum must be >= 1")
    if reserve < 0:
        raise ValueError("reserve must be >= 0")
    base = cluster_max if cluster_max > 0 else default_max
    return max(base - reserve, minimum)


class NodeCapacityTracker:
    """Active job count per node, bounded by one cluster-wide limit."""

    def __init__(self, limit: int):
        """
        Initialize tracker.

        Args:
            limit: Effective per-node limit (>= 1)
        """
        if limit < 1:
            raise ValueError(f"Effective limit must be >= 1, got {limit}")
        self._limit = limit
        self._counts: Dict[int, int] = {}

    @classmethod
    def from_cluster_max(
        cls,
        cluster_max: int,
        defaults: Optional[CapacityDefaults] = None,
    ) -> "NodeCapacityTracker":
        """Build from the cluster-reported maximum and CapacityDefaults."""
        defaults = defaults or CapacityDefaults()
        limit = effective_limit(
            cluster_max,
            reserve=defaults.node_reserve,
            minimum=defaults.min_jobs_per_node,
            default_max=defaults.default_max_jobs_per_node,
        )
        logger.info(
            f"Max concurrent backup jobs per node: {limit} "
            f"(cluster reported {cluster_max}, reserve {defaults.node_reserve})"
        )
        return cls(limit)

    @property
    def limit(self) -> int:
        return self._limit

    def active_count(self, node_id: int) -> int:
        return self._counts.get(node_id, 0)

    def can_admit(self, node_id: int) -> bool:
        """True iff one more job fits on the node."""
        return self.active_count(node_id) < self._limit

    def on_admit(self, node_id: int) -> None:
        """Record a job started on the node."""
        current = self.active_count(node_id)
        if current >= self._limit:
            raise ValueError(
                f"Node {node_id} already at limit ({current}/{self._limit})"
            )
        self._counts[node_id] = current + 1

    def on_complete(self, node_id: int) -> None:
        """Record a job on the node reaching a terminal state."""
        current = self.active_count(node_id)
        if current <= 0:
            raise ValueError(f"Node {node_id} has no active jobs to release")
        if current == 1:
            del self._counts[node_id]
        else:
            self._counts[node_id] = current - 1

    def total_active(self) -> int:
        return sum(self._counts.values())

    def snapshot(self) -> Dict[int, int]:
        """Copy of node_id -> active count (idle nodes omitted)."""
        return dict(self._counts)
