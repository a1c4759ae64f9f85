# ============================================================================
# CLUSTER API INTERFACES
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Infrastructure - Abstract collaborator interfaces
# PURPOSE: Narrow interfaces the scheduler consumes from the cluster
# CREATED: 17 OCT 2026
# ============================================================================
"""
Cluster API Interfaces

The scheduler only ever talks to the cluster through these four
interfaces. ElementClient implements all of them over JSON-RPC; tests
substitute in-memory fakes.

Every method raises TransientRemoteError when the call cannot be
completed.
"""

from abc import ABC, abstractmethod

from core.models import (
    AsyncJobStatus,
    BackupDestination,
    ClusterLimits,
    TopologyReport,
    VolumeStats,
)


class ClusterLimitsAPI(ABC):
    """Source of the cluster-wide per-node bulk job ceiling."""

    @abstractmethod
    async def get_limits(self) -> ClusterLimits:
        """Fetch cluster limits."""
        pass


class ReportFetcher(ABC):
    """Source of the bulk topology report."""

    @abstractmethod
    async def get_topology_report(self) -> TopologyReport:
        """Fetch services -> nodes and slices -> primary service."""
        pass


class VolumeStatsFetcher(ABC):
    """Per-volume fallback for topology resolution."""

    @abstractmethod
    async def get_volume_stats(self, volume_id: int) -> VolumeStats:
        """Fetch the primary service of one volume."""
        pass


class AsyncJobAPI(ABC):
    """Start and observe asynchronous bulk volume jobs."""

    @abstractmethod
    async def start_job(self, volume_id: int, destination: BackupDestination) -> int:
        """
        Start a bulk read of a volume towards destination.

        Returns:
            Async handle identifying the remote job
        """
        pass

    @abstractmethod
    async def get_job_status(self, async_handle: int) -> AsyncJobStatus:
        """Query the status of a remote job."""
        pass


__all__ = [
    "ClusterLimitsAPI",
    "ReportFetcher",
    "VolumeStatsFetcher",
    "AsyncJobAPI",
]
