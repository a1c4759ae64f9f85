# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Infrastructure - Cluster API access
# PURPOSE: Collaborator interfaces and the Element JSON-RPC client
# CREATED: 17 OCT 2026
# ============================================================================
"""
Infrastructure module for the backup scheduler.

Provides:
- ClusterLimitsAPI, ReportFetcher, VolumeStatsFetcher, AsyncJobAPI:
  the narrow interfaces the scheduler talks to
- ElementClient: httpx implementation of all four over JSON-RPC

Usage:
    from infrastructure import ElementClient

    async with ElementClient(ClusterConfig.from_env()) as client:
        report = await client.get_topology_report()
"""

from infrastructure.cluster_api import (
    AsyncJobAPI,
    ClusterLimitsAPI,
    ReportFetcher,
    VolumeStatsFetcher,
)
from infrastructure.element_api import ElementClient, default_timeout

__all__ = [
    "AsyncJobAPI",
    "ClusterLimitsAPI",
    "ReportFetcher",
    "VolumeStatsFetcher",
    "ElementClient",
    "default_timeout",
]
