# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Scheduling building blocks
# PURPOSE: Topology, capacity, launch and completion services
# CREATED: 17 OCT 2026
# ============================================================================
"""
Services Module

The pieces the scheduling loop composes. Services talk to the cluster only
through the interfaces in infrastructure.cluster_api.

Usage:
    from services import TopologyResolver, NodeCapacityTracker

    resolver = TopologyResolver(client, client)
    await resolver.build_mapping()
"""

from .capacity_service import NodeCapacityTracker, effective_limit
from .topology_service import TopologyResolver
from .launch_service import JobLauncher
from .poll_service import CompletionPoller

__all__ = [
    "NodeCapacityTracker",
    "effective_limit",
    "TopologyResolver",
    "JobLauncher",
    "CompletionPoller",
]
