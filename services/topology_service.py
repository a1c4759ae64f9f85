# ============================================================================
# TOPOLOGY SERVICE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Volume to node resolution
# PURPOSE: Map each volume to the node hosting its primary replica
# CREATED: 17 OCT 2026
# ============================================================================
"""
Topology Service

Resolves volume -> node in two tiers:

1. Bulk: one GetReport(slices.json) call maps every service to its node
   and every volume to its primary service. This avoids a GetVolumeStats
   call per volume.
2. Fallback: for volumes missing from the report (created after it was
   taken, or report unavailable) GetVolumeStats gives the primary
   service, mapped to a node through the cached service table.

If the report cannot be fetched the resolver runs in degraded mode and
relies on the fallback. A service missing from the table triggers a
report refresh, rate-limited to one per report_refresh_seconds.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from core.clock import Clock, SYSTEM_CLOCK
from core.config import get_defaults
from core.errors import ResolutionFailure, TransientRemoteError
from core.models import TopologyReport
from infrastructure.cluster_api import ReportFetcher, VolumeStatsFetcher

logger = logging.getLogger(__name__)


class TopologyResolver:
    """Volume -> node cache with a per-volume fallback lookup."""

    def __init__(
        self,
        report_fetcher: ReportFetcher,
        stats_fetcher: VolumeStatsFetcher,
        clock: Clock = SYSTEM_CLOCK,
        report_refresh_seconds: Optional[float] = None,
    ):
        """
        Initialize resolver.

        Args:
            report_fetcher: Source of the bulk topology report
            stats_fetcher: Per-volume fallback lookup
            clock: Time source for refresh rate limiting
            report_refresh_seconds: Min spacing of report refreshes on a
                service-table miss. Negative disables refreshes. Default
                from PollingDefaults.
        """
        self._reports = report_fetcher
        self._stats = stats_fetcher
        self._clock = clock
        if report_refresh_seconds is None:
            report_refresh_seconds = get_defaults().polling.report_refresh_seconds
        self._refresh_seconds = report_refresh_seconds

        self._volume_nodes: Dict[int, int] = {}
        self._service_nodes: Dict[int, int] = {}
        self._last_report_at: Optional[datetime] = None
        self.degraded = False

        # Metrics
        self._report_fetches = 0
        self._report_failures = 0
        self._stats_lookups = 0
        self._cache_hits = 0

    # =========================================================================
    # BULK MAPPING
    # =========================================================================

    async def build_mapping(self) -> Dict[int, int]:
        """
        Fetch the topology report and populate the caches.

        Never raises on fetch failure: returns {} and sets degraded.

        Returns:
            Copy of the volume -> node mapping
        """
        logger.info("Fetching topology report to map volumes to nodes...")
        report = await self._fetch_report()
        if report is None:
            self.degraded = True
            logger.warning(
                "Topology report unavailable, falling back to GetVolumeStats "
                "for every volume"
            )
            return {}

        self._apply_report(report)
        self.degraded = False
        logger.info(f"Mapped {len(self._volume_nodes)} volumes to nodes via report.")
        return dict(self._volume_nodes)

    async def _fetch_report(self) -> Optional[TopologyReport]:
        self._last_report_at = self._clock.now()
        self._report_fetches += 1
        try:
            return await self._reports.get_topology_report()
        except TransientRemoteError as e:
            self._report_failures += 1
            logger.warning(f"Failed to get topology report: {e}")
            return None

    def _apply_report(self, report: TopologyReport) -> None:
        self._service_nodes.update(report.service_table())
        self._volume_nodes.update(report.volume_map(self._service_nodes))

    async def _refresh_services(self) -> bool:
        """Re-fetch the report if the rate limit allows. True if refreshed."""
        if self._refresh_seconds < 0:
            return False
        now = self._clock.now()
        if self._last_report_at is not None:
            since = (now - self._last_report_at).total_seconds()
            if since < self._refresh_seconds:
                return False

        report = await self._fetch_report()
        if report is None:
            return False

        self._apply_report(report)
        if self.degraded:
            logger.info("Topology report available again, leaving degraded mode")
            self.degraded = False
        return True

    # =========================================================================
    # PER-VOLUME RESOLUTION
    # =========================================================================

    def cached_node(self, volume_id: int) -> Optional[int]:
        return self._volume_nodes.get(volume_id)

    async def resolve_node(self, volume_id: int) -> int:
        """
        Node hosting the primary replica of volume_id.

        Raises:
            ResolutionFailure: node unknown this time; retry later
        """
        node_id = self._volume_nodes.get(volume_id)
        if node_id is not None:
            self._cache_hits += 1
            return node_id

        self._stats_lookups += 1
        try:
            stats = await self._stats.get_volume_stats(volume_id)
        except TransientRemoteError as e:
            raise ResolutionFailure(volume_id, f"GetVolumeStats failed: {e}") from e

        service_id = stats.primary_service_id
        node_id = self._service_nodes.get(service_id)
        if node_id is None and await self._refresh_services():
            node_id = self._service_nodes.get(service_id)

        if node_id is None:
            raise ResolutionFailure(
                volume_id, f"primary service {service_id} not in service table"
            )

        self._volume_nodes[volume_id] = node_id
        logger.debug(f"Resolved volume {volume_id} -> service {service_id} -> node {node_id}")
        return node_id

    def stats(self) -> Dict[str, Any]:
        """Get resolver statistics."""
        return {
            "degraded": self.degraded,
            "cached_volumes": len(self._volume_nodes),
            "known_services": len(self._service_nodes),
            "report_fetches": self._report_fetches,
            "report_failures": self._report_failures,
            "stats_lookups": self._stats_lookups,
            "cache_hits": self._cache_hits,
        }
