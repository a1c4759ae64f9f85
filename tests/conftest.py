# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Tests - In-memory cluster and virtual clock
# PURPOSE: Drive the scheduler end to end without a cluster or real sleeps
# CREATED: 17 OCT 2026
# ============================================================================
"""
Shared fakes.

FakeCluster implements every cluster interface in memory. Each node hosts
one block service with id 100 + node_id. Jobs complete on their first
poll unless a status script says otherwise.

VirtualClock advances time on sleep() and yields to the event loop once,
so cancellation is still delivered at the sleep.
"""

import asyncio
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

import pytest

from core.config import CapacityDefaults
from core.errors import ElementAPIError, TransientRemoteError
from core.models import (
    AsyncJobStatus,
    BackupDestination,
    ClusterLimits,
    ReportService,
    ReportSlice,
    SchedulingPolicy,
    TopologyReport,
    VolumeStats,
)
from core.contracts import RemoteJobStatus
from infrastructure.cluster_api import (
    AsyncJobAPI,
    ClusterLimitsAPI,
    ReportFetcher,
    VolumeStatsFetcher,
)


START = datetime(2026, 10, 17, 2, 0, 0, tzinfo=timezone.utc)


def service_of(node_id: int) -> int:
    return 100 + node_id


class VirtualClock:
    """Clock whose sleep() only moves virtual time forward."""

    def __init__(self, start: datetime = START):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


class FakeCluster(ClusterLimitsAPI, ReportFetcher, VolumeStatsFetcher, AsyncJobAPI):
    """
    In-memory cluster.

    Status scripts: volume_id -> list of items returned by successive
    polls. Items are "running", "complete", ("error", detail) or an
    exception instance to raise. The last item repeats.
    """

    def __init__(self, placement: Dict[int, int], max_jobs_per_node: int = 8):
        self.placement = dict(placement)
        self.max_jobs_per_node = max_jobs_per_node

        self.limits_error: Optional[Exception] = None
        self.report_failures = 0  # -1 fails forever
        self.omit_from_report: Set[int] = set()
        self.stats_failures: Dict[int, int] = {}
        self.start_failures: Dict[int, int] = {}
        self.status_scripts: Dict[int, List[Any]] = {}

        self.calls: List[str] = []
        self.started: List[int] = []
        self.start_params: Dict[int, Dict[str, Any]] = {}
        self.running: Dict[int, int] = {}
        self.peak: Dict[int, int] = {}
        self._handles = itertools.count(1000)
        self._handle_volumes: Dict[int, int] = {}
        self._finished: Set[int] = set()

    # Limits ------------------------------------------------------------------

    async def get_limits(self) -> ClusterLimits:
        self.calls.append("GetLimits")
        if self.limits_error is not None:
            raise self.limits_error
        return ClusterLimits(max_jobs_per_node=self.max_jobs_per_node)

    # Topology ----------------------------------------------------------------

    async def get_topology_report(self) -> TopologyReport:
        self.calls.append("GetReport")
        if self.report_failures:
            if self.report_failures > 0:
                self.report_failures -= 1
            raise TransientRemoteError("report unavailable", method="GetReport")
        nodes = sorted(set(self.placement.values()))
        return TopologyReport(
            services=[ReportService(service_id=service_of(n), node_id=n) for n in nodes],
            slices=[
                ReportSlice(volume_id=v, primary_service_id=service_of(n))
                for v, n in self.placement.items()
                if v not in self.omit_from_report
            ],
        )

    async def get_volume_stats(self, volume_id: int) -> VolumeStats:
        self.calls.append("GetVolumeStats")
        remaining = self.stats_failures.get(volume_id, 0)
        if remaining:
            if remaining > 0:
                self.stats_failures[volume_id] = remaining - 1
            raise TransientRemoteError(f"stats for {volume_id} unavailable", method="GetVolumeStats")
        if volume_id not in self.placement:
            raise ElementAPIError(
                "Volume does not exist", method="GetVolumeStats", name="xVolumeIDDoesNotExist"
            )
        return VolumeStats(
            volume_id=volume_id,
            primary_service_id=service_of(self.placement[volume_id]),
        )

    # Jobs --------------------------------------------------------------------

    async def start_job(self, volume_id: int, destination: BackupDestination) -> int:
        self.calls.append("StartBulkVolumeRead")
        remaining = self.start_failures.get(volume_id, 0)
        if remaining:
            if remaining > 0:
                self.start_failures[volume_id] = remaining - 1
            raise ElementAPIError(
                "Too many bulk volume jobs", method="StartBulkVolumeRead",
                name="xBulkVolumeJobLimit", code=500,
            )
        handle = next(self._handles)
        self._handle_volumes[handle] = volume_id
        self.started.append(volume_id)
        self.start_params[volume_id] = destination.to_request_params(volume_id)

        node = self.placement[volume_id]
        self.running[node] = self.running.get(node, 0) + 1
        self.peak[node] = max(self.peak.get(node, 0), self.running[node])
        return handle

    async def get_job_status(self, async_handle: int) -> AsyncJobStatus:
        self.calls.append("GetAsyncResult")
        volume_id = self._handle_volumes[async_handle]
        script = self.status_scripts.get(volume_id, ["complete"])
        item = script.pop(0) if len(script) > 1 else script[0]

        if isinstance(item, Exception):
            raise item
        if isinstance(item, tuple):
            status, detail = RemoteJobStatus(item[0]), item[1]
        else:
            status, detail = RemoteJobStatus(item), None
            if status == RemoteJobStatus.COMPLETE:
                detail = {"volumeID": volume_id}

        if status != RemoteJobStatus.RUNNING and async_handle not in self._finished:
            self._finished.add(async_handle)
            self.running[self.placement[volume_id]] -= 1
        return AsyncJobStatus(async_handle=async_handle, status=status, detail=detail)

    def count(self, method: str) -> int:
        return self.calls.count(method)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def make_cluster():
    """FakeCluster class, so tests build clusters with their own placement."""
    return FakeCluster


@pytest.fixture
def destination():
    return BackupDestination(url="s3://backups/nightly")


@pytest.fixture
def capacity_defaults():
    """Fixed capacity defaults, independent of BACKUP_* env vars."""
    return CapacityDefaults(default_max_jobs_per_node=8, node_reserve=2, min_jobs_per_node=1)


@pytest.fixture
def policy():
    return SchedulingPolicy(poll_interval_seconds=5.0)
