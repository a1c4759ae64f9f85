# ============================================================================
# BACKUP SCHEDULING LOOP
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Admission / completion cycle
# PURPOSE: Drive bulk backups of many volumes without overloading any node
# CREATED: 17 OCT 2026
# ============================================================================
"""
Backup Scheduling Loop

Setup:
1. GetLimits -> effective per-node limit (cluster max minus reserve)
2. GetReport(slices.json) -> volume -> node cache (degraded on failure)

Each pass:
1. Poll active jobs first, freeing node slots
2. Walk the pending queue in FIFO order:
   - resolve the volume's node (requeue if unknown)
   - requeue if the node is saturated
   - start the job (requeue if the start fails)
3. Pending queue becomes the requeued volumes, order preserved
4. Sleep one poll interval (+ jitter) unless everything is finished

A volume skipped in a pass is not looked at again in the same pass.

Single asyncio task, every network call awaited one at a time. The loop
owns all of its state; nothing here is shared with other tasks.

Only one scheduler may drive a given cluster at a time: two schedulers
would each believe they own the full per-node budget.
"""

import asyncio
import logging
import random
import uuid
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple

from core.clock import Clock, SYSTEM_CLOCK
from core.config import CapacityDefaults, get_defaults
from core.contracts import FailureKind, OutcomeStatus
from core.errors import JobStartFailure, ResolutionFailure, TransientRemoteError
from core.logging import ComponentType, log_checkpoint, log_context
from core.models import (
    BackupDestination,
    BackupJob,
    BackupRunReport,
    PassSnapshot,
    SchedulingPolicy,
    VolumeOutcome,
)
from infrastructure.cluster_api import (
    AsyncJobAPI,
    ClusterLimitsAPI,
    ReportFetcher,
    VolumeStatsFetcher,
)
from services.capacity_service import NodeCapacityTracker, effective_limit
from services.launch_service import JobLauncher
from services.poll_service import CompletionPoller
from services.topology_service import TopologyResolver

logger = logging.getLogger(__name__)

PassListener = Callable[[PassSnapshot], None]


class _RunState:
    """Mutable state of one run. Owned by the loop task."""

    def __init__(self, run_id: str, volume_ids: List[int], started_at: datetime):
        self.run_id = run_id
        self.volume_ids = volume_ids
        self.started_at = started_at
        self.pending: Deque[int] = deque(volume_ids)
        self.active: Dict[int, BackupJob] = {}
        self.outcomes: Dict[int, VolumeOutcome] = {}
        self.failures: Dict[Tuple[int, FailureKind], int] = {}
        self.not_before: Dict[int, datetime] = {}
        self.passes = 0
        self.cancelled = False
        self.deadline_exceeded = False
        self.capacity: Optional[NodeCapacityTracker] = None
        self.resolver: Optional[TopologyResolver] = None

    def is_finished(self) -> bool:
        return not self.pending and not self.active


class BackupScheduler:
    """
    Node-aware admission control for bulk backup jobs.

    Usage:
        async with ElementClient(config) as client:
            scheduler = BackupScheduler.from_client(client)
            report = await scheduler.run([101, 102, 103], destination)
    """

    def __init__(
        self,
        limits_api: ClusterLimitsAPI,
        report_fetcher: ReportFetcher,
        stats_fetcher: VolumeStatsFetcher,
        job_api: AsyncJobAPI,
        policy: Optional[SchedulingPolicy] = None,
        clock: Clock = SYSTEM_CLOCK,
        capacity_defaults: Optional[CapacityDefaults] = None,
        report_refresh_seconds: Optional[float] = None,
        pass_listener: Optional[PassListener] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize scheduler.

        Args:
            limits_api: GetLimits source
            report_fetcher: Bulk topology report source
            stats_fetcher: Per-volume topology fallback
            job_api: Starts and observes bulk read jobs
            policy: Poll interval, jitter and retry policies
            clock: Time source (tests inject a virtual clock)
            capacity_defaults: Reserve, floor and default cluster max
            report_refresh_seconds: Min spacing of topology report refreshes
            pass_listener: Called with a PassSnapshot after every pass
            rng: Random source for jitter
        """
        self._limits_api = limits_api
        self._report_fetcher = report_fetcher
        self._stats_fetcher = stats_fetcher
        self._job_api = job_api
        self.policy = policy or SchedulingPolicy.from_defaults()
        self._clock = clock
        self._capacity_defaults = capacity_defaults or get_defaults().capacity
        self._report_refresh_seconds = report_refresh_seconds
        self._pass_listener = pass_listener
        self._rng = rng or random.Random()

        # State
        self._running = False
        self._stop_requested = False
        self._loop_task: Optional[asyncio.Task] = None
        self._state: Optional[_RunState] = None

        # Metrics
        self._runs = 0
        self._passes = 0
        self._launched = 0
        self._completed = 0
        self._failed = 0
        self._abandoned = 0
        self._resolution_failures = 0
        self._launch_failures = 0
        self._poll_errors = 0
        self._overflows = 0
        self._last_pass_at: Optional[datetime] = None

    @classmethod
    def from_client(cls, client: Any, **kwargs) -> "BackupScheduler":
        """Build from one object implementing every cluster interface."""
        return cls(client, client, client, client, **kwargs)

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # RUN
    # =========================================================================

    async def run(
        self,
        volume_ids: Iterable[int],
        destination: BackupDestination,
        deadline_seconds: Optional[float] = None,
    ) -> BackupRunReport:
        """
        Back up every volume and return when all are finished.

        Args:
            volume_ids: Volumes to back up (duplicates collapsed)
            destination: Backup target passed to every job
            deadline_seconds: Optional bound on the whole run

        Returns:
            BackupRunReport. Interrupted runs (stop() or deadline) list the
            volumes still running remotely and those never started.

        Raises:
            asyncio.CancelledError: the calling task was cancelled
        """
        if self._running:
            raise RuntimeError("Scheduler is already running")
        if deadline_seconds is not None and deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be > 0")

        run_id = uuid.uuid4().hex[:12]
        state = _RunState(run_id, self._dedupe(volume_ids), self._clock.now())
        self._state = state
        self._running = True
        self._stop_requested = False
        self._runs += 1

        with log_context(run_id=run_id, component=ComponentType.SCHEDULER.value):
            log_checkpoint("run_started", {
                "volumes": len(state.volume_ids),
                "deadline_seconds": deadline_seconds,
            }, logger=logger)

            loop_task = asyncio.create_task(
                self._run_passes(state, destination),
                name=f"backup-scheduler-{run_id}",
            )
            self._loop_task = loop_task
            try:
                if deadline_seconds is None:
                    await loop_task
                else:
                    await asyncio.wait_for(loop_task, timeout=deadline_seconds)
            except asyncio.TimeoutError:
                state.deadline_exceeded = True
                logger.warning(f"Run deadline of {deadline_seconds}s exceeded")
            except asyncio.CancelledError:
                if not self._stop_requested:
                    loop_task.cancel()
                    logger.warning("Run cancelled by caller")
                    raise
                state.cancelled = True
                logger.warning("Run stopped")
            finally:
                self._running = False
                self._loop_task = None

            report = self._build_report(state)
            log_checkpoint("run_finished", {
                "passes": report.passes,
                "completed": len(report.completed),
                "failed": len(report.failed),
                "abandoned": len(report.abandoned),
                "running_at_exit": len(report.running_at_exit),
                "not_started": len(report.not_started),
            }, logger=logger)
            return report

    def stop(self) -> None:
        """Stop the current run. run() returns a cancelled report."""
        if not self._running or self._loop_task is None:
            return
        logger.info("Stop requested")
        self._stop_requested = True
        self._loop_task.cancel()

    def _dedupe(self, volume_ids: Iterable[int]) -> List[int]:
        ordered: List[int] = []
        seen = set()
        for volume_id in volume_ids:
            if volume_id in seen:
                logger.warning(f"Duplicate volume {volume_id} in input ignored")
                continue
            seen.add(volume_id)
            ordered.append(volume_id)
        return ordered

    # =========================================================================
    # SETUP
    # =========================================================================

    async def _setup(self, state: _RunState) -> None:
        """Determine the per-node limit and warm the topology cache."""
        try:
            limits = await self._limits_api.get_limits()
            cluster_max = limits.max_jobs_per_node
        except TransientRemoteError as e:
            logger.warning(
                f"Failed to get cluster limits, using default "
                f"{self._capacity_defaults.default_max_jobs_per_node}: {e}"
            )
            cluster_max = 0

        state.capacity = NodeCapacityTracker.from_cluster_max(cluster_max, self._capacity_defaults)
        state.resolver = TopologyResolver(
            self._report_fetcher,
            self._stats_fetcher,
            clock=self._clock,
            report_refresh_seconds=self._report_refresh_seconds,
        )
        await state.resolver.build_mapping()

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    async def _run_passes(self, state: _RunState, destination: BackupDestination) -> None:
        await self._setup(state)

        launcher = JobLauncher(self._job_api, clock=self._clock)
        poller = CompletionPoller(self._job_api, state.capacity, clock=self._clock)

        while not state.is_finished():
            state.passes += 1
            self._passes += 1

            errors_before = poller.query_errors
            for outcome in await poller.poll_all(state.active):
                self._record_outcome(state, outcome)
            self._poll_errors += poller.query_errors - errors_before

            requeue: List[int] = []
            while state.pending:
                volume_id = state.pending.popleft()
                with log_context(volume_id=volume_id):
                    await self._admit(state, volume_id, destination, launcher, requeue)
            state.pending.extend(requeue)

            self._last_pass_at = self._clock.now()
            logger.info(
                f"Pass {state.passes}: {len(state.active)} active, "
                f"{len(state.pending)} pending, {len(state.outcomes)} finished"
            )
            self._notify(state)

            if state.is_finished():
                break
            await self._clock.sleep(self._next_interval())

        logger.info(f"All {len(state.volume_ids)} volumes processed in {state.passes} passes")

    async def _admit(
        self,
        state: _RunState,
        volume_id: int,
        destination: BackupDestination,
        launcher: JobLauncher,
        requeue: List[int],
    ) -> None:
        """Try to start one pending volume; requeue it if it cannot start."""
        not_before = state.not_before.get(volume_id)
        if not_before is not None:
            if self._clock.now() < not_before:
                requeue.append(volume_id)
                return
            del state.not_before[volume_id]

        try:
            node_id = await state.resolver.resolve_node(volume_id)
        except ResolutionFailure as e:
            self._resolution_failures += 1
            self._retry_or_abandon(state, volume_id, FailureKind.RESOLUTION, e.reason, None, requeue)
            return

        if not state.capacity.can_admit(node_id):
            self._overflows += 1
            logger.debug(
                f"Node {node_id} at limit ({state.capacity.active_count(node_id)}/"
                f"{state.capacity.limit}), volume {volume_id} waits"
            )
            requeue.append(volume_id)
            return

        try:
            job = await launcher.start_job(volume_id, destination, node_id)
        except JobStartFailure as e:
            self._launch_failures += 1
            self._retry_or_abandon(state, volume_id, FailureKind.LAUNCH, e.reason, node_id, requeue)
            return

        state.capacity.on_admit(node_id)
        state.active[volume_id] = job
        self._launched += 1

    def _retry_or_abandon(
        self,
        state: _RunState,
        volume_id: int,
        kind: FailureKind,
        reason: str,
        node_id: Optional[int],
        requeue: List[int],
    ) -> None:
        key = (volume_id, kind)
        failures = state.failures.get(key, 0) + 1
        state.failures[key] = failures

        retry = self.policy.resolution_retry if kind == FailureKind.RESOLUTION else self.policy.launch_retry
        if retry.is_exhausted(failures):
            logger.error(
                f"Giving up on volume {volume_id} after {failures} {kind.value} failures: {reason}"
            )
            self._record_outcome(state, VolumeOutcome(
                volume_id=volume_id,
                status=OutcomeStatus.ABANDONED,
                node_id=node_id,
                error_detail=reason,
                finished_at=self._clock.now(),
            ))
            return

        delay = retry.delay_for(failures)
        if delay > 0:
            state.not_before[volume_id] = self._clock.now() + timedelta(seconds=delay)
        logger.warning(
            f"{kind.value.capitalize()} failed for volume {volume_id} "
            f"(attempt {failures}), re-queueing: {reason}"
        )
        requeue.append(volume_id)

    def _record_outcome(self, state: _RunState, outcome: VolumeOutcome) -> None:
        state.outcomes[outcome.volume_id] = outcome
        if outcome.status == OutcomeStatus.COMPLETED:
            self._completed += 1
        elif outcome.status == OutcomeStatus.FAILED:
            self._failed += 1
        else:
            self._abandoned += 1

    def _next_interval(self) -> float:
        interval = self.policy.poll_interval_seconds
        if self.policy.jitter_seconds > 0:
            interval += self._rng.uniform(0, self.policy.jitter_seconds)
        return interval

    def _notify(self, state: _RunState) -> None:
        if self._pass_listener is None:
            return
        self._pass_listener(PassSnapshot(
            pass_number=state.passes,
            pending=list(state.pending),
            active=list(state.active),
            node_counts=state.capacity.snapshot(),
            effective_limit=state.capacity.limit,
            terminal=len(state.outcomes),
        ))

    # =========================================================================
    # REPORTING
    # =========================================================================

    def _build_report(self, state: _RunState) -> BackupRunReport:
        running = [v for v in state.volume_ids if v in state.active]
        not_started = [
            v for v in state.volume_ids
            if v not in state.outcomes and v not in state.active
        ]
        if running or not_started:
            logger.warning(
                f"Run ended with {len(running)} jobs still running remotely "
                f"and {len(not_started)} volumes not started"
            )

        if state.capacity is not None:
            limit = state.capacity.limit
        else:
            d = self._capacity_defaults
            limit = effective_limit(0, d.node_reserve, d.min_jobs_per_node, d.default_max_jobs_per_node)

        return BackupRunReport(
            run_id=state.run_id,
            started_at=state.started_at,
            finished_at=self._clock.now(),
            effective_limit=limit,
            degraded_topology=state.resolver.degraded if state.resolver else False,
            passes=state.passes,
            cancelled=state.cancelled,
            deadline_exceeded=state.deadline_exceeded,
            outcomes=state.outcomes,
            running_at_exit=running,
            not_started=not_started,
        )

    def stats(self) -> Dict[str, Any]:
        """Get scheduler statistics."""
        state = self._state
        result: Dict[str, Any] = {
            "running": self._running,
            "runs": self._runs,
            "passes": self._passes,
            "launched": self._launched,
            "completed": self._completed,
            "failed": self._failed,
            "abandoned": self._abandoned,
            "resolution_failures": self._resolution_failures,
            "launch_failures": self._launch_failures,
            "poll_errors": self._poll_errors,
            "overflows": self._overflows,
            "last_pass_at": self._last_pass_at.isoformat() if self._last_pass_at else None,
        }
        if state is not None:
            result["pending"] = len(state.pending)
            result["active"] = len(state.active)
            if state.capacity is not None:
                result["effective_limit"] = state.capacity.limit
                result["node_counts"] = state.capacity.snapshot()
            if state.resolver is not None:
                result["topology"] = state.resolver.stats()
        return result


__all__ = ["BackupScheduler", "PassListener"]
