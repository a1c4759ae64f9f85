# ============================================================================
# COMPLETION POLL SERVICE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Observe in-flight jobs
# PURPOSE: Classify running jobs and release node capacity on completion
# CREATED: 17 OCT 2026
# ============================================================================
"""
Completion Poll Service

One GetAsyncResult per active job, one job at a time.

    running  -> nothing changes
    complete -> job COMPLETE, node slot released, job leaves the active set
    error    -> job FAILED (terminal, never re-queued), slot released
    query failed -> job left untouched, asked again next pass
"""

import logging
from typing import Dict, List

from core.clock import Clock, SYSTEM_CLOCK
from core.contracts import OutcomeStatus, RemoteJobStatus
from core.errors import TransientRemoteError
from core.logging import log_context
from core.models import BackupJob, VolumeOutcome
from infrastructure.cluster_api import AsyncJobAPI
from services.capacity_service import NodeCapacityTracker

logger = logging.getLogger(__name__)


class CompletionPoller:
    """Polls active jobs and applies terminal transitions."""

    def __init__(
        self,
        job_api: AsyncJobAPI,
        capacity: NodeCapacityTracker,
        clock: Clock = SYSTEM_CLOCK,
    ):
        self._jobs = job_api
        self._capacity = capacity
        self._clock = clock
        self._query_errors = 0

    @property
    def query_errors(self) -> int:
        """Status queries that failed and were deferred to the next pass."""
        return self._query_errors

    async def poll_all(self, active_jobs: Dict[int, BackupJob]) -> List[VolumeOutcome]:
        """
        Poll every job in active_jobs (volume_id -> job).

        Finished jobs are removed from active_jobs in place and their node
        slot released.

        Returns:
            Outcomes of the jobs that finished during this pass
        """
        outcomes: List[VolumeOutcome] = []

        # Snapshot: entries are removed while iterating
        for volume_id, job in list(active_jobs.items()):
            with log_context(volume_id=volume_id, node_id=job.node_id, async_handle=job.async_handle):
                try:
                    status = await self._jobs.get_job_status(job.async_handle)
                except TransientRemoteError as e:
                    self._query_errors += 1
                    logger.warning(f"Error checking job for volume {volume_id}: {e}")
                    continue

                if status.status == RemoteJobStatus.RUNNING:
                    continue

                now = self._clock.now()
                if status.status == RemoteJobStatus.COMPLETE:
                    job.mark_complete(now)
                    outcome_status = OutcomeStatus.COMPLETED
                    logger.info(
                        f"Backup for volume {volume_id} (node {job.node_id}) COMPLETED "
                        f"in {job.elapsed_seconds(now):.1f}s"
                    )
                else:
                    job.mark_failed(now, status.detail)
                    outcome_status = OutcomeStatus.FAILED
                    logger.error(
                        f"Backup for volume {volume_id} (node {job.node_id}) FAILED: {status.detail}"
                    )

                self._capacity.on_complete(job.node_id)
                del active_jobs[volume_id]
                outcomes.append(VolumeOutcome(
                    volume_id=volume_id,
                    status=outcome_status,
                    node_id=job.node_id,
                    async_handle=job.async_handle,
                    duration_seconds=job.elapsed_seconds(now),
                    error_detail=job.error_detail,
                    finished_at=now,
                ))

        return outcomes
