# ============================================================================
# JOB LAUNCH SERVICE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Start bulk volume reads
# PURPOSE: Turn an admitted volume into a running BackupJob
# CREATED: 17 OCT 2026
# ============================================================================
"""
Job Launch Service

Issues exactly one StartBulkVolumeRead per call. A failed start is not
terminal for the volume: the scheduler puts it back in the pending queue.
"""

import logging

from core.clock import Clock, SYSTEM_CLOCK
from core.errors import JobStartFailure, TransientRemoteError
from core.models import BackupDestination, BackupJob
from infrastructure.cluster_api import AsyncJobAPI

logger = logging.getLogger(__name__)


class JobLauncher:
    """Starts backup jobs through an AsyncJobAPI."""

    def __init__(self, job_api: AsyncJobAPI, clock: Clock = SYSTEM_CLOCK):
        self._jobs = job_api
        self._clock = clock

    async def start_job(
        self,
        volume_id: int,
        destination: BackupDestination,
        node_id: int,
    ) -> BackupJob:
        """
        Start a backup of volume_id towards destination.

        Args:
            volume_id: Volume to back up
            destination: Where the bulk read sends the data
            node_id: Node the volume was admitted on (recorded on the job)

        Returns:
            BackupJob in RUNNING state

        Raises:
            JobStartFailure: the cluster did not accept the job
        """
        try:
            async_handle = await self._jobs.start_job(volume_id, destination)
        except TransientRemoteError as e:
            raise JobStartFailure(volume_id, str(e)) from e

        job = BackupJob(
            volume_id=volume_id,
            node_id=node_id,
            async_handle=async_handle,
            started_at=self._clock.now(),
        )
        logger.info(
            f"Started backup for volume {volume_id} on node {node_id} "
            f"(asyncHandle={async_handle})"
        )
        return job
