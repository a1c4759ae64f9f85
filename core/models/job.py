# ============================================================================
# BACKUP JOB MODEL
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core model - One in-flight bulk volume read
# PURPOSE: Track one StartBulkVolumeRead job from launch to terminal state
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: BackupJob, AsyncJobStatus
# DEPENDENCIES: pydantic
# ============================================================================
"""
Backup Job Model

A BackupJob is created by the launcher when the cluster accepts a
StartBulkVolumeRead call, and mutated only by the completion poller.

Lifecycle:
    1. Created with status=RUNNING, the async handle and start time
    2. Transitions to COMPLETE when GetAsyncResult reports "complete"
    3. Transitions to FAILED when GetAsyncResult reports "error"
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field, computed_field

from core.contracts import JobStatus, RemoteJobStatus, VolumeData


class AsyncJobStatus(BaseModel):
    """Parsed GetAsyncResult response."""
    async_handle: int
    status: RemoteJobStatus
    detail: Optional[Any] = Field(
        default=None,
        description="result payload on success, error payload on failure",
    )

    @classmethod
    def from_api(cls, async_handle: int, result: dict) -> "AsyncJobStatus":
        """
        Build from a GetAsyncResult result.

        A finished job carries either "result" or "error"; the error
        payload wins when both are present.
        """
        status = RemoteJobStatus(result["status"])
        detail = result.get("error")
        if detail is None:
            detail = result.get("result")
        return cls(async_handle=async_handle, status=status, detail=detail)


class BackupJob(VolumeData):
    """
    A running or finished backup job for one volume.

    Keyed by volume_id in the scheduler's active set.
    """

    node_id: int = Field(..., description="Node hosting the volume's primary replica")
    async_handle: int = Field(..., description="Handle issued by StartBulkVolumeRead")
    started_at: datetime
    status: JobStatus = Field(default=JobStatus.RUNNING)
    finished_at: Optional[datetime] = None
    error_detail: Optional[Any] = None

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if the job reached a terminal state."""
        return self.status.is_terminal()

    def elapsed_seconds(self, now: datetime) -> float:
        """Seconds since launch, or launch-to-finish once terminal."""
        end_time = self.finished_at or now
        return (end_time - self.started_at).total_seconds()

    def mark_complete(self, now: datetime) -> None:
        """Mark job as successfully finished."""
        if self.status != JobStatus.RUNNING:
            raise ValueError(f"Cannot transition from {self.status} to COMPLETE")
        self.status = JobStatus.COMPLETE
        self.finished_at = now

    def mark_failed(self, now: datetime, detail: Any) -> None:
        """Mark job as failed with the remote error detail."""
        if self.status != JobStatus.RUNNING:
            raise ValueError(f"Cannot transition from {self.status} to FAILED")
        self.status = JobStatus.FAILED
        self.finished_at = now
        self.error_detail = detail
