# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Foundation - Core enums and base contracts
# PURPOSE: Status enums and identity contracts for backup scheduling
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: JobStatus, RemoteJobStatus, OutcomeStatus, FailureKind, VolumeData
# DEPENDENCIES: enum, pydantic
# ============================================================================
"""
Base contracts for the backup scheduler.

These define the status vocabularies that cross boundaries:
- Cluster API (GetAsyncResult status strings)
- Python (scheduler bookkeeping)
- Reports (final outcome per volume)
"""

from enum import Enum
from pydantic import BaseModel, Field


# ============================================================================
# STATUS ENUMS
# ============================================================================

class JobStatus(str, Enum):
    """
    Local lifecycle of one backup job.

    State transitions:
        RUNNING -> COMPLETE
                -> FAILED
    """
    RUNNING = "running"          # Started on the cluster, not yet finished
    COMPLETE = "complete"        # Remote job reported success
    FAILED = "failed"            # Remote job reported an error (terminal)

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (JobStatus.COMPLETE, JobStatus.FAILED)


class RemoteJobStatus(str, Enum):
    """Status strings reported by GetAsyncResult."""
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


class OutcomeStatus(str, Enum):
    """
    Terminal state of a volume within one run.

    ABANDONED only occurs when a bounded RetryPolicy is configured.
    """
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


class FailureKind(str, Enum):
    """Retryable failure categories, kept apart for diagnostics."""
    RESOLUTION = "resolution"
    LAUNCH = "launch"


# ============================================================================
# BASE DATA CONTRACTS
# ============================================================================

class VolumeData(BaseModel):
    """
    Essential volume identity.

    All volume-keyed models include this field.
    """
    volume_id: int = Field(..., ge=0, description="Cluster volume ID")

    model_config = {"frozen": False}
