# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================

from core.contracts import JobStatus, RemoteJobStatus, OutcomeStatus, FailureKind
from core.errors import (
    BackupSchedulerError,
    ConfigurationError,
    TransientRemoteError,
    ElementAPIError,
    ResolutionFailure,
    JobStartFailure,
    JobExecutionFailure,
)
from core.models import (
    BackupJob,
    BackupDestination,
    BackupRunReport,
    VolumeOutcome,
    RetryPolicy,
    SchedulingPolicy,
)

__all__ = [
    # Enums
    "JobStatus",
    "RemoteJobStatus",
    "OutcomeStatus",
    "FailureKind",
    # Errors
    "BackupSchedulerError",
    "ConfigurationError",
    "TransientRemoteError",
    "ElementAPIError",
    "ResolutionFailure",
    "JobStartFailure",
    "JobExecutionFailure",
    # Models
    "BackupJob",
    "BackupDestination",
    "BackupRunReport",
    "VolumeOutcome",
    "RetryPolicy",
    "SchedulingPolicy",
]
