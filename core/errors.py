# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Exception hierarchy
# PURPOSE: Distinguish transient, retryable and terminal failures
# CREATED: 17 OCT 2026
# ============================================================================
"""
Error Taxonomy

Transient (absorbed by the scheduler, retried next pass):
- TransientRemoteError / ElementAPIError: a remote call did not complete
- ResolutionFailure: no node could be determined for a volume
- JobStartFailure: StartBulkVolumeRead did not return a handle

Terminal (surfaced in the run report):
- JobExecutionFailure: the remote job itself reported an error

A saturated node is not an error; the volume simply waits for capacity.
"""

from typing import Any, Optional


class BackupSchedulerError(Exception):
    """Base exception for the backup scheduler."""


class ConfigurationError(BackupSchedulerError, ValueError):
    """Raised when cluster or scheduler configuration is invalid."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class TransientRemoteError(BackupSchedulerError):
    """A call to the cluster could not be completed."""

    def __init__(self, message: str, method: str = None):
        self.method = method
        super().__init__(message)


class ElementAPIError(TransientRemoteError):
    """The cluster answered with a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        method: str = None,
        name: Optional[str] = None,
        code: Optional[Any] = None,
    ):
        self.name = name
        self.code = code
        super().__init__(message, method=method)

    def __str__(self) -> str:
        base = super().__str__()
        if self.name:
            return f"{base} (name={self.name}, code={self.code})"
        return base


class ResolutionFailure(BackupSchedulerError):
    """The node hosting a volume's primary replica is unknown."""

    def __init__(self, volume_id: int, reason: str):
        self.volume_id = volume_id
        self.reason = reason
        super().__init__(f"Cannot resolve node for volume {volume_id}: {reason}")


class JobStartFailure(BackupSchedulerError):
    """A backup job could not be started for a volume."""

    def __init__(self, volume_id: int, reason: str):
        self.volume_id = volume_id
        self.reason = reason
        super().__init__(f"Failed to start backup for volume {volume_id}: {reason}")


class JobExecutionFailure(BackupSchedulerError):
    """The remote job reported an error status. Terminal for the volume."""

    def __init__(self, async_handle: int, detail: Any, volume_id: int = None):
        self.async_handle = async_handle
        self.detail = detail
        self.volume_id = volume_id
        super().__init__(f"Async job {async_handle} failed: {detail}")


__all__ = [
    "BackupSchedulerError",
    "ConfigurationError",
    "TransientRemoteError",
    "ElementAPIError",
    "ResolutionFailure",
    "JobStartFailure",
    "JobExecutionFailure",
]
