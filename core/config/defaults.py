# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for capacity, polling, timeouts, backups
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the scheduler and the cluster client.
These can be overridden via environment variables or CLI arguments.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class CapacityDefaults:
    """
    Defaults for per-node admission.

    The cluster reports bulkVolumeJobsPerNodeMax; a reserve is held back
    so restores and ad-hoc jobs can still run while a backup is in flight.
    """
    # Used when the cluster reports no limit (<= 0) or GetLimits fails
    default_max_jobs_per_node: int = 8
    # Slots held back per node
    node_reserve: int = 2
    # The reserve never pushes the limit below this
    min_jobs_per_node: int = 1

    @classmethod
    def from_env(cls) -> "CapacityDefaults":
        """Create from environment variables."""
        return cls(
            default_max_jobs_per_node=_env_int("BACKUP_DEFAULT_JOBS_PER_NODE", 8),
            node_reserve=_env_int("BACKUP_NODE_RESERVE", 2),
            min_jobs_per_node=_env_int("BACKUP_MIN_JOBS_PER_NODE", 1),
        )


@dataclass(frozen=True)
class PollingDefaults:
    """
    Defaults for loop pacing.

    poll_interval_seconds is the wait between scheduling passes.
    """
    poll_interval_seconds: float = 5.0
    jitter_seconds: float = 0.0
    # Single-volume wait_for_async_result cadence
    async_wait_interval_seconds: float = 0.5
    # Minimum spacing between topology report refreshes on a service miss
    report_refresh_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "PollingDefaults":
        """Create from environment variables."""
        return cls(
            poll_interval_seconds=_env_float("BACKUP_POLL_INTERVAL_SEC", 5.0),
            jitter_seconds=_env_float("BACKUP_POLL_JITTER_SEC", 0.0),
            async_wait_interval_seconds=_env_float("BACKUP_ASYNC_WAIT_INTERVAL_SEC", 0.5),
            report_refresh_seconds=_env_float("BACKUP_REPORT_REFRESH_SEC", 60.0),
        )


@dataclass(frozen=True)
class TimeoutDefaults:
    """
    Defaults for cluster API timeouts (seconds).

    GetReport on a large cluster can take a while, hence the long read.
    """
    connect_timeout: float = 30.0
    read_timeout: float = 120.0
    write_timeout: float = 30.0
    pool_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "TimeoutDefaults":
        """Create from environment variables."""
        return cls(
            connect_timeout=_env_float("SF_CONNECT_TIMEOUT_SEC", 30.0),
            read_timeout=_env_float("SF_READ_TIMEOUT_SEC", 120.0),
        )


@dataclass(frozen=True)
class BackupDefaults:
    """
    Defaults for StartBulkVolumeRead.

    backup_to_s3.py is the bulk-volume script shipped with Element OS.
    """
    report_name: str = "slices.json"
    format: str = "native"
    script: str = "backup_to_s3.py"

    @classmethod
    def from_env(cls) -> "BackupDefaults":
        """Create from environment variables."""
        return cls(
            report_name=os.getenv("BACKUP_REPORT_NAME", "slices.json"),
            format=os.getenv("BACKUP_FORMAT", "native"),
            script=os.getenv("BACKUP_SCRIPT", "backup_to_s3.py"),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    capacity: CapacityDefaults = field(default_factory=CapacityDefaults)
    polling: PollingDefaults = field(default_factory=PollingDefaults)
    timeouts: TimeoutDefaults = field(default_factory=TimeoutDefaults)
    backup: BackupDefaults = field(default_factory=BackupDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            capacity=CapacityDefaults.from_env(),
            polling=PollingDefaults.from_env(),
            timeouts=TimeoutDefaults.from_env(),
            backup=BackupDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "CapacityDefaults",
    "PollingDefaults",
    "TimeoutDefaults",
    "BackupDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
