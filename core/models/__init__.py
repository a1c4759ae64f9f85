# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the backup scheduler: cluster payloads, the
in-flight job, scheduling policies and the final run report.
"""

from core.models.topology import (
    ClusterLimits,
    ReportService,
    ReportSlice,
    TopologyReport,
    VolumeStats,
)
from core.models.job import AsyncJobStatus, BackupJob
from core.models.destination import BackupDestination
from core.models.policy import RetryPolicy, SchedulingPolicy
from core.models.report import BackupRunReport, PassSnapshot, VolumeOutcome

__all__ = [
    # Topology
    "ClusterLimits",
    "ReportService",
    "ReportSlice",
    "TopologyReport",
    "VolumeStats",
    # Jobs
    "AsyncJobStatus",
    "BackupJob",
    "BackupDestination",
    # Policy
    "RetryPolicy",
    "SchedulingPolicy",
    # Reports
    "BackupRunReport",
    "PassSnapshot",
    "VolumeOutcome",
]
