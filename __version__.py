# ============================================================================
# VERSION - BULK BACKUP SCHEDULER
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# ============================================================================
"""
Version information for the bulk backup scheduler.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch.build
# Criteria for 0.2 - scheduled S3 backups run end to end against a cluster
__version__ = "0.1.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-17"

EPOCH = 1
CODENAME = "Bulk Backup Scheduler"
