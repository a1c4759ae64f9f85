# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Main scheduling loop
# PURPOSE: Admit backup jobs across nodes within the per-node limit
# CREATED: 17 OCT 2026
# ============================================================================
"""
Orchestrator Module

The scheduling loop that drives a bulk backup run.

Usage:
    from orchestrator import BackupScheduler

    scheduler = BackupScheduler.from_client(client)
    report = await scheduler.run(volume_ids, destination)
"""

from .loop import BackupScheduler, PassListener

__all__ = ["BackupScheduler", "PassListener"]
