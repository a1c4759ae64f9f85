# ============================================================================
# TOOLS MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Tools - Command line entry points
# PURPOSE: Operator scripts (run directly: python tools/run_backup.py)
# CREATED: 17 OCT 2026
# ============================================================================
