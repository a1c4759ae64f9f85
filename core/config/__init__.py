# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Module

Provides cluster connection settings and scheduler defaults.
"""

from core.config.cluster import ClusterConfig, DEFAULT_API_VERSION
from core.config.defaults import (
    CapacityDefaults,
    PollingDefaults,
    TimeoutDefaults,
    BackupDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "ClusterConfig",
    "DEFAULT_API_VERSION",
    "CapacityDefaults",
    "PollingDefaults",
    "TimeoutDefaults",
    "BackupDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
