# ============================================================================
# NODE CAPACITY TESTS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Tests - Effective limit and per-node accounting
# PURPOSE: Verify reserve arithmetic and admit/complete bookkeeping
# CREATED: 17 OCT 2026
# ============================================================================
"""
Node Capacity Tests

Run with:
    pytest tests/test_capacity.py -v
"""

import pytest

from core.config import CapacityDefaults
from services.capacity_service import NodeCapacityTracker, effective_limit


# ============================================================================
# EFFECTIVE LIMIT
# ============================================================================

class TestEffectiveLimit:

    def test_reserve_subtracted(self):
        assert effective_limit(8) == 6

    def test_floor_at_minimum(self):
        assert effective_limit(2) == 1
        assert effective_limit(1) == 1

    def test_unreported_max_uses_default(self):
        assert effective_limit(0) == 6
        assert effective_limit(-1) == 6

    def test_large_cluster_max(self):
        assert effective_limit(32) == 30

    def test_custom_reserve_and_default(self):
        assert effective_limit(10, reserve=4) == 6
        assert effective_limit(0, reserve=0, default_max=4) == 4

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            effective_limit(8, minimum=0)
        with pytest.raises(ValueError):
            effective_limit(8, reserve=-1)


# ============================================================================
# TRACKER
# ============================================================================

class TestNodeCapacityTracker:

    def test_admit_until_limit(self):
        tracker = NodeCapacityTracker(2)

        assert tracker.can_admit(1)
        tracker.on_admit(1)
        assert tracker.can_admit(1)
        tracker.on_admit(1)
        assert not tracker.can_admit(1)
        assert tracker.can_admit(2)
        assert tracker.active_count(1) == 2

    def test_admit_past_limit_raises(self):
        tracker = NodeCapacityTracker(1)
        tracker.on_admit(5)

        with pytest.raises(ValueError, match="already at limit"):
            tracker.on_admit(5)

    def test_complete_frees_slot(self):
        tracker = NodeCapacityTracker(1)
        tracker.on_admit(3)
        tracker.on_complete(3)

        assert tracker.can_admit(3)
        assert tracker.active_count(3) == 0
        assert tracker.snapshot() == {}

    def test_complete_idle_node_raises(self):
        tracker = NodeCapacityTracker(4)

        with pytest.raises(ValueError, match="no active jobs"):
            tracker.on_complete(9)

    def test_snapshot_and_total(self):
        tracker = NodeCapacityTracker(3)
        tracker.on_admit(1)
        tracker.on_admit(1)
        tracker.on_admit(2)

        snap = tracker.snapshot()
        assert snap == {1: 2, 2: 1}
        assert tracker.total_active() == 3

        # Snapshot is a copy
        snap[1] = 99
        assert tracker.active_count(1) == 2

    def test_limit_below_one_rejected(self):
        with pytest.raises(ValueError):
            NodeCapacityTracker(0)

    def test_from_cluster_max(self):
        tracker = NodeCapacityTracker.from_cluster_max(8, CapacityDefaults())
        assert tracker.limit == 6

    def test_from_cluster_max_custom_defaults(self):
        defaults = CapacityDefaults(default_max_jobs_per_node=4, node_reserve=1, min_jobs_per_node=2)

        assert NodeCapacityTracker.from_cluster_max(0, defaults).limit == 3
        assert NodeCapacityTracker.from_cluster_max(2, defaults).limit == 2
