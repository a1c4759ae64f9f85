# ============================================================================
# CLOCK
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Time source for the scheduling loop
# PURPOSE: Let tests replace wall-clock time and sleeping
# CREATED: 17 OCT 2026
# ============================================================================
"""
Clock

The scheduler, launcher and poller never call datetime.now() or
asyncio.sleep() directly; they go through a Clock so a virtual clock can
drive whole runs in tests without waiting.
"""

import asyncio
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Clock:
    """Wall-clock time and real asyncio sleeping."""

    def now(self) -> datetime:
        return utc_now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


SYSTEM_CLOCK = Clock()

__all__ = ["Clock", "SYSTEM_CLOCK", "utc_now"]
