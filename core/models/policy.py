# ============================================================================
# SCHEDULING POLICY MODELS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core model - Loop pacing and retry policies
# PURPOSE: Make poll interval, jitter, retry ceiling and backoff injectable
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: RetryPolicy, SchedulingPolicy
# DEPENDENCIES: pydantic
# ============================================================================
"""
Scheduling Policy

The defaults reproduce the classic behaviour: a fixed poll interval and
unbounded, immediate retry of volumes whose node cannot be resolved or
whose job cannot be started. Bounding retries or adding backoff is a
matter of passing a different RetryPolicy.
"""

from typing import Optional
from pydantic import BaseModel, Field, model_validator

from core.config.defaults import PollingDefaults


class RetryPolicy(BaseModel):
    """
    Retry configuration for one retryable failure category.

    max_attempts counts failed attempts; None means retry forever.
    Delay before attempt n+1 after n failures:
        fixed:       initial
        linear:      initial * n
        exponential: initial * 2 ** (n - 1)
    capped at max_delay_seconds.
    """
    max_attempts: Optional[int] = Field(default=None, ge=1)
    backoff: str = Field(default="fixed", pattern="^(fixed|exponential|linear)$")
    initial_delay_seconds: float = Field(default=0.0, ge=0)
    max_delay_seconds: float = Field(default=300.0, ge=0)

    @property
    def is_bounded(self) -> bool:
        return self.max_attempts is not None

    def is_exhausted(self, failures: int) -> bool:
        """True once failures reached max_attempts."""
        return self.max_attempts is not None and failures >= self.max_attempts

    def delay_for(self, failures: int) -> float:
        """Seconds to wait after the given number of consecutive failures."""
        if failures <= 0 or self.initial_delay_seconds == 0:
            return 0.0
        if self.backoff == "linear":
            delay = self.initial_delay_seconds * failures
        elif self.backoff == "exponential":
            delay = self.initial_delay_seconds * (2 ** (failures - 1))
        else:
            delay = self.initial_delay_seconds
        return min(delay, self.max_delay_seconds)


class SchedulingPolicy(BaseModel):
    """Pacing of the scheduling loop plus retry policies."""
    poll_interval_seconds: float = Field(default=5.0, ge=0)
    jitter_seconds: float = Field(default=0.0, ge=0)
    resolution_retry: RetryPolicy = Field(default_factory=RetryPolicy)
    launch_retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @model_validator(mode="after")
    def check_backoff_caps(self) -> "SchedulingPolicy":
        for name in ("resolution_retry", "launch_retry"):
            policy: RetryPolicy = getattr(self, name)
            if policy.max_delay_seconds < policy.initial_delay_seconds:
                raise ValueError(f"{name}: max_delay_seconds < initial_delay_seconds")
        return self

    @classmethod
    def from_defaults(cls, polling: Optional[PollingDefaults] = None) -> "SchedulingPolicy":
        """Build from PollingDefaults (env-driven by default)."""
        polling = polling or PollingDefaults.from_env()
        return cls(
            poll_interval_seconds=polling.poll_interval_seconds,
            jitter_seconds=polling.jitter_seconds,
        )
