# ============================================================================
# RUN REPORT MODELS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core model - Per-volume outcomes and final run report
# PURPOSE: What the scheduler hands back to its caller
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: VolumeOutcome, PassSnapshot, BackupRunReport
# DEPENDENCIES: pydantic
# ============================================================================
"""
Run Report Models

Every volume handed to the scheduler ends up in exactly one of:
- outcomes: terminal (completed / failed / abandoned)
- running_at_exit: a job was started and may still be running remotely
- not_started: still pending when the run was stopped
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, computed_field

from core.contracts import OutcomeStatus, VolumeData


class VolumeOutcome(VolumeData):
    """Terminal result for one volume."""
    status: OutcomeStatus
    node_id: Optional[int] = None
    async_handle: Optional[int] = None
    duration_seconds: Optional[float] = None
    error_detail: Optional[Any] = None
    finished_at: Optional[datetime] = None


class PassSnapshot(BaseModel):
    """State of the scheduler at the end of one pass."""
    pass_number: int
    pending: List[int] = Field(default_factory=list)
    active: List[int] = Field(default_factory=list)
    node_counts: Dict[int, int] = Field(default_factory=dict)
    effective_limit: int
    terminal: int = 0


class BackupRunReport(BaseModel):
    """Final report of one scheduler run."""
    run_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    effective_limit: int
    degraded_topology: bool = False
    passes: int = 0
    cancelled: bool = False
    deadline_exceeded: bool = False
    outcomes: Dict[int, VolumeOutcome] = Field(default_factory=dict)
    running_at_exit: List[int] = Field(
        default_factory=list,
        description="Volumes whose remote job was started but not seen finishing",
    )
    not_started: List[int] = Field(default_factory=list)

    def _with_status(self, status: OutcomeStatus) -> List[VolumeOutcome]:
        return [o for o in self.outcomes.values() if o.status == status]

    @computed_field
    @property
    def completed(self) -> List[int]:
        return [o.volume_id for o in self._with_status(OutcomeStatus.COMPLETED)]

    @computed_field
    @property
    def failed(self) -> List[int]:
        return [o.volume_id for o in self._with_status(OutcomeStatus.FAILED)]

    @computed_field
    @property
    def abandoned(self) -> List[int]:
        return [o.volume_id for o in self._with_status(OutcomeStatus.ABANDONED)]

    @computed_field
    @property
    def interrupted(self) -> bool:
        return self.cancelled or self.deadline_exceeded

    @computed_field
    @property
    def all_succeeded(self) -> bool:
        return (
            not self.interrupted
            and not self.running_at_exit
            and not self.not_started
            and all(o.status == OutcomeStatus.COMPLETED for o in self.outcomes.values())
        )

    def failures(self) -> Dict[int, Any]:
        """volume_id -> error detail for failed and abandoned volumes."""
        return {
            o.volume_id: o.error_detail
            for o in self.outcomes.values()
            if o.status != OutcomeStatus.COMPLETED
        }
