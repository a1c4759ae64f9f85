# ============================================================================
# CLUSTER TOPOLOGY MODELS
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core model - Cluster payloads used for node resolution
# PURPOSE: Parse GetLimits, GetReport(slices.json) and GetVolumeStats
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: ClusterLimits, ReportService, ReportSlice, TopologyReport, VolumeStats
# DEPENDENCIES: pydantic
# ============================================================================
"""
Cluster Topology Models

The slices report maps every block service to the node hosting it, and
every volume slice to its primary service. Combined they answer
"which node does the primary replica of volume V live on?" without one
GetVolumeStats call per volume.

Field aliases follow the cluster's camelCase JSON; Python code uses the
snake_case names.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ClusterLimits(BaseModel):
    """Subset of GetLimits used for admission."""
    max_jobs_per_node: int = Field(
        default=0,
        alias="bulkVolumeJobsPerNodeMax",
        description="Bulk volume jobs allowed per node; <= 0 means not reported",
    )

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ReportService(BaseModel):
    """A block service and the node hosting it."""
    service_id: int = Field(..., alias="serviceID")
    node_id: int = Field(..., alias="nodeID")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ReportSlice(BaseModel):
    """A volume slice and the service holding its primary copy."""
    volume_id: int = Field(..., alias="volumeID")
    primary_service_id: int = Field(..., alias="primary")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class TopologyReport(BaseModel):
    """Parsed slices.json report."""
    services: List[ReportService] = Field(default_factory=list)
    slices: List[ReportSlice] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def service_table(self) -> Dict[int, int]:
        """service_id -> node_id"""
        return {svc.service_id: svc.node_id for svc in self.services}

    def volume_map(self, service_table: Optional[Dict[int, int]] = None) -> Dict[int, int]:
        """
        volume_id -> node_id for every slice whose primary service is known.

        Slices whose primary service is missing from the table are left
        out; the resolver falls back to GetVolumeStats for them.
        """
        table = service_table if service_table is not None else self.service_table()
        mapping: Dict[int, int] = {}
        for slice_ in self.slices:
            node_id = table.get(slice_.primary_service_id)
            if node_id is not None:
                mapping[slice_.volume_id] = node_id
        return mapping


class VolumeStats(BaseModel):
    """Subset of GetVolumeStats used for node resolution."""
    volume_id: int
    primary_service_id: int

    @classmethod
    def from_api(cls, volume_id: int, result: dict) -> "VolumeStats":
        """
        Build from a GetVolumeStats result.

        Raises:
            KeyError / TypeError / ValueError: if metadataHosts.primary is absent
        """
        stats = result["volumeStats"]
        primary = stats["metadataHosts"]["primary"]
        return cls(volume_id=stats.get("volumeID", volume_id), primary_service_id=int(primary))
