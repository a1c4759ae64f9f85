# ============================================================================
# BACKUP DESTINATION MODEL
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core model - Where a bulk volume read sends its data
# PURPOSE: Build StartBulkVolumeRead parameters for a volume
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: BackupDestination
# DEPENDENCIES: pydantic
# ============================================================================
"""
Backup Destination

Describes the target of a bulk volume read. With the stock
backup_to_s3.py script the cluster streams the volume to the S3 URL
given in the script parameters.
"""

from typing import Any, Dict
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from core.config.defaults import get_defaults


class BackupDestination(BaseModel):
    """Target of a StartBulkVolumeRead job."""
    url: str = Field(..., min_length=1, description="Destination URL, e.g. s3://bucket/prefix")
    format: str = Field(
        default_factory=lambda: get_defaults().backup.format,
        pattern="^(native|uncompressed)$",
        validate_default=True,
    )
    script: str = Field(
        default_factory=lambda: get_defaults().backup.script,
        min_length=1,
        validate_default=True,
    )
    script_parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra script parameters merged next to s3_url",
    )

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Destination URL must not be blank")
        try:
            parts = urlsplit(v)
            parts.port  # raises on a non-numeric or out of range port
        except ValueError as e:
            raise ValueError(f"Invalid destination URL: {e}") from e
        if not parts.scheme or not parts.netloc:
            raise ValueError("Destination URL needs a scheme and a host, e.g. s3://bucket/prefix")
        return v

    def to_request_params(self, volume_id: int) -> Dict[str, Any]:
        """StartBulkVolumeRead params for one volume."""
        return {
            "volumeID": volume_id,
            "format": self.format,
            "script": self.script,
            "scriptParameters": {**self.script_parameters, "s3_url": self.url},
        }
