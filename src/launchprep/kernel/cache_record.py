"""Normalized build-cache record models."""

from typing import Dict
from pydantic import BaseModel, Field, ConfigDict


class CachedBinaryRecord(BaseModel):
    """Binary produced for a launch from a specific source revision."""
    launch_id: int
    source_hash: str  # resolved commit the binary was built from
    binary_checksum: str  # bare sha256 hex of the binary right after build

    model_config = ConfigDict(extra="forbid", frozen=True)


class BinaryCacheFile(BaseModel):
    """On-disk layout of the build cache: one record per launch id."""
    format: str = "launchprep.binary-cache"
    version: str = "0.1"
    records: Dict[str, CachedBinaryRecord] = Field(default_factory=dict)  # str(launch_id) -> record

    model_config = ConfigDict(extra="forbid")
