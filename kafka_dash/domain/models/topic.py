"""Topic metadata models shown by the dashboard."""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PartitionField(str, Enum):
    """Per-partition lookups issued while building a report."""

    OLDEST_OFFSET = "oldest_offset"
    NEWEST_OFFSET = "newest_offset"
    LEADER = "leader"
    REPLICAS = "replicas"
    IN_SYNC_REPLICAS = "in_sync_replicas"


class TopicSummary(BaseModel):
    """One row of the topic table."""
    model_config = ConfigDict(frozen=True)

    name: str
    partitions: int = Field(..., ge=0)


class ConfigEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: Optional[str] = None


class PartitionInfo(BaseModel):
    """Metadata of one partition.

    A field left as ``None`` could not be fetched and renders as unavailable.
    """
    model_config = ConfigDict(frozen=True)

    topic: str
    partition: int = Field(..., ge=0)
    oldest_offset: Optional[int] = None
    newest_offset: Optional[int] = None
    leader: Optional[str] = None
    replicas: Optional[Tuple[int, ...]] = None
    in_sync_replicas: Optional[Tuple[int, ...]] = None

    @property
    def is_empty(self) -> Optional[bool]:
        """True when nothing is retained between the oldest and newest offset."""
        if self.oldest_offset is None or self.newest_offset is None:
            return None
        return self.newest_offset - self.oldest_offset == 0


class PartitionFailure(BaseModel):
    """A lookup that was degraded to the unavailable marker."""
    model_config = ConfigDict(frozen=True)

    partition: int
    field: PartitionField
    reason: str


class TopicReport(BaseModel):
    """Immutable snapshot of a topic's configuration and partitions."""
    model_config = ConfigDict(frozen=True)

    topic: str
    configs: Tuple[ConfigEntry, ...] = ()
    partitions: Tuple[PartitionInfo, ...] = ()
    failures: Tuple[PartitionFailure, ...] = ()

    @property
    def partition_count(self) -> int:
        return len(self.partitions)

    @property
    def degraded(self) -> bool:
        return bool(self.failures)
