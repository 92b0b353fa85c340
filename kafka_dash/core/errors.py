"""Error taxonomy shared by the broker client, the aggregator and the UI."""
from __future__ import annotations

from typing import Sequence


class DashboardError(RuntimeError):
    """Base class for every error the dashboard raises on purpose."""


class ConnectionFailed(DashboardError):
    """No broker client could be created. Fatal at startup."""

    def __init__(self, brokers: Sequence[str], reason: object) -> None:
        self.brokers = list(brokers)
        self.reason = reason
        super().__init__(f"Error creating Kafka client for {', '.join(self.brokers)}: {reason}")


class TopicListFailed(DashboardError):
    """Topic listing (or a partition count behind it) failed. Fatal at startup."""

    def __init__(self, reason: object, topic: str | None = None) -> None:
        self.topic = topic
        self.reason = reason
        if topic is None:
            msg = f"Error fetching topics: {reason}"
        else:
            msg = f"Error fetching partitions for topic {topic}: {reason}"
        super().__init__(msg)


class ConfigFetchFailed(DashboardError):
    """Topic configuration lookup failed; the report is not built."""

    def __init__(self, topic: str, reason: object) -> None:
        self.topic = topic
        self.reason = reason
        super().__init__(f"Error fetching configs for topic {topic}: {reason}")


class PartitionListFailed(DashboardError):
    """Partition set lookup failed; the report is not built."""

    def __init__(self, topic: str, reason: object) -> None:
        self.topic = topic
        self.reason = reason
        super().__init__(f"Error fetching partitions for topic {topic}: {reason}")


class PartitionQueryFailed(DashboardError):
    """One field of one partition could not be fetched.

    Never raised out of a report build: the field is rendered as unavailable
    and the failure is kept on the report.
    """

    def __init__(self, topic: str, partition: int, field: str, reason: object) -> None:
        self.topic = topic
        self.partition = partition
        self.field = field
        self.reason = reason
        super().__init__(f"Error fetching {field} for {topic}[{partition}]: {reason}")


class BrokerQueryError(DashboardError):
    """A kafka-python lookup failed (normalised)."""

    def __init__(self, operation: str, reason: object) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")
