"""Plain-text rendering of topic summaries and reports.

The column layout is consumed by scripts (``kafka-dash describe``), so it is
fixed: any change here is a breaking change.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from kafka_dash.domain.models.topic import PartitionInfo, TopicReport, TopicSummary

UNAVAILABLE = "unavailable"

CONFIG_HEADER = "CONFIG            VALUE"
PARTITION_HEADER = (
    "PARTITION   OLDEST_OFFSET   NEWEST_OFFSET   EMPTY   LEADER           REPLICAS   IN_SYNC_REPLICAS"
)
TOPIC_TABLE_HEADER: Tuple[str, str] = ("Topic Name", "PARTITIONS")


def _cell(value: object, width: int) -> str:
    if value is None:
        value = UNAVAILABLE
    elif isinstance(value, bool):
        value = "true" if value else "false"
    return f"{value!s:<{width}}"


def _count(members: Optional[Sequence[int]]) -> Optional[int]:
    return None if members is None else len(members)


def format_partition(p: PartitionInfo) -> str:
    return " ".join(
        (
            _cell(p.partition, 11),
            _cell(p.oldest_offset, 14),
            _cell(p.newest_offset, 14),
            _cell(p.is_empty, 6),
            _cell(p.leader, 15),
            _cell(_count(p.replicas), 9),
            _cell(_count(p.in_sync_replicas), 16),
        )
    )


def format_report(report: TopicReport) -> str:
    lines = [CONFIG_HEADER]
    for entry in report.configs:
        lines.append(f"{entry.name:<18} {entry.value if entry.value is not None else ''}")
    lines.append("")
    lines.append(PARTITION_HEADER)
    lines.extend(format_partition(p) for p in report.partitions)
    return "\n".join(lines) + "\n"


def format_topic_summaries(summaries: Sequence[TopicSummary]) -> List[Tuple[str, str]]:
    """Header row at index 0, then one row per topic in the given order."""
    rows = [TOPIC_TABLE_HEADER]
    rows.extend((s.name, str(s.partitions)) for s in summaries)
    return rows


def format_edit_placeholder(topic: str) -> str:
    return f"Editing topic: {topic}"


def format_error(exc: BaseException) -> str:
    return f"Error: {exc}"
