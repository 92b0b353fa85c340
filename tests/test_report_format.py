"""
Tests for the plain-text report layout
"""
from kafka_dash.domain.models.topic import ConfigEntry, PartitionInfo, TopicReport, TopicSummary
from kafka_dash.domain.services.report_format import (
    PARTITION_HEADER,
    UNAVAILABLE,
    format_edit_placeholder,
    format_partition,
    format_report,
    format_topic_summaries,
)


def _partition(**kw):
    base = dict(topic="orders", partition=0, oldest_offset=0, newest_offset=5,
                leader="broker-1:9092", replicas=(1, 2, 3), in_sync_replicas=(1, 2))
    base.update(kw)
    return PartitionInfo(**base)


class TestFormatPartition:
    """Test one partition line"""

    def test_fixed_width_columns(self):
        """Columns follow the fixed %-11d %-14d %-14d %-6t %-15s %-9d %-16d layout"""
        line = format_partition(_partition(partition=1, oldest_offset=3, newest_offset=42))
        assert line == (
            "1           "
            "3              "
            "42             "
            "false  "
            "broker-1:9092   "
            "3         "
            "2               "
        )

    def test_replicas_render_as_count(self):
        """REPLICAS and IN_SYNC_REPLICAS show counts, not members"""
        cols = format_partition(_partition(replicas=(7, 8), in_sync_replicas=(7,))).split()
        assert cols[-2:] == ["2", "1"]

    def test_empty_uses_offset_difference(self):
        """EMPTY is true when newest == oldest, even with a nonzero floor"""
        cols = format_partition(_partition(oldest_offset=10, newest_offset=10)).split()
        assert cols[3] == "true"

    def test_zero_newest_is_not_the_rule(self):
        """newest == 0 alone does not decide EMPTY"""
        p = _partition(oldest_offset=0, newest_offset=0)
        assert p.is_empty is True
        p = _partition(oldest_offset=3, newest_offset=9)
        assert p.is_empty is False

    def test_unavailable_marker(self):
        """Missing fields render as the unavailable marker"""
        cols = format_partition(_partition(leader=None, newest_offset=None, in_sync_replicas=None)).split()
        assert cols == ["0", "0", UNAVAILABLE, UNAVAILABLE, UNAVAILABLE, "3", UNAVAILABLE]


class TestFormatReport:
    """Test the full report text"""

    def test_layout(self):
        report = TopicReport(
            topic="orders",
            configs=(ConfigEntry(name="cleanup.policy", value="delete"),),
            partitions=(_partition(oldest_offset=10, newest_offset=10),),
        )
        lines = format_report(report).split("\n")
        assert lines[0] == "CONFIG            VALUE"
        assert lines[1] == "cleanup.policy     delete"
        assert lines[2] == ""
        assert lines[3] == PARTITION_HEADER
        assert lines[4].split()[:4] == ["0", "10", "10", "true"]
        assert lines[5] == ""

    def test_no_configs_no_partitions(self):
        assert format_report(TopicReport(topic="t")) == f"CONFIG            VALUE\n\n{PARTITION_HEADER}\n"

    def test_missing_config_value(self):
        report = TopicReport(topic="t", configs=(ConfigEntry(name="segment.ms"),))
        assert format_report(report).split("\n")[1] == "segment.ms         "


class TestTopicTable:
    """Test topic table rows"""

    def test_header_then_topics(self):
        """Header at index 0, then topics in the given order"""
        rows = format_topic_summaries([
            TopicSummary(name="orders", partitions=3),
            TopicSummary(name="payments", partitions=1),
        ])
        assert rows == [("Topic Name", "PARTITIONS"), ("orders", "3"), ("payments", "1")]

    def test_edit_placeholder(self):
        assert format_edit_placeholder("orders") == "Editing topic: orders"
