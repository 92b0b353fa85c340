"""Interactive terminal dashboard for Kafka topics and partitions."""

__version__ = "0.1.0"
