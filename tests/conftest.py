"""
Pytest configuration and fixtures
"""
import socket
import threading

import pytest

from kafka_dash.core.config import Settings
from kafka_dash.domain.services.metadata_service import MetadataService
from kafka_dash.infra.kafka.client import OffsetSpec


class FakePartition:
    def __init__(self, oldest=0, newest=0, leader="broker-1:9092", replicas=(1,), isr=(1,)):
        self.oldest = oldest
        self.newest = newest
        self.leader = leader
        self.replicas = list(replicas)
        self.isr = list(isr)


class FakeBrokerClient:
    """In-memory broker client.

    ``fail`` maps an operation name (or ``(operation, partition)``) to the
    exception to raise; ``calls`` records every call in order.
    """

    def __init__(self, topics, configs=None, fail=None, delay=None):
        self.topics = topics
        self.configs = configs or {}
        self.fail = fail or {}
        self.delay = delay or {}
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def _hit(self, op, partition=None):
        with self._lock:
            self.calls.append((op, partition))
        wait = self.delay.get((op, partition))
        if wait is not None:
            wait.wait(5)
        exc = self.fail.get((op, partition)) or self.fail.get(op)
        if exc is not None:
            raise exc

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.closed = True

    def list_topics(self):
        self._hit("list_topics")
        return list(self.topics)

    def partitions(self, topic):
        self._hit("partitions")
        return list(self.topics[topic])

    def describe_config(self, topic):
        self._hit("describe_config")
        return list(self.configs.get(topic, []))

    def get_offset(self, topic, partition, which):
        op = "oldest" if which is OffsetSpec.OLDEST else "newest"
        self._hit(op, partition)
        p = self.topics[topic][partition]
        return p.oldest if which is OffsetSpec.OLDEST else p.newest

    def leader(self, topic, partition):
        self._hit("leader", partition)
        return self.topics[topic][partition].leader

    def replicas(self, topic, partition):
        self._hit("replicas", partition)
        return self.topics[topic][partition].replicas

    def in_sync_replicas(self, topic, partition):
        self._hit("isr", partition)
        return self.topics[topic][partition].isr

    def partition_calls(self):
        return [c for c in self.calls if c[1] is not None]


@pytest.fixture
def cluster():
    """Two topics: ``orders`` (3 partitions) and ``payments`` (1)."""
    return {
        "orders": {
            0: FakePartition(oldest=10, newest=10, leader="broker-1:9092", replicas=(1, 2, 3), isr=(1, 2, 3)),
            1: FakePartition(oldest=0, newest=42, leader="broker-2:9092", replicas=(2, 3, 1), isr=(2, 3)),
            2: FakePartition(oldest=5, newest=7, leader="broker-3:9092", replicas=(3, 1, 2), isr=(3,)),
        },
        "payments": {
            0: FakePartition(oldest=0, newest=0),
        },
    }


@pytest.fixture
def configs():
    return {
        "orders": [("cleanup.policy", "delete"), ("retention.ms", "604800000")],
        "payments": [("cleanup.policy", "compact")],
    }


@pytest.fixture
def fake_client(cluster, configs):
    return FakeBrokerClient(cluster, configs)


@pytest.fixture
def service(fake_client):
    return MetadataService(lambda: fake_client, query_timeout_sec=2.0, max_workers=4)


@pytest.fixture
def settings():
    return Settings(brokers=["localhost:9092"], connect_max_tries=2, connect_backoff_sec=0)


def is_broker_available(host="localhost", port=9092, timeout=1):
    """Check if a Kafka broker is running"""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


@pytest.fixture(scope="session")
def require_broker():
    """Skip tests if broker is not available"""
    if not is_broker_available():
        pytest.skip("Kafka broker not running on localhost:9092")
