"""Broker client capability and its kafka-python implementation."""
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from kafka import KafkaAdminClient, KafkaConsumer, TopicPartition
from kafka.admin import ConfigResource, ConfigResourceType
from kafka.errors import KafkaError, KafkaTimeoutError, NoBrokersAvailable, NodeNotReadyError, for_code

from kafka_dash.core.config import Settings
from kafka_dash.core.errors import BrokerQueryError, ConnectionFailed

logger = logging.getLogger(__name__)

_RETRYABLE = (KafkaTimeoutError, NoBrokersAvailable, NodeNotReadyError)


class OffsetSpec(str, Enum):
    OLDEST = "oldest"
    NEWEST = "newest"


class BrokerClient(Protocol):
    """The only calls the dashboard makes against the cluster."""

    def list_topics(self) -> List[str]: ...

    def partitions(self, topic: str) -> List[int]: ...

    def get_offset(self, topic: str, partition: int, which: OffsetSpec) -> int: ...

    def leader(self, topic: str, partition: int) -> str: ...

    def replicas(self, topic: str, partition: int) -> List[int]: ...

    def in_sync_replicas(self, topic: str, partition: int) -> List[int]: ...

    def describe_config(self, topic: str) -> List[Tuple[str, Optional[str]]]: ...

    def close(self) -> None: ...

    def __enter__(self) -> "BrokerClient": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...


class KafkaBrokerClient:
    """
    Retrying adapter around kafka-python Admin + Consumer APIs.

    One instance backs one top-level operation (topic listing or one report)
    and is closed when it ends. Topic and cluster metadata are memoised for
    that lifetime only. kafka-python clients are not thread-safe, so every
    call goes through one re-entrant lock.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._admin: KafkaAdminClient | None = None
        self._consumer: KafkaConsumer | None = None
        self._lock = threading.RLock()
        self._topic_meta: Dict[str, dict] = {}
        self._brokers: Dict[int, str] | None = None
        self._closed = False

    # ---------- lifecycle ----------
    def connect(self) -> "KafkaBrokerClient":
        self._ensure_admin()
        return self

    def close(self) -> None:
        with self._lock:
            self._closed = True
            for c in (self._consumer, self._admin):
                if c is None:
                    continue
                try:
                    c.close()
                except KafkaError:
                    logger.debug("error while closing %s", type(c).__name__, exc_info=True)
            self._consumer = None
            self._admin = None
            self._topic_meta.clear()
            self._brokers = None

    def __enter__(self) -> "KafkaBrokerClient":
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ---------- bootstrap common kwargs ----------
    def _common_kwargs(self) -> dict:
        s = self._settings
        kw = dict(
            bootstrap_servers=list(s.brokers),
            client_id=s.client_id,
            request_timeout_ms=s.request_timeout_ms,
            metadata_max_age_ms=s.metadata_max_age_ms,
            api_version_auto_timeout_ms=s.api_version_auto_timeout_ms,
            security_protocol=s.security_protocol,
        )
        if s.kafka_api_version:
            kw["api_version"] = tuple(int(p) for p in s.kafka_api_version.split("."))
        if s.security_protocol.startswith("SASL"):
            kw.update(
                sasl_mechanism=s.sasl_mechanism,
                sasl_plain_username=s.sasl_plain_username,
                sasl_plain_password=s.sasl_plain_password,
            )
        if s.security_protocol.endswith("SSL"):
            kw.update(ssl_cafile=s.ssl_cafile)
        return kw

    def _ensure_admin(self) -> KafkaAdminClient:
        with self._lock:
            self._check_open("admin")
            if self._admin is not None:
                return self._admin

            last_exc: Exception | None = None
            tries = self._settings.connect_max_tries
            for attempt in range(1, tries + 1):
                try:
                    self._admin = KafkaAdminClient(**self._common_kwargs())
                    return self._admin
                except _RETRYABLE as exc:
                    last_exc = exc
                    logger.warning("admin connect attempt %d/%d failed: %s", attempt, tries, exc)
                    if attempt < tries:
                        time.sleep(self._settings.connect_backoff_sec * attempt)
                except KafkaError as exc:
                    raise ConnectionFailed(self._settings.brokers, exc) from exc
            raise ConnectionFailed(self._settings.brokers, last_exc)

    def _ensure_consumer(self) -> KafkaConsumer:
        with self._lock:
            self._check_open("consumer")
            if self._consumer is None:
                try:
                    self._consumer = KafkaConsumer(enable_auto_commit=False, **self._common_kwargs())
                except KafkaError as exc:
                    raise ConnectionFailed(self._settings.brokers, exc) from exc
            return self._consumer

    def _check_open(self, what: str) -> None:
        # lookups outliving their operation must not reopen kafka clients
        if self._closed:
            raise BrokerQueryError(f"open {what}", "client is closed")

    # ---------- Topics ----------
    def list_topics(self) -> List[str]:
        with self._lock:
            try:
                return list(self._ensure_admin().list_topics())
            except KafkaError as exc:
                raise BrokerQueryError("list topics", exc) from exc

    def partitions(self, topic: str) -> List[int]:
        meta = self._describe_topic(topic)
        return [p["partition"] for p in meta.get("partitions", [])]

    def describe_config(self, topic: str) -> List[Tuple[str, Optional[str]]]:
        resource = ConfigResource(ConfigResourceType.TOPIC, topic)
        with self._lock:
            try:
                responses = self._ensure_admin().describe_configs([resource])
            except KafkaError as exc:
                raise BrokerQueryError(f"describe configs of {topic}", exc) from exc
        return _config_entries(topic, responses)

    # ---------- Partitions ----------
    def get_offset(self, topic: str, partition: int, which: OffsetSpec) -> int:
        tp = TopicPartition(topic, partition)
        with self._lock:
            consumer = self._ensure_consumer()
            try:
                if which is OffsetSpec.OLDEST:
                    offsets = consumer.beginning_offsets([tp])
                else:
                    offsets = consumer.end_offsets([tp])
            except KafkaError as exc:
                raise BrokerQueryError(f"{which.value} offset of {topic}[{partition}]", exc) from exc
        if offsets.get(tp) is None:
            raise BrokerQueryError(f"{which.value} offset of {topic}[{partition}]", "no offset returned")
        return int(offsets[tp])

    def leader(self, topic: str, partition: int) -> str:
        node_id = self._partition(topic, partition).get("leader")
        if node_id is None or node_id < 0:
            raise BrokerQueryError(f"leader of {topic}[{partition}]", "no leader elected")
        addr = self._broker_addresses().get(node_id)
        if addr is None:
            raise BrokerQueryError(f"leader of {topic}[{partition}]", f"unknown broker id {node_id}")
        return addr

    def replicas(self, topic: str, partition: int) -> List[int]:
        return list(self._partition(topic, partition).get("replicas", []))

    def in_sync_replicas(self, topic: str, partition: int) -> List[int]:
        return list(self._partition(topic, partition).get("isr", []))

    # ---------- Helpers ----------
    def _describe_topic(self, topic: str) -> dict:
        with self._lock:
            if topic in self._topic_meta:
                return self._topic_meta[topic]
            try:
                meta = self._ensure_admin().describe_topics([topic])[0]
            except (KafkaError, IndexError) as exc:
                raise BrokerQueryError(f"describe topic {topic}", exc) from exc
            code = meta.get("error_code", 0)
            if code:
                raise BrokerQueryError(f"describe topic {topic}", for_code(code).__name__)
            self._topic_meta[topic] = meta
            return meta

    def _partition(self, topic: str, partition: int) -> dict:
        for p in self._describe_topic(topic).get("partitions", []):
            if p["partition"] == partition:
                return p
        raise BrokerQueryError(f"describe partition {topic}[{partition}]", "partition not found")

    def _broker_addresses(self) -> Dict[int, str]:
        with self._lock:
            if self._brokers is None:
                try:
                    meta = self._ensure_admin().describe_cluster()
                except KafkaError as exc:
                    raise BrokerQueryError("describe cluster", exc) from exc
                self._brokers = {b["node_id"]: f"{b['host']}:{b['port']}" for b in meta.get("brokers", [])}
            return self._brokers


def _config_entries(topic: str, responses) -> List[Tuple[str, Optional[str]]]:
    """Flatten DescribeConfigs responses into (name, value) pairs in broker order.

    Resource tuples are ``(error_code, error_message, resource_type,
    resource_name, config_entries)``; entries start with ``(name, value, ...)``.
    """
    out: List[Tuple[str, Optional[str]]] = []
    for response in responses:
        for resource in getattr(response, "resources", response):
            error_code, error_message = resource[0], resource[1]
            if error_code:
                reason = error_message or for_code(error_code).__name__
                raise BrokerQueryError(f"describe configs of {topic}", reason)
            for entry in resource[4]:
                out.append((entry[0], entry[1]))
    return out


def open_client(settings: Settings) -> KafkaBrokerClient:
    """Create a connected client; raises ConnectionFailed."""
    return KafkaBrokerClient(settings).connect()
