"""Aggregates independent broker lookups into topic summaries and reports."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from time import monotonic
from typing import Callable, Dict, List, Tuple

from kafka_dash.core.errors import (
    ConfigFetchFailed,
    PartitionListFailed,
    PartitionQueryFailed,
    TopicListFailed,
)
from kafka_dash.domain.models.topic import (
    ConfigEntry,
    PartitionFailure,
    PartitionField,
    PartitionInfo,
    TopicReport,
    TopicSummary,
)
from kafka_dash.infra.kafka.client import BrokerClient, OffsetSpec

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], BrokerClient]


class MetadataService:
    """
    Builds topic summaries and per-topic reports.

    Every public call opens its own broker client through ``connect`` and
    closes it before returning, on success and on error alike.

    Parameters
    ----------
    connect : ClientFactory
        Returns a new, connected BrokerClient.
    query_timeout_sec : float
        Upper bound for waiting on one per-partition lookup.
    max_workers : int
        Size of the per-partition lookup pool.
    """

    def __init__(self, connect: ClientFactory, query_timeout_sec: float = 10.0, max_workers: int = 8) -> None:
        self._connect = connect
        self._timeout = query_timeout_sec
        self._max_workers = max_workers

    # ------- public API -------

    def list_topic_summaries(self) -> List[TopicSummary]:
        """Return ``(name, partition count)`` rows in broker order."""
        with self._connect() as client:
            try:
                names = list(client.list_topics())
            except Exception as exc:
                raise TopicListFailed(exc) from exc

            out: List[TopicSummary] = []
            for name in names:
                try:
                    count = len(client.partitions(name))
                except Exception as exc:
                    raise TopicListFailed(exc, topic=name) from exc
                out.append(TopicSummary(name=name, partitions=count))
        logger.info("listed %d topics", len(out))
        return out

    def build_report(self, topic: str) -> TopicReport:
        """
        Fetch configuration and partition metadata of *topic*.

        Raises ConfigFetchFailed or PartitionListFailed; a failing
        per-partition lookup only marks that field unavailable.
        """
        started = monotonic()
        with self._connect() as client:
            try:
                configs = tuple(ConfigEntry(name=n, value=v) for n, v in client.describe_config(topic))
            except Exception as exc:
                raise ConfigFetchFailed(topic, exc) from exc

            try:
                indices = list(client.partitions(topic))
            except Exception as exc:
                raise PartitionListFailed(topic, exc) from exc

            values, failures = self._fetch_partitions(client, topic, indices)

        partitions = tuple(
            PartitionInfo(topic=topic, partition=p, **values.get(p, {}))
            for p in sorted(indices)
        )
        report = TopicReport(
            topic=topic,
            configs=configs,
            partitions=partitions,
            failures=tuple(sorted(failures, key=lambda f: (f.partition, list(PartitionField).index(f.field)))),
        )
        logger.info(
            "built report for %s: %d partitions, %d degraded fields in %.2fs",
            topic, report.partition_count, len(report.failures), monotonic() - started,
        )
        return report

    # ------- helpers -------

    def _fetch_partitions(
        self, client: BrokerClient, topic: str, indices: List[int]
    ) -> Tuple[Dict[int, dict], List[PartitionFailure]]:
        lookups: Dict[PartitionField, Callable[[int], object]] = {
            PartitionField.OLDEST_OFFSET: lambda p: client.get_offset(topic, p, OffsetSpec.OLDEST),
            PartitionField.NEWEST_OFFSET: lambda p: client.get_offset(topic, p, OffsetSpec.NEWEST),
            PartitionField.LEADER: lambda p: client.leader(topic, p),
            PartitionField.REPLICAS: lambda p: tuple(client.replicas(topic, p)),
            PartitionField.IN_SYNC_REPLICAS: lambda p: tuple(client.in_sync_replicas(topic, p)),
        }

        values: Dict[int, dict] = {p: {} for p in indices}
        failures: List[PartitionFailure] = []
        if not indices:
            return values, failures

        ex = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="partition-lookup")
        try:
            futures: List[Tuple[int, PartitionField, Future]] = [
                (p, field, ex.submit(fn, p)) for p in indices for field, fn in lookups.items()
            ]
            for p, field, fut in futures:
                try:
                    values[p][field.value] = fut.result(timeout=self._timeout)
                except FutureTimeout:
                    fut.cancel()
                    failures.append(self._degrade(topic, p, field, f"timed out after {self._timeout}s"))
                except Exception as exc:
                    failures.append(self._degrade(topic, p, field, exc))
        finally:
            # a lookup stuck past its timeout must not hold the report back
            ex.shutdown(wait=False, cancel_futures=True)
        return values, failures

    @staticmethod
    def _degrade(topic: str, partition: int, field: PartitionField, reason: object) -> PartitionFailure:
        err = PartitionQueryFailed(topic, partition, field.value, reason)
        logger.warning("%s; rendering as unavailable", err)
        return PartitionFailure(partition=partition, field=field, reason=str(reason))
