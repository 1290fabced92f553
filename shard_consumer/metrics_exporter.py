from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from shard_consumer.config import MetricsConfig
from shard_consumer.dto import ConsumerState

_STATE_ORDINALS = {state: index for index, state in enumerate(ConsumerState)}


class PrometheusMetricsExporter:
    def __init__(
        self,
        config: Optional[MetricsConfig] = None,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self._config = config or MetricsConfig()
        self._registry = registry or CollectorRegistry()

        self._records_total = Counter(
            "shard_records_total",
            "Number of records recovered, by codec label",
            labelnames=("shard", "codec"),
            registry=self._registry,
        )
        self._fetch_retries_total = Counter(
            "shard_fetch_retries_total",
            "Number of fetch attempts that failed with a transient error",
            labelnames=("shard",),
            registry=self._registry,
        )
        self._fetch_latency_hist = Histogram(
            "shard_fetch_latency_seconds",
            "Duration of successful fetch calls",
            labelnames=("shard",),
            registry=self._registry,
        )
        self._behind_latest_gauge = Gauge(
            "shard_millis_behind_latest",
            "Distance of the cursor from the tip of the shard",
            labelnames=("shard",),
            registry=self._registry,
        )
        self._state_gauge = Gauge(
            "shard_consumer_state",
            "Consumer state (0=acquiring,1=polling,2=degraded,3=stopped,4=failed)",
            labelnames=("shard",),
            registry=self._registry,
        )

        if self._config.enabled:
            start_http_server(self._config.port, registry=self._registry)

    def observe_record(self, shard: str, codec: str) -> None:
        self._records_total.labels(shard=shard, codec=codec).inc()

    def observe_fetch(
        self,
        shard: str,
        duration_seconds: float,
        millis_behind_latest: Optional[int] = None,
    ) -> None:
        self._fetch_latency_hist.labels(shard=shard).observe(duration_seconds)
        if millis_behind_latest is not None:
            self._behind_latest_gauge.labels(shard=shard).set(millis_behind_latest)

    def observe_fetch_retry(self, shard: str) -> None:
        self._fetch_retries_total.labels(shard=shard).inc()

    def set_state(self, shard: str, state: ConsumerState) -> None:
        self._state_gauge.labels(shard=shard).set(_STATE_ORDINALS[state])
