"""
Prometheus metrics emission for Janus.

All metrics use the 'janus_' prefix and live on a private registry so
tests can create emitters freely.
"""
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Info,
    generate_latest,
    start_http_server,
)

from janus import __version__


class MetricsEmitter:
    """Prometheus metrics emission (emit only, no reading).

    Usage:
        emitter = MetricsEmitter()
        emitter.record_tick("dispatched")
        emitter.record_order("simulated", "simulated")
        metrics_output = emitter.get_metrics()
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._info = Info(
            "janus",
            "Janus dual limit-start bot information",
            registry=self._registry,
        )
        self._info.info({"version": __version__})

        self._ticks_total = Counter(
            "janus_ticks_total",
            "Dispatcher ticks by outcome",
            ["status"],
            registry=self._registry,
        )

        self._orders_total = Counter(
            "janus_orders_total",
            "Buy orders by execution mode and result",
            ["mode", "status"],
            registry=self._registry,
        )

        self._resolution_failures = Counter(
            "janus_resolution_failures_total",
            "Markets that could not be resolved for a period",
            ["asset"],
            registry=self._registry,
        )

        self._quote_failures = Counter(
            "janus_quote_failures_total",
            "Best-bid reads that failed",
            ["asset"],
            registry=self._registry,
        )

        self._simulated_fills = Counter(
            "janus_simulated_fills_total",
            "Simulated limit buys filled against the live ask",
            ["asset"],
            registry=self._registry,
        )

        self._current_period = Gauge(
            "janus_current_period",
            "Period timestamp of the latest snapshot",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_tick(self, status: str) -> None:
        self._ticks_total.labels(status=status).inc()

    def record_order(self, mode: str, status: str) -> None:
        self._orders_total.labels(mode=mode, status=status).inc()

    def record_resolution_failure(self, asset: str) -> None:
        self._resolution_failures.labels(asset=asset).inc()

    def record_quote_failure(self, asset: str) -> None:
        self._quote_failures.labels(asset=asset).inc()

    def record_simulated_fill(self, asset: str) -> None:
        self._simulated_fills.labels(asset=asset).inc()

    def set_current_period(self, period_timestamp: int) -> None:
        self._current_period.set(period_timestamp)

    def get_metrics(self) -> str:
        """Render the registry in Prometheus text format."""
        return generate_latest(self._registry).decode("utf-8")

    def serve(self, port: int) -> None:
        """Expose the registry over HTTP on ``port``."""
        start_http_server(port, registry=self._registry)
