"""
Prometheus metrics for the arbitrage monitor.

Exposes quote, cycle and loop statistics, optionally over a small aiohttp
server (``/metrics`` and ``/health``).
"""

import logging
import threading
import time
from decimal import Decimal
from typing import Any, Dict, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

NAMESPACE = "jupiter_arbitrage"


class MonitorMetrics:
    """
    Metrics collection for quotes, cycle evaluations and monitor iterations.

    Every component takes ``metrics=None`` and skips recording in that case.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        self._app = None
        self._runner = None
        self._site = None

        self._lock = threading.RLock()

    def _initialize_metrics(self):
        # === QUOTE METRICS ===
        self.quote_attempts_total = Counter(
            f"{NAMESPACE}_quote_attempts_total",
            "Quote attempts by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.quote_exhausted_total = Counter(
            f"{NAMESPACE}_quote_exhausted_total",
            "Quote fetches that ran out of attempts",
            registry=self.registry,
        )

        self.quote_latency_seconds = Histogram(
            f"{NAMESPACE}_quote_latency_seconds",
            "Latency of single quote requests",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry,
        )

        # === CYCLE METRICS ===
        self.cycle_results_total = Counter(
            f"{NAMESPACE}_cycle_results_total",
            "Cycle evaluations by outcome (opportunity, below_threshold, no_quote)",
            ["outcome"],
            registry=self.registry,
        )

        self.cycle_profit_percent = Histogram(
            f"{NAMESPACE}_cycle_profit_percent",
            "Profit percent of fully evaluated cycles",
            buckets=[-5, -1, -0.5, -0.1, 0, 0.1, 0.25, 0.5, 1, 2, 5],
            registry=self.registry,
        )

        # === LOOP METRICS ===
        self.iterations_total = Counter(
            f"{NAMESPACE}_iterations_total",
            "Completed monitor iterations",
            ["monitor"],
            registry=self.registry,
        )

        self.iteration_failures_total = Counter(
            f"{NAMESPACE}_iteration_failures_total",
            "Monitor iterations that raised",
            ["monitor", "error_type"],
            registry=self.registry,
        )

        self.last_iteration_timestamp = Gauge(
            f"{NAMESPACE}_last_iteration_timestamp_seconds",
            "Unix time of the last completed iteration",
            ["monitor"],
            registry=self.registry,
        )

        self.last_price = Gauge(
            f"{NAMESPACE}_last_price",
            "Last sampled price per pair",
            ["pair"],
            registry=self.registry,
        )

    def record_quote_attempt(self, outcome: str):
        with self._lock:
            self.quote_attempts_total.labels(outcome=outcome).inc()

    def record_quote_exhausted(self):
        with self._lock:
            self.quote_exhausted_total.inc()

    def record_quote_latency(self, seconds: float):
        with self._lock:
            self.quote_latency_seconds.observe(seconds)

    def record_cycle_result(self, outcome: str, profit_percent: Optional[Decimal] = None):
        """Record a cycle outcome and, when known, its profit percent"""
        with self._lock:
            self.cycle_results_total.labels(outcome=outcome).inc()
            if profit_percent is not None:
                self.cycle_profit_percent.observe(float(profit_percent))

    def record_iteration(self, monitor: str):
        with self._lock:
            self.iterations_total.labels(monitor=monitor).inc()
            self.last_iteration_timestamp.labels(monitor=monitor).set(time.time())

    def record_iteration_failure(self, monitor: str, error_type: str):
        with self._lock:
            self.iteration_failures_total.labels(
                monitor=monitor, error_type=error_type
            ).inc()

    def set_price(self, pair: str, price: float):
        with self._lock:
            self.last_price.labels(pair=pair).set(price)

    async def start_server(
        self, port: int = 8000, host: str = "0.0.0.0", path: str = "/metrics"
    ) -> bool:
        """Start Prometheus metrics HTTP server"""
        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"Prometheus metrics server started on http://{host}:{port}{path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        """Stop the metrics server"""
        if self._site:
            await self._site.stop()
            self._site = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Metrics server stopped")

    async def _metrics_handler(self, request):
        metrics_output = generate_latest(self.registry)
        # aiohttp rejects a charset inside content_type
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(text=metrics_output.decode("utf-8"), content_type=content_type)

    async def _health_handler(self, request):
        return web.json_response({"status": "healthy", "service": NAMESPACE})

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Totals for logging at shutdown"""
        summary: Dict[str, Any] = {"quote_attempts": {}, "cycle_results": {}}
        for metric in self.quote_attempts_total.collect():
            for sample in metric.samples:
                if sample.name.endswith("_total"):
                    summary["quote_attempts"][sample.labels["outcome"]] = sample.value
        for metric in self.cycle_results_total.collect():
            for sample in metric.samples:
                if sample.name.endswith("_total"):
                    summary["cycle_results"][sample.labels["outcome"]] = sample.value
        return summary

