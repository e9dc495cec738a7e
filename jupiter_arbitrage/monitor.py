"""
Polling loop that drives a probe (a cycle evaluation or a price sample) on a
fixed cadence.

Cadence: the interval is measured between the starts of consecutive passes;
after each pass the loop waits ``max(0, interval - elapsed)``. The same wait
applies after a failed pass.

Cancellation is cooperative. The signal is checked before each pass and around
the wait, and it cuts the wait short, but a pass that is already fetching
quotes always runs to completion first. The worst-case stop latency is
therefore one pass (attempts x (request timeout + retry delay) per leg).
"""

import asyncio
import inspect
import signal
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, List, Optional

from .exceptions import JupiterArbitrageError, ValidationError
from .utils import format_duration, get_logger

logger = get_logger(__name__)

DEFAULT_HISTORY_SIZE = 10

Probe = Callable[[], Awaitable[Optional[Any]]]


class MonitorState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    EVALUATING = "evaluating"
    REPORTING = "reporting"
    WAITING = "waiting"
    STOPPED = "stopped"


class CancelSignal:
    """
    One-shot stop request shared between the loop and whoever wants it stopped.

    Create it inside the running event loop (or let MonitorLoop.run create it).
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None
        self._installed: List[int] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def install_signal_handlers(
        self, signals=(signal.SIGINT, signal.SIGTERM)
    ) -> List[int]:
        """
        Cancel on the given process signals.

        Returns:
            The signals actually bound; platforms without
            ``loop.add_signal_handler`` (Windows) bind none
        """
        loop = asyncio.get_running_loop()
        for sig in signals:
            try:
                loop.add_signal_handler(sig, self.cancel, signal.Signals(sig).name)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handler for {sig} not supported here")
                continue
            self._installed.append(sig)
        return list(self._installed)

    def remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed.clear()


@dataclass
class MonitorStats:
    """Counters owned by one MonitorLoop run."""

    iterations: int = 0
    results: int = 0
    failures: int = 0
    started_at: Optional[float] = None
    stopped_at: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def duration(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.stopped_at if self.stopped_at is not None else time.monotonic()
        return end - self.started_at


class MonitorLoop:
    """
    Runs ``probe`` repeatedly until the iteration cap or a cancel signal.

    Args:
        probe: Coroutine function returning a result or None
        name: Label used in logs and metrics ("arbitrage", "price")
        history_size: Size of the rolling window of recent results
        metrics: Optional MonitorMetrics
        clock: Monotonic clock used for cadence
        sleep: Replaces the cancellable wait (tests inject a fake)
    """

    def __init__(
        self,
        probe: Probe,
        name: str = "arbitrage",
        history_size: int = DEFAULT_HISTORY_SIZE,
        metrics=None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        if history_size < 1:
            raise ValidationError(f"history_size must be at least 1: {history_size}")
        self.probe = probe
        self.name = name
        self.metrics = metrics
        self.clock = clock
        self._sleep = sleep
        self.history: Deque[Any] = deque(maxlen=history_size)
        self.state = MonitorState.IDLE
        self.stats = MonitorStats()
        self._cancel: Optional[CancelSignal] = None

    @classmethod
    def for_cycle(
        cls,
        evaluator,
        start_token,
        middle_token,
        start_amount,
        min_profit_percent,
        **kwargs,
    ) -> "MonitorLoop":
        """Loop over ``evaluator.evaluate_cycle`` for one fixed cycle."""

        async def probe():
            return await evaluator.evaluate_cycle(
                start_token, middle_token, start_amount, min_profit_percent
            )

        kwargs.setdefault("name", "arbitrage")
        return cls(probe, **kwargs)

    @property
    def is_running(self) -> bool:
        return self.state not in (MonitorState.IDLE, MonitorState.STOPPED)

    def stop(self, reason: str = "stop requested") -> None:
        """Request a stop at the next iteration boundary."""
        if self._cancel is not None:
            self._cancel.cancel(reason)

    async def run(
        self,
        interval_ms: int,
        max_iterations: int = 0,
        on_opportunity: Optional[Callable[[Any], Any]] = None,
        cancel_signal: Optional[CancelSignal] = None,
        on_error: Optional[Callable[[BaseException, int], Any]] = None,
    ) -> MonitorStats:
        """
        Run until ``max_iterations`` passes completed (0 = unbounded) or cancelled.

        Args:
            interval_ms: Nominal time between the starts of consecutive passes
            max_iterations: Pass cap; 0 runs until cancelled
            on_opportunity: Called with every non-None probe result; may be
                a coroutine function
            cancel_signal: Stops the loop at the next iteration boundary
            on_error: Called with (exception, iteration) for a failed pass

        Returns:
            The stats of this run
        """
        _check_run_args(interval_ms, max_iterations)
        if self.is_running:
            raise JupiterArbitrageError(f"Monitor '{self.name}' is already running")

        cancel = cancel_signal or CancelSignal()
        self._cancel = cancel
        interval = interval_ms / 1000.0
        self.stats = MonitorStats(started_at=self.clock())
        self.state = MonitorState.RUNNING
        cap = str(max_iterations) if max_iterations else "unbounded"
        logger.info(
            f"Monitor '{self.name}' started: interval {interval_ms}ms, "
            f"iterations {cap}"
        )

        try:
            while not cancel.cancelled:
                started = self.clock()
                await self._run_once(on_opportunity, on_error)

                if max_iterations and self.stats.iterations >= max_iterations:
                    logger.info(f"Reached {max_iterations} iterations")
                    break
                if cancel.cancelled:
                    break

                self.state = MonitorState.WAITING
                remaining = max(0.0, interval - (self.clock() - started))
                await self._wait(remaining, cancel)
        finally:
            self.state = MonitorState.STOPPED
            self.stats.stopped_at = self.clock()
            self._cancel = None

        if cancel.cancelled:
            logger.info(f"Monitor '{self.name}' cancelled ({cancel.reason or 'signal'})")
        logger.info(
            f"Monitor '{self.name}' stopped after {self.stats.iterations} iterations "
            f"in {format_duration(self.stats.duration)} "
            f"({self.stats.results} results, {self.stats.failures} failures)"
        )
        return self.stats

    async def _run_once(self, on_opportunity, on_error) -> None:
        self.state = MonitorState.EVALUATING
        self.stats.iterations += 1
        iteration = self.stats.iterations
        logger.debug(f"Iteration {iteration} ({self.name})")

        try:
            result = await self.probe()
            if result is not None:
                self.history.append(result)
                self.stats.results += 1
                if on_opportunity is not None:
                    self.state = MonitorState.REPORTING
                    outcome = on_opportunity(result)
                    if inspect.isawaitable(outcome):
                        await outcome
        except Exception as e:
            self.stats.failures += 1
            self.stats.last_error = f"{type(e).__name__}: {e}"
            logger.error(f"Iteration {iteration} failed: {e}", exc_info=True)
            if self.metrics is not None:
                self.metrics.record_iteration_failure(self.name, type(e).__name__)
            if on_error is not None:
                self._notify_error(on_error, e, iteration)

        if self.metrics is not None:
            self.metrics.record_iteration(self.name)

    @staticmethod
    def _notify_error(on_error, error: BaseException, iteration: int) -> None:
        try:
            on_error(error, iteration)
        except Exception as e:
            logger.error(f"Error callback failed: {e}")

    async def _wait(self, seconds: float, cancel: CancelSignal) -> None:
        if self._sleep is not None:
            await self._sleep(seconds)
            return
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


def _check_run_args(interval_ms: int, max_iterations: int) -> None:
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int):
        raise ValidationError(f"interval_ms must be an int: {interval_ms!r}")
    if interval_ms <= 0:
        raise ValidationError(f"interval_ms must be positive: {interval_ms}")
    if isinstance(max_iterations, bool) or not isinstance(max_iterations, int):
        raise ValidationError(f"max_iterations must be an int: {max_iterations!r}")
    if max_iterations < 0:
        raise ValidationError(f"max_iterations must be non-negative: {max_iterations}")
