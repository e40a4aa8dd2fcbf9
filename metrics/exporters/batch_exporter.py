"""Batch exporter draining a metric queue into SignalFx uploads"""
import asyncio
import concurrent.futures
import time
from typing import Any, Callable, Dict, List, Optional
from concurrent.futures import ThreadPoolExecutor
from config import HandlerConfig
from logging_config import get_handler_logger, log_emission, log_error
from ..encoder import encode
from ..models import Metric
from ..self_metrics import SelfMetricsTracker
from .signalfx import SignalFxTransport, TransportError


# Queue marker that ends the consumer loop
_CLOSED = object()


class BatchExporter:
    """Single consumer that batches metrics and flushes them to SignalFx.

    A flush happens when either the interval since the last flush has elapsed
    or the buffer reached ``max_buffer_size``. Self metrics are appended to the
    current batch once per interval. All buffer and counter state is owned by
    the consumer task.
    """

    name = "SignalFx"

    def __init__(self,
                 config: HandlerConfig,
                 transport: Optional[SignalFxTransport] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.transport = transport or SignalFxTransport(
            config.endpoint, config.auth_token, config.timeout
        )
        self.tracker = SelfMetricsTracker(self.name)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=config.max_queue_size)
        self.log = get_handler_logger(__name__, self.name)

        self._clock = clock
        self._datapoints: List = []
        self._last_flush_time = clock()
        self._last_self_report_time = self._last_flush_time

        # Blocking POSTs run here so the event loop stays responsive
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="signalfx_emitter"
        )
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._consumer_task: Optional[asyncio.Task] = None

        if not config.auth_token:
            self.log.error("There was no auth token specified for the SignalFx handler, there won't be any emissions")
        if not config.endpoint:
            self.log.error("There was no endpoint specified for the SignalFx handler, there won't be any emissions")

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    async def start(self):
        """Start the consumer task"""
        if self._consumer_task is None:
            self._loop = asyncio.get_running_loop()
            self._consumer_task = asyncio.create_task(self.run())
            self.log.info("Batch exporter started",
                          interval=self.config.interval,
                          max_buffer_size=self.config.max_buffer_size)

    async def stop(self):
        """Close the queue, wait for the consumer to drain it and release resources"""
        try:
            if self._consumer_task is not None:
                await self.close()
                await self._consumer_task
        finally:
            self._consumer_task = None
            self._executor.shutdown(wait=True)
            self.transport.close()

    async def emit(self, metric: Metric):
        """Enqueue a metric, waiting while a bounded queue is full"""
        await self.queue.put(metric)

    def emit_threadsafe(self, metric: Metric) -> concurrent.futures.Future:
        """Enqueue a metric from a thread outside the consumer's event loop"""
        if self._loop is None:
            raise RuntimeError("Batch exporter has not been started")
        return asyncio.run_coroutine_threadsafe(self.queue.put(metric), self._loop)

    async def close(self):
        """Signal the consumer to exit once everything queued so far is processed"""
        await self.queue.put(_CLOSED)

    async def run(self):
        """Consume the queue until it is closed"""
        self._loop = asyncio.get_running_loop()
        while True:
            try:
                metric = await asyncio.wait_for(self.queue.get(), timeout=self._seconds_until_flush())
            except asyncio.TimeoutError:
                await self.tick()
                continue
            if metric is _CLOSED:
                break
            try:
                await self.process(metric)
            except Exception as e:
                self.tracker.record_dropped(1)
                log_error(self.log, e, {"metric": getattr(metric, "name", None)})

        # Best effort for whatever is still buffered
        if self._datapoints:
            await self.flush()

        self.log.info("Batch exporter stopped")

    async def process(self, metric: Metric):
        """Buffer one metric and flush or self-report if due"""
        datapoint = encode(metric, self.config.prefix, self.config.default_dimensions)
        self.log.debug("SignalFx datapoint", metric=datapoint.metric, value=datapoint.value.doubleValue)
        self._datapoints.append(datapoint)

        now = self._clock()
        interval = self.config.interval
        emit_interval_passed = now - self._last_flush_time >= interval
        buffer_size_limit_reached = len(self._datapoints) >= self.config.max_buffer_size
        do_emit = emit_interval_passed or buffer_size_limit_reached

        if now - self._last_self_report_time >= interval:
            self._last_self_report_time = now
            self._report_self_metrics()

        if do_emit:
            await self.flush()

    async def tick(self):
        """Flush a buffer that went stale while no metric arrived"""
        if self._datapoints and self._clock() - self._last_flush_time >= self.config.interval:
            await self.flush()

    def _seconds_until_flush(self) -> Optional[float]:
        # None blocks until the next metric; an empty buffer has nothing to flush
        if not self._datapoints:
            return None
        remaining = self.config.interval - (self._clock() - self._last_flush_time)
        return max(remaining, 0.0)

    async def flush(self):
        """Send the current batch and start a fresh one, whatever the outcome"""
        batch = self._datapoints
        self._datapoints = []

        before_emission = self._clock()
        dropped = 0
        try:
            loop = asyncio.get_running_loop()
            sent = await loop.run_in_executor(self._executor, self.transport.send, batch)
        except TransportError as e:
            dropped = len(batch)
            log_error(self.log, e, {"endpoint": self.endpoint, "datapoint_count": len(batch)})
        except Exception as e:
            # Keep consuming whatever the transport raises
            dropped = len(batch)
            log_error(self.log, e, {"endpoint": self.endpoint, "datapoint_count": len(batch), "unexpected": True})
        else:
            dropped = len(batch) - sent
            self.tracker.record_sent(sent)

        if dropped:
            self.tracker.record_dropped(dropped)

        self._last_flush_time = self._clock()
        emission_time = self._last_flush_time - before_emission
        self.tracker.record_emission_duration(emission_time)
        log_emission(self.log, len(batch), emission_time, dropped)

    def _report_self_metrics(self):
        for metric in self.tracker.make_all():
            self._datapoints.append(encode(metric, self.config.prefix, self.config.default_dimensions))

    def stats(self) -> Dict[str, Any]:
        """Snapshot of the exporter state for diagnostics"""
        return {
            "handler": self.name,
            "endpoint": self.endpoint,
            "buffered": len(self._datapoints),
            "queued": self.queue.qsize(),
            "metrics_sent": self.tracker.metrics_sent,
            "metrics_dropped": self.tracker.metrics_dropped,
            "pending_emission_times": len(self.tracker.emission_times),
        }
