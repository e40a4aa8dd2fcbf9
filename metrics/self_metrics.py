"""Emitter health counters reported back through the emission pipeline"""
from typing import List
from .models import Metric, MetricType


EMISSION_TIME_METRIC = "HandlerEmitTiming"
METRICS_SENT_METRIC = "MetricsSent"
METRICS_DROPPED_METRIC = "MetricsDropped"


class SelfMetricsTracker:
    """Sent/dropped counters and emission durations for one handler.

    Only the consumer task touches an instance, so no locking is done here.
    """

    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        self.metrics_sent = 0
        self.metrics_dropped = 0
        self.emission_times: List[float] = []

    def record_emission_duration(self, seconds: float) -> None:
        self.emission_times.append(seconds)

    def record_sent(self, count: int) -> None:
        self.metrics_sent += count

    def record_dropped(self, count: int) -> None:
        self.metrics_dropped += count

    def make_emission_time_metric(self) -> Metric:
        """Mean emission time since the last report, then clear the durations"""
        if self.emission_times:
            value = sum(self.emission_times) / len(self.emission_times)
        else:
            value = 0.0
        self.emission_times = []
        return self._make(EMISSION_TIME_METRIC, value, MetricType.GAUGE)

    def make_metrics_sent_metric(self) -> Metric:
        value = self.metrics_sent
        self.metrics_sent = 0
        return self._make(METRICS_SENT_METRIC, value, MetricType.COUNTER)

    def make_metrics_dropped_metric(self) -> Metric:
        value = self.metrics_dropped
        self.metrics_dropped = 0
        return self._make(METRICS_DROPPED_METRIC, value, MetricType.COUNTER)

    def make_all(self) -> List[Metric]:
        """Emission time, sent and dropped metrics, resetting each"""
        return [
            self.make_emission_time_metric(),
            self.make_metrics_sent_metric(),
            self.make_metrics_dropped_metric(),
        ]

    def _make(self, name: str, value: float, metric_type: MetricType) -> Metric:
        return Metric(
            name=name,
            value=float(value),
            metric_type=metric_type,
            dimensions={"handler": self.handler_name},
        )
